from typing import Sequence, Union

import numpy as np

ArrayLike = Union[np.ndarray, Sequence[float], Sequence[int]]

# eigenvalue threshold below which a (sub)matrix counts as not PSD
PSD_EIGEN_TOL = 1e-5

# cutting plane loop
MAX_TRIES_ROUNDING = 20
CONSTRAINT_FAIL_LIMIT = 5
CONSTRAINT_REMOVAL_SLACK = 0.99

# margin subtracted from the smallest eigenvalue before blending towards I
ROUNDING_EPS = 1e-5

# relative tolerance for comparing an assignment score with the LP bound
OPTIMALITY_TOL = 1e-6

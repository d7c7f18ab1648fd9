import logging
from typing import List

import numpy as np

from psdcut.utils.const import PSD_EIGEN_TOL

logger = logging.getLogger(__name__)


def is_psd(mat: np.ndarray, tol: float = PSD_EIGEN_TOL) -> bool:
    """
    All eigenvalues >= -tol. eigvalsh returns them in ascending order.
    """
    if mat.shape[0] == 0:
        return True
    return bool(np.linalg.eigvalsh(mat)[0] >= -tol)


class SeparationOracle:
    """
    Finds a minimal (not necessarily minimum) set of variables whose induced
    correlation submatrix is not PSD.

    Two phases: add variables in random order until the submatrix stops being
    PSD, then walk once over that core and drop every variable that is not
    needed for the violation.
    """

    def __init__(self, tol: float = PSD_EIGEN_TOL, rng: np.random.Generator = None):
        self.tol = tol
        self.rng = rng if rng is not None else np.random.default_rng()

    def find_core(self, point) -> List[int]:
        """
        `point` is a CorrelationPoint (anything with `n` and `submatrix(rows)`).
        Returns the core, or [] if the whole matrix is PSD.
        """
        core = []
        found = False
        for row in self.rng.permutation(point.n):
            core.append(int(row))
            if not is_psd(point.submatrix(core), self.tol):
                found = True
                break

        if not found:
            return []

        n_grown = len(core)
        for _ in range(n_grown):
            removed = core.pop(0)
            if is_psd(point.submatrix(core), self.tol):
                # the removed variable was necessary for non-PSD-ness, put it back
                core.append(removed)

        logger.debug("Non-PSD core %s (grown to %d)", core, n_grown)
        return core

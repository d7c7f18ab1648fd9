import logging

import numpy as np

from psdcut.solver.cutting_plane.exceptions import InvalidProblem
from psdcut.solver.solution import Solution
from psdcut.solver.solver_base import APPROXIMATE
from psdcut.utils.const import MAX_TRIES_ROUNDING, ROUNDING_EPS

logger = logging.getLogger(__name__)


def psd_correction(M: np.ndarray, eps: float = ROUNDING_EPS) -> np.ndarray:
    """
    Blend a unit-diagonal symmetric matrix towards the identity,
        M' = s M + (1 - s) I,   s = -1 / (lambda_min - eps - 1),
    so that the smallest eigenvalue of M' becomes eps / (1 + eps - lambda_min) > 0.
    Matrices that are already safely positive definite are returned as they are.
    """
    M = np.asarray(M, dtype=float)
    lambda_min = np.linalg.eigvalsh(M)[0]
    if lambda_min >= eps:
        return M.copy()

    s = -1. / (lambda_min - eps - 1.)
    corrected = s * M + (1. - s) * np.eye(M.shape[0])
    np.fill_diagonal(corrected, 1.)
    return corrected


class Rounder:
    """
    Random hyperplane rounding of a (possibly non-PSD) correlation matrix.
    """

    def __init__(self, trials: int = MAX_TRIES_ROUNDING, eps: float = ROUNDING_EPS, rng: np.random.Generator = None):
        self.trials = trials
        self.eps = eps
        self.rng = rng if rng is not None else np.random.default_rng()

    def decompose(self, M: np.ndarray) -> np.ndarray:
        return np.linalg.cholesky(psd_correction(M, self.eps))

    def random_hyperplane(self, L: np.ndarray) -> np.ndarray:
        v = self.rng.standard_normal(L.shape[0])
        # normalize the solution to start with +1
        v[0] = abs(v[0])
        y = L @ v
        return np.where(y >= 0, 1, -1)

    def round(self, M: np.ndarray, problem) -> Solution:
        """
        Returns the breadcrumbs of all trials; the best trial is solution.z.
        """
        if problem.N == 0:
            raise InvalidProblem("Cannot round a problem without variables")

        L = self.decompose(M)

        breadcrumbs = Solution(quality=APPROXIMATE)
        for trial in range(self.trials):
            assignment = self.random_hyperplane(L)
            score = problem.score(assignment)
            logger.debug("Rounding trial %d: score = %f", trial, score)
            breadcrumbs.add_step(
                solution=assignment,
                cost=score,
                elapsed_time=0.0,
                approx_ratio=problem.approx_ratio(assignment) if getattr(problem, 'ref_cost', None) is not None else None,
                trial=trial
            )
        return breadcrumbs

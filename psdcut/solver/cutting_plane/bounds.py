import logging

import numpy as np
import pandas as pd

from psdcut.utils.const import OPTIMALITY_TOL

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = ['iteration', 'upper_bound', 'lower_bound', 'n_rows', 'lp_time', 'core_time']


class BoundTracker:
    """
    Keeps lower_bound <= optimum <= upper_bound for a maximization problem.

    The lower bound is always the score of an actual assignment (starting with
    the all-ones vector); the upper bound starts at constant + sum |c_ij| and
    never moves up.
    """

    def __init__(self, problem, tol: float = OPTIMALITY_TOL):
        self.problem = problem
        self.tol = tol

        self.best_assignment = np.ones(problem.N, dtype=int)
        self.lower_bound = problem.score(self.best_assignment)
        self.upper_bound = problem.constant_term + float(np.sum(np.abs(np.triu(problem.coeffs, 1))))
        self.history = []

    @property
    def gap(self):
        return self.upper_bound - self.lower_bound

    def reaches_upper(self, score: float) -> bool:
        """True when `score` meets the upper bound up to solver tolerance."""
        return score >= self.upper_bound - self.tol * max(1., abs(self.upper_bound))

    def update_upper(self, value: float) -> float:
        # a relaxation value below a known score is solver tolerance, not a bound
        self.upper_bound = max(min(self.upper_bound, value), self.lower_bound)
        return self.upper_bound

    def update_lower(self, score: float, assignment) -> bool:
        if score <= self.lower_bound:
            return False
        self.best_assignment = np.asarray(assignment).astype(int)
        if score > self.upper_bound:
            if score - self.upper_bound > self.tol * max(1., abs(self.upper_bound)):
                logger.warning("Score %f exceeds upper bound %f", score, self.upper_bound)
            score = self.upper_bound
        self.lower_bound = score
        return True

    def record(self, iteration: int, n_rows: int, lp_time: float = 0.0, core_time: float = 0.0):
        """
        One row per LP solve. `lp_time` is the time of that solve, `core_time`
        the time spent searching for cores since the previous solve.
        """
        self.history.append({
            'iteration': iteration,
            'upper_bound': self.upper_bound,
            'lower_bound': self.lower_bound,
            'n_rows': n_rows,
            'lp_time': lp_time,
            'core_time': core_time,
        })

    def get_history(self):
        return pd.DataFrame(self.history, columns=HISTORY_COLUMNS)

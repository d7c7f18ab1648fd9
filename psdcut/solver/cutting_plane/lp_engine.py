from abc import ABC, abstractmethod
from enum import Enum
import logging
from typing import Dict, Iterable, Tuple

import cvxpy as cp
import numpy as np

logger = logging.getLogger(__name__)


class LPStatus(Enum):
    OPTIMAL = 'optimal'
    INFEASIBLE = 'infeasible'
    UNBOUNDED = 'unbounded'
    NUMERICAL_INSTABILITY = 'numerical_instability'
    OTHER_FAILURE = 'other_failure'

    def __str__(self):
        return self.value


class LPEngine(ABC):
    """
    Minimal linear programming service used by the relaxation model.
    Columns and rows are 0-based; rows are identified by their position.
    """

    @abstractmethod
    def create_model(self, n_cols: int):
        pass

    @abstractmethod
    def set_objective_sense(self, maximize: bool):
        pass

    @abstractmethod
    def set_col_bounds(self, col: int, lo: float, hi: float):
        pass

    @abstractmethod
    def set_obj_coef(self, col: int, coef: float):
        pass

    @abstractmethod
    def add_row(self) -> int:
        pass

    @abstractmethod
    def delete_row(self, row: int):
        pass

    @abstractmethod
    def set_row_coefficients(self, row: int, pairs: Iterable[Tuple[int, float]]):
        pass

    @abstractmethod
    def set_row_lower_bound(self, row: int, lo: float):
        pass

    @abstractmethod
    def solve(self) -> LPStatus:
        pass

    @abstractmethod
    def col_value(self, col: int) -> float:
        pass

    @abstractmethod
    def row_primal(self, row: int) -> float:
        pass

    @abstractmethod
    def row_lower_bound(self, row: int) -> float:
        pass

    @abstractmethod
    def row_count(self) -> int:
        pass


_CVXPY_STATUS = {
    cp.OPTIMAL: LPStatus.OPTIMAL,
    cp.OPTIMAL_INACCURATE: LPStatus.NUMERICAL_INSTABILITY,
    cp.INFEASIBLE: LPStatus.INFEASIBLE,
    cp.INFEASIBLE_INACCURATE: LPStatus.INFEASIBLE,
    cp.UNBOUNDED: LPStatus.UNBOUNDED,
    cp.UNBOUNDED_INACCURATE: LPStatus.UNBOUNDED,
}


DEFAULT_LP_SOLVER = cp.SCIPY
DEFAULT_LP_OPTIONS = {'scipy_options': {'method': 'highs-ds'}}


class CvxpyLPEngine(LPEngine):
    """
    LPEngine on top of cvxpy. The model data lives here; every solve builds a
    fresh cvxpy problem from it, so rows can be added and deleted freely.
    Without an explicit solver the HiGHS dual simplex is used through scipy, so
    the point returned is a vertex of the optimal face.
    """

    def __init__(self, solver: str = None, **solver_options):
        if solver is None:
            solver = DEFAULT_LP_SOLVER
            solver_options = {**DEFAULT_LP_OPTIONS, **solver_options}
        self.solver = solver
        self.solver_options = solver_options
        self.create_model(0)

    def create_model(self, n_cols: int):
        self._n_cols = n_cols
        self._lo = np.full(n_cols, -np.inf)
        self._hi = np.full(n_cols, np.inf)
        self._obj = np.zeros(n_cols)
        self._maximize = False
        self._rows: list[Dict[int, float]] = []
        self._row_lb: list[float] = []
        self._x = np.zeros(n_cols)

    def set_objective_sense(self, maximize: bool):
        self._maximize = maximize

    def set_col_bounds(self, col, lo, hi):
        self._check_col(col)
        self._lo[col] = lo
        self._hi[col] = hi

    def set_obj_coef(self, col, coef):
        self._check_col(col)
        self._obj[col] = coef

    def add_row(self):
        self._rows.append({})
        self._row_lb.append(-np.inf)
        return len(self._rows) - 1

    def delete_row(self, row):
        self._check_row(row)
        del self._rows[row]
        del self._row_lb[row]

    def set_row_coefficients(self, row, pairs):
        self._check_row(row)
        coefs = {}
        for col, coef in pairs:
            self._check_col(col)
            coefs[int(col)] = coefs.get(int(col), 0.0) + float(coef)
        self._rows[row] = coefs

    def set_row_lower_bound(self, row, lo):
        self._check_row(row)
        self._row_lb[row] = float(lo)

    def solve(self):
        if self._n_cols == 0:
            return LPStatus.OPTIMAL

        x = cp.Variable(self._n_cols)
        constraints = []

        lo_mask = np.isfinite(self._lo)
        if lo_mask.any():
            constraints.append(x[np.flatnonzero(lo_mask)] >= self._lo[lo_mask])
        hi_mask = np.isfinite(self._hi)
        if hi_mask.any():
            constraints.append(x[np.flatnonzero(hi_mask)] <= self._hi[hi_mask])

        active = [r for r, lb in enumerate(self._row_lb) if np.isfinite(lb)]
        if active:
            A = np.zeros((len(active), self._n_cols))
            for k, r in enumerate(active):
                for col, coef in self._rows[r].items():
                    A[k, col] = coef
            b = np.array([self._row_lb[r] for r in active])
            constraints.append(A @ x >= b)

        sense = cp.Maximize if self._maximize else cp.Minimize
        problem = cp.Problem(sense(self._obj @ x), constraints)
        try:
            problem.solve(solver=self.solver, **self.solver_options)
        except cp.error.SolverError as e:
            logger.warning("LP solver failed: %s", e)
            return LPStatus.OTHER_FAILURE

        if x.value is not None:
            self._x = np.asarray(x.value, dtype=float).ravel()
        return _CVXPY_STATUS.get(problem.status, LPStatus.OTHER_FAILURE)

    def col_value(self, col):
        self._check_col(col)
        return float(self._x[col])

    def row_primal(self, row):
        self._check_row(row)
        return float(sum(coef * self._x[col] for col, coef in self._rows[row].items()))

    def row_lower_bound(self, row):
        self._check_row(row)
        return self._row_lb[row]

    def row_count(self):
        return len(self._rows)

    def _check_col(self, col):
        if not 0 <= col < self._n_cols:
            raise IndexError(f"Column {col} out of range for {self._n_cols} columns")

    def _check_row(self, row):
        if not 0 <= row < len(self._rows):
            raise IndexError(f"Row {row} out of range for {len(self._rows)} rows")

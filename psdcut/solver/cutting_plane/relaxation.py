import logging
from typing import Dict, Sequence

import numpy as np

from psdcut.solver.cutting_plane.indexing import TriangularIndex
from psdcut.solver.cutting_plane.lp_engine import LPEngine, LPStatus

logger = logging.getLogger(__name__)


class CorrelationPoint:
    """
    The n x n correlation matrix implied by a relaxation point: unit diagonal,
    entry (i, j) is the relaxation variable of pair (i, j).
    Only the flat pair values are stored.
    """

    def __init__(self, values: Sequence[float], index: TriangularIndex):
        values = np.asarray(values, dtype=float)
        if values.shape != (index.size,):
            raise ValueError(f"Expected {index.size} pair values, got shape {values.shape}")
        self.values = values
        self.index = index

    @property
    def n(self):
        return self.index.n

    @classmethod
    def from_matrix(cls, M):
        M = np.asarray(M, dtype=float)
        index = TriangularIndex(M.shape[0])
        return cls([M[x, y] for x, y in index], index)

    def value(self, i: int, j: int) -> float:
        return float(self.values[self.index.to_flat(i, j) - 1])

    def submatrix(self, rows: Sequence[int]) -> np.ndarray:
        k = len(rows)
        result = np.eye(k)
        for a in range(k):
            for b in range(a + 1, k):
                result[a, b] = result[b, a] = self.value(rows[a], rows[b])
        return result

    def matrix(self) -> np.ndarray:
        return self.submatrix(range(self.n))


class RelaxationModel:
    """
    Linear relaxation of the quadratic problem: one column per variable pair,
    bounded to [-1, 1], objective coefficient coeffs[i, j], maximized.
    Cutting plane rows are added and removed by position.
    """

    def __init__(self, problem, engine: LPEngine):
        self.problem = problem
        self.index = TriangularIndex(problem.N)
        self.engine = engine

        n_cols = self.index.size
        self.objective = np.zeros(n_cols)
        engine.create_model(n_cols)
        engine.set_objective_sense(maximize=True)
        for v in range(1, n_cols + 1):
            x, y = self.index.to_pair(v)
            self.objective[v - 1] = problem.coefficient(x, y)
            engine.set_col_bounds(v - 1, -1., 1.)
            engine.set_obj_coef(v - 1, self.objective[v - 1])

        self._values = np.zeros(n_cols)

    def solve(self) -> LPStatus:
        status = self.engine.solve()
        if status in (LPStatus.OPTIMAL, LPStatus.NUMERICAL_INSTABILITY):
            # after an unstable solve the engine still holds its last iterate
            self._values = np.array([self.engine.col_value(c) for c in range(self.index.size)])
        return status

    def get_value(self, v: int) -> float:
        self.index.to_pair(v)
        return float(self._values[v - 1])

    def objective_value(self) -> float:
        return self.problem.constant_term + float(self.objective @ self._values)

    def point(self) -> CorrelationPoint:
        return CorrelationPoint(self._values.copy(), self.index)

    def add_row(self, coefficients: Dict[int, float], rhs: float) -> int:
        """
        Install sum(coef * X_v) >= rhs, `coefficients` keyed by flat (1-based) index.
        """
        pairs = []
        for v, coef in coefficients.items():
            self.index.to_pair(v)
            pairs.append((v - 1, coef))
        row = self.engine.add_row()
        self.engine.set_row_coefficients(row, pairs)
        self.engine.set_row_lower_bound(row, rhs)
        return row

    def delete_row(self, row: int):
        self.engine.delete_row(row)

    def row_count(self) -> int:
        return self.engine.row_count()

    def row_primal(self, row: int) -> float:
        return self.engine.row_primal(row)

    def row_lower_bound(self, row: int) -> float:
        return self.engine.row_lower_bound(row)

    def row_slack(self, row: int) -> float:
        return self.row_primal(row) - self.row_lower_bound(row)

    def prune_rows(self, threshold: float) -> int:
        """
        Delete every row whose slack exceeds `threshold`. Returns how many went.
        """
        n_rows = self.row_count()
        removed = 0
        for row in reversed(range(n_rows)):
            slack = self.row_slack(row)
            if slack > threshold:
                logger.debug("Deleting row %d of %d, slack=%f", row, n_rows, slack)
                self.delete_row(row)
                removed += 1
        return removed

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np

from psdcut.solver.cutting_plane.indexing import TriangularIndex
from psdcut.utils.const import PSD_EIGEN_TOL

logger = logging.getLogger(__name__)


@dataclass
class Constraint:
    """
    sum_v coefficients[v-1] * X_v >= rhs over the local pairs v of a k-variable core
    (TriangularIndex(k) order).
    """
    rhs: float
    coefficients: np.ndarray

    def to_dense(self) -> np.ndarray:
        return np.concatenate(([self.rhs], self.coefficients))

    @classmethod
    def from_dense(cls, dense):
        dense = np.asarray(dense, dtype=float)
        return cls(rhs=float(dense[0]), coefficients=dense[1:])


class ConstraintGenerator(ABC):

    @abstractmethod
    def find_constraint(self, submatrix: np.ndarray) -> Optional[Constraint]:
        """
        Given a k x k unit-diagonal submatrix that is not PSD, return an
        inequality valid for every +1/-1 assignment that the submatrix violates,
        or None.
        """
        pass


class EigenvectorCutGenerator(ConstraintGenerator):
    """
    For the eigenvector u of the smallest eigenvalue, u^T X u >= 0 holds for
    every X = x x^T. With a unit diagonal this reads
        sum_{a>b} 2 u_a u_b X_ab >= -sum_a u_a^2
    """

    def __init__(self, tol: float = PSD_EIGEN_TOL):
        self.tol = tol

    def find_constraint(self, submatrix):
        k = submatrix.shape[0]
        if k < 2:
            return None

        # np.linalg.eigh returns eigenvalues in ascending order
        evals, evecs = np.linalg.eigh(submatrix)
        if evals[0] >= -self.tol:
            logger.debug("Smallest eigenvalue %f is not a violation", evals[0])
            return None

        u = evecs[:, 0]
        u = np.where(np.abs(u) <= self.tol, 0.0, u)

        local = TriangularIndex(k)
        coefficients = np.array([2. * u[a] * u[b] for a, b in local])
        if not np.any(coefficients):
            return None

        return Constraint(rhs=-float(u @ u), coefficients=coefficients)

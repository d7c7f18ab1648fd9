import warnings

import networkx as nx
import numpy as np

from psdcut.problems.problem_base import CombProblemBase
from psdcut.solver.classical import BruteForceSolver
from psdcut.solver.cutting_plane.exceptions import InvalidProblem
from psdcut.utils.const import ArrayLike


class BinaryQuadraticProblem(CombProblemBase):
    """
    maximize  constant_term + sum_{i<j} coeffs[i, j] * x_i * x_j  over x in {+1, -1}^N

    `coeffs` must be square and symmetric; its diagonal is ignored (x_i^2 = 1
    would only shift the constant).
    """

    @property
    def N(self):
        return self._coeffs.shape[0]

    @property
    def coeffs(self):
        return self._coeffs

    @property
    def constant_term(self):
        return self._constant_term

    def __init__(self,
                 coeffs: ArrayLike,
                 constant_term: float = 0.0,
                 solve=False,
                 solution_value=None,
                 name=None,
                 exact_solver=BruteForceSolver,
                 ):
        super().__init__(problem_type='bqp', name=name)

        coeffs = np.array(coeffs, dtype=float)
        if coeffs.ndim != 2 or coeffs.shape[0] != coeffs.shape[1]:
            raise InvalidProblem(f"Coefficient matrix must be square, got shape {coeffs.shape}")
        if not np.allclose(coeffs, coeffs.T):
            raise InvalidProblem("Coefficient matrix must be symmetric")
        np.fill_diagonal(coeffs, 0.0)
        coeffs.setflags(write=False)

        self._coeffs = coeffs
        self._constant_term = float(constant_term)

        self.ref_cost = None
        self.ref_solution_arr = None

        if solve:
            solution = exact_solver().solve(self)
            self.ref_solution_arr = solution.z
            self.ref_cost = solution.cost
            self.add_solution("exact", solution)
        if solution_value is not None:
            self.ref_cost = solution_value

    def coefficient(self, i: int, j: int) -> float:
        return float(self._coeffs[i, j])

    def score(self, assignment: ArrayLike) -> float:
        x = np.asarray(assignment, dtype=float)
        if x.shape != (self.N,):
            raise ValueError(f"Assignment must have length {self.N}, got shape {x.shape}")
        return self._constant_term + float(x @ np.triu(self._coeffs, 1) @ x)

    def evaluate_solution(self, solution: ArrayLike):
        return self.score(self._convert_solution(solution))

    def approx_ratio(self, solution: ArrayLike):
        if self.ref_cost is None:
            warnings.warn("Reference solution not available - cannot compute approximation ratio, returning None")
            return None
        value = self.evaluate_solution(solution)
        if self.ref_cost == 0:
            # no ratio against a zero optimum, only the optimum itself counts as 1
            return 1.0 if value == 0 else float('nan')
        return value / self.ref_cost

    def _convert_solution(self, solution: ArrayLike):
        sol = np.array(solution)
        unique_vals = np.unique(sol)
        if set(unique_vals).issubset({-1, 1}):
            return sol
        elif set(unique_vals).issubset({0, 1}):
            # Convert 0/1 encoding to -1/1 encoding
            return 2 * sol - 1
        else:
            raise ValueError("Solution must be either -1/1 or 0/1 encoded")

    @classmethod
    def from_graph(cls, graph: nx.Graph, *args, **kwargs):
        """
        Max-cut on a weighted graph in +1/-1 form:
        cut(x) = sum_{ij} w_ij (1 - x_i x_j) / 2
        Nodes are taken in graph order; edges without a weight count 1.
        """
        nodes = list(graph.nodes())
        W = nx.to_numpy_array(graph, nodelist=nodes, weight='weight')
        np.fill_diagonal(W, 0.0)
        constant_term = 0.5 * np.sum(np.triu(W, 1))
        kwargs.setdefault('name', graph.name or None)
        return cls(-0.5 * W, constant_term, *args, **kwargs)

    @classmethod
    def generate_random(
        cls,
        n: int,
        p: float = 1.0,
        weighted: bool = True,
        seed: int = None,
        solve: bool = False,
        **kwargs):
        """
        Random instance with each pair coupled with probability p; coupling
        strengths are uniform in [-1, 1] (weighted) or all 1.
        """
        rng = np.random.default_rng(seed)
        mask = np.triu(rng.random((n, n)) < p, 1)
        if weighted:
            values = np.round(rng.uniform(-1.0, 1.0, size=(n, n)), 2)
        else:
            values = np.ones((n, n))
        C = np.where(mask, values, 0.0)
        return cls(C + C.T, 0.0, solve=solve, **kwargs)

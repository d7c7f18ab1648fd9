import numpy as np

from psdcut.solver.solver_base import ExactSolver


class BruteForceSolver(ExactSolver):
    """
    brute-force solver for binary quadratic problems over {+1, -1}^n
    """
    def __init__(self, max_N: int = 20):
        super().__init__()
        self.max_N = max_N

    def sanity_check(self, problem):
        if problem.N > self.max_N:
            raise ValueError(f"Number of variables in problem is greater than the maximum number of variables allowed: {problem.N} > {self.max_N}")
        if problem.N == 0:
            raise ValueError("Problem has no variables")

    def solve(self, problem):

        best_assignment, best_score = self._solve(problem)
        breadcrumbs = self._new_solution()
        breadcrumbs.add_step(
            solution=best_assignment[0],
            cost=best_score,
            elapsed_time=0
        )
        breadcrumbs.upper_bound = best_score
        breadcrumbs.lower_bound = best_score

        return breadcrumbs

    def _solve(self, problem):
        self.sanity_check(problem)

        C = np.triu(problem.coeffs, 1)
        n = C.shape[0]
        # Enumerate all possible +1/-1 assignments (2^n assignments), shape (2^n, n)
        bits = ((np.arange(1 << n)[:, None] & (1 << np.arange(n))) > 0).astype(int)
        assignments = 1 - 2 * bits

        # score of every assignment at once
        scores = problem.constant_term + np.einsum('ki,ij,kj->k', assignments, C, assignments)

        best_idx = np.argmax(scores)
        all_best_idx = np.where(np.isclose(scores, scores[best_idx]))[0]
        best_assignment = assignments[all_best_idx]

        return best_assignment, float(scores[best_idx])

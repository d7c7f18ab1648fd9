from psdcut.solver.solution import Solution

EXACT = 'exact'
APPROXIMATE = 'approximate'


class SolverBase:
    """
    Common ground of the solvers: solve(problem) returns a Solution with its
    breadcrumbs, and solution_quality tells whether the last answer is a
    proven optimum (EXACT) or only a feasible assignment (APPROXIMATE).
    """

    def __init__(self, quality: str = None):
        self._solution_quality = quality

    def solve(self, problem):
        raise NotImplementedError

    @property
    def solution_quality(self):
        return self._solution_quality

    def _new_solution(self) -> Solution:
        return Solution(quality=self._solution_quality)


class ExactSolver(SolverBase):
    def __init__(self):
        super().__init__(EXACT)

# Standard library imports
import copy

# Third party imports
import pandas as pd

# Local imports
from psdcut.solver.solution import Solution


class CombProblemBase:

    def solution_summary(self):

        data = []
        for solution_type, breadcrumbs in self._solutions.items():
            if breadcrumbs is not None:
                row = {
                    'Solution Type': solution_type,
                    'Score': breadcrumbs.cost,
                    'Upper Bound': breadcrumbs.upper_bound,
                    'Approximation Ratio': breadcrumbs.approx_ratio,
                    'Number of Steps': len(breadcrumbs),
                }
                data.append(row)

        if not data:
            print(f"No solutions found for {self.name}")
            return None

        df = pd.DataFrame(data)
        df = df.sort_values('Score', ascending=False)
        return df

    def __init__(self, problem_type: str, name: str = None):
        self.problem_type = problem_type
        self._metadata = {
            'name': name,
        }
        self._solutions = {
            'exact': None
        }

    @property
    def name(self):
        return self._metadata['name']

    def solutions(self, solution_type: str = None):
        if solution_type is not None:
            return self._solutions[solution_type]
        else:
            return self._solutions

    def add_solution(self, solution_type: str, solution: Solution):
        self._solutions[solution_type] = copy.copy(solution)

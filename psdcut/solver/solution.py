import copy

import numpy as np

from psdcut.utils.const import ArrayLike


class Solution:
    """
    Breadcrumbs of a solve: every assignment that was scored, plus the best one.
    The cutting plane solver also attaches the final bounds and bound history.
    """

    @property
    def data(self):
        # the best step as dictionary
        result = copy.deepcopy(self._best_step)
        result['total_steps'] = len(self)
        result['upper_bound'] = self.upper_bound
        result['lower_bound'] = self.lower_bound
        result['quality'] = self.quality
        return result

    @property
    def cost(self):
        return self._best_step['cost']

    @property
    def z(self):
        return self._best_step['solution']

    @property
    def approx_ratio(self):
        return self._best_step['approx_ratio']

    @property
    def gap(self):
        if self.upper_bound is None or self.lower_bound is None:
            return None
        return self.upper_bound - self.lower_bound

    def __init__(self, quality: str = None):
        self.quality = quality
        self.upper_bound = None
        self.lower_bound = None
        self.n_iterations = 0
        self.n_constraints = 0
        self.bound_history = None

        self._step_template = {
            'solution': None,
            'cost': None,
            'time': None,
            'approx_ratio': None
        }
        self._breadcrumbs = []

        self._best_step = {
            'cost': None,
            'solution': None,
            'time': None,
            'approx_ratio': None,
        }

    def add_step(
        self,
        solution: ArrayLike,
        cost: float,
        elapsed_time: float,
        approx_ratio: float = None,
        **kwargs
    ):
        step = self._step_template.copy()
        step['solution'] = solution
        step['cost'] = cost
        step['time'] = elapsed_time
        step['approx_ratio'] = approx_ratio
        for k, v in kwargs.items():
            step[k] = v
        self._breadcrumbs.append(step)

        # strictly better only, so the earliest of equally good steps is kept
        if self._best_step['cost'] is None or cost > self._best_step['cost']:
            self._best_step = step.copy()

        return self

    def __getitem__(self, index):
        return self._breadcrumbs[index]

    def __str__(self):
        return (
            f"Solution: {self._signs(self.z)} \nSolution Value: {self.cost} "
            f"\nUpper Bound: {self.upper_bound} \nQuality: {self.quality}"
        )

    def __len__(self):
        return len(self._breadcrumbs)

    def get_history(self, *keys):
        import pandas as pd

        history = {}
        for key in keys:
            history[key] = [step.get(key) for step in self._breadcrumbs]

        return pd.DataFrame(history)

    def _signs(self, solution: ArrayLike):
        if solution is None:
            return ''
        return ''.join('+' if x > 0 else '-' for x in np.asarray(solution))

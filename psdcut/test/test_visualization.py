import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd

from psdcut.solver.solution import Solution
from psdcut.utils.visualization import plot_bounds, plot_score_distribution


def test_plot_bounds(tmp_path):
    history = pd.DataFrame({
        'iteration': [1, 2, 3],
        'upper_bound': [3., 1.5, 1.],
        'lower_bound': [-3., -3., 1.],
        'n_rows': [0, 1, 2],
    })
    ax = plot_bounds(history, title='triangle', save_svg=tmp_path / 'bounds.svg')
    assert len(ax.get_lines()) == 2
    assert (tmp_path / 'bounds.svg').exists()


def test_plot_score_distribution():
    solution = Solution()
    for cost in [1., -3., 1.]:
        solution.add_step(solution=np.ones(3), cost=cost, elapsed_time=0.)
    solution.upper_bound = 1.5
    ax = plot_score_distribution(solution)
    assert ax.get_xlabel() == 'Score'

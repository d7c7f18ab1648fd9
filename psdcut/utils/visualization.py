import matplotlib.pyplot as plt
import numpy as np


def plot_bounds(history, ax=None, title=None, save_svg=None, show=False):
    """
    Upper and lower bound per LP solve, from BoundTracker.get_history() or
    Solution.bound_history.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 3))
    else:
        fig = ax.figure

    x = history['iteration'].to_numpy()
    ax.step(x, history['upper_bound'].to_numpy(), where='post', color='tab:red', label='Upper bound')
    ax.step(x, history['lower_bound'].to_numpy(), where='post', color='tab:blue', label='Lower bound')
    ax.set_xlabel('Iteration')
    ax.set_ylabel('Objective')
    ax.grid(True)
    ax.legend(loc='best', fontsize=8)
    if title is not None:
        ax.set_title(title)

    if save_svg is not None:
        fig.savefig(save_svg, format="svg")
    if show:
        plt.show()
    return ax


def plot_score_distribution(solution, ax=None, show=False):
    """
    Histogram of the scores of all breadcrumbs of a solution (e.g. rounding trials),
    with the best one marked.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 3))

    scores = np.array([step['cost'] for step in solution], dtype=float)
    ax.hist(scores, bins=min(len(scores), 20), color='tab:grey')
    ax.axvline(solution.cost, color='tab:purple', linestyle='--', label='Best')
    if solution.upper_bound is not None:
        ax.axvline(solution.upper_bound, color='tab:red', linestyle=':', label='Upper bound')
    ax.set_xlabel('Score')
    ax.set_ylabel('Count')
    ax.legend(loc='best', fontsize=8)

    if show:
        plt.show()
    return ax

"""
Cutting plane solver for binary quadratic problems over {+1, -1}^n.

A linear relaxation over the pair products X_ij = x_i x_j is tightened with
inequalities that cut off non-PSD principal submatrices of the implied
correlation matrix, until no violation is left (the point is an exact optimum)
or separation keeps failing and the point is rounded with random hyperplanes.

License: MIT

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""

from dataclasses import KW_ONLY, dataclass, field
from enum import Enum
import logging
import time
from typing import Callable

import numpy as np

from psdcut.solver.cutting_plane.bounds import BoundTracker
from psdcut.solver.cutting_plane.constraints import ConstraintGenerator, EigenvectorCutGenerator
from psdcut.solver.cutting_plane.exceptions import InvalidProblem, RelaxationSolveError
from psdcut.solver.cutting_plane.lp_engine import CvxpyLPEngine, LPEngine, LPStatus
from psdcut.solver.cutting_plane.relaxation import RelaxationModel
from psdcut.solver.cutting_plane.rounding import Rounder
from psdcut.solver.cutting_plane.separation import SeparationOracle
from psdcut.solver.solution import Solution
from psdcut.solver.solver_base import APPROXIMATE, EXACT, SolverBase
from psdcut.utils.const import (
    CONSTRAINT_FAIL_LIMIT,
    CONSTRAINT_REMOVAL_SLACK,
    MAX_TRIES_ROUNDING,
    PSD_EIGEN_TOL,
    ROUNDING_EPS,
)


class CPAState(Enum):
    SOLVING = 'solving'
    SEPARATING = 'separating'
    CUTTING = 'cutting'
    ROUNDING = 'rounding'
    CONVERGED = 'converged'


@dataclass
class CuttingPlaneSolver(SolverBase):
    _: KW_ONLY
    psd_tol: float = field(default=PSD_EIGEN_TOL, metadata={'help': 'Eigenvalue below -psd_tol means not PSD'})
    constraint_fail_limit: int = field(default=CONSTRAINT_FAIL_LIMIT, metadata={'help': 'Consecutive separation failures before rounding'})
    removal_slack: float = field(default=CONSTRAINT_REMOVAL_SLACK, metadata={'help': 'Rows with more slack are dropped before a cut is added'})
    rounding_trials: int = MAX_TRIES_ROUNDING
    rounding_eps: float = ROUNDING_EPS
    max_iterations: int = field(default=500, metadata={'help': 'LP solves before falling back to rounding, None for no limit'})
    time_limit: float = field(default=None, metadata={'help': 'Wall-clock seconds before falling back to rounding'})
    seed: int = None
    rng: np.random.Generator = field(default=None, metadata={'help': 'Shared by separation and rounding, overrides seed'})
    generator: ConstraintGenerator = None
    engine_factory: Callable[[], LPEngine] = None
    lp_solver: str = None
    lp_solver_options: dict = None
    log_level: int = logging.WARNING
    logger: logging.Logger = field(default=None, repr=False, metadata={'help': 'Logger'})

    def __post_init__(self):
        SolverBase.__init__(self)
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.setLevel(self.log_level)

        if self.rng is None:
            self.rng = np.random.default_rng(self.seed)
        if self.generator is None:
            self.generator = EigenvectorCutGenerator(self.psd_tol)
        self.oracle = SeparationOracle(tol=self.psd_tol, rng=self.rng)
        self.rounder = Rounder(trials=self.rounding_trials, eps=self.rounding_eps, rng=self.rng)

        self.model = None
        self.bounds = None

    def make_engine(self) -> LPEngine:
        if self.engine_factory is not None:
            return self.engine_factory()
        return CvxpyLPEngine(self.lp_solver, **(self.lp_solver_options or {}))

    def solve(self, problem) -> Solution:
        if problem.N == 0:
            raise InvalidProblem("Problem has no variables")

        ###################
        # INITIALIZATION
        ###################
        start = time.perf_counter()
        model = RelaxationModel(problem, self.make_engine())
        bounds = BoundTracker(problem)
        self.model, self.bounds = model, bounds

        self._solution_quality = None
        breadcrumbs = self._new_solution()
        breadcrumbs.add_step(solution=bounds.best_assignment, cost=bounds.lower_bound, elapsed_time=0.0, source='initial')

        n_iter = 0
        n_constraints = 0
        n_fail = 0
        core_time = 0.0
        total_lp_time, total_core_time = 0.0, 0.0
        point = model.point()
        core, constraint = None, None

        ############################
        # START : Cutting plane loop
        ############################
        state = CPAState.SOLVING
        while state not in (CPAState.CONVERGED, CPAState.ROUNDING):

            if state is CPAState.SOLVING:
                if self._budget_exhausted(n_iter, start):
                    state = CPAState.ROUNDING
                    continue

                lp_start = time.perf_counter()
                status = model.solve()
                lp_time = time.perf_counter() - lp_start
                total_lp_time += lp_time
                n_iter += 1
                if status is LPStatus.NUMERICAL_INSTABILITY:
                    self.logger.warning("LP solve %d numerically unstable, using last point", n_iter)
                elif status is not LPStatus.OPTIMAL:
                    raise RelaxationSolveError(status)

                point = model.point()
                bounds.update_upper(model.objective_value())
                bounds.record(n_iter, model.row_count(), lp_time=lp_time, core_time=core_time)
                core_time = 0.0
                self.logger.info("New bound: %f (lower %f, %d rows)", bounds.upper_bound, bounds.lower_bound, model.row_count())
                state = CPAState.SEPARATING

            elif state is CPAState.SEPARATING:
                core_start = time.perf_counter()
                core = self.oracle.find_core(point)
                dt = time.perf_counter() - core_start
                core_time += dt
                total_core_time += dt
                if not core:
                    state = CPAState.CONVERGED
                    continue

                constraint = self.generator.find_constraint(point.submatrix(core))
                if constraint is not None:
                    state = CPAState.CUTTING
                    continue

                n_fail += 1
                self.logger.debug("No constraint for core %s (%d in a row)", core, n_fail)
                if n_fail >= self.constraint_fail_limit:
                    self.logger.info("No more constraints detected. Rounding off.")
                    state = CPAState.ROUNDING

            elif state is CPAState.CUTTING:
                n_fail = 0
                n_removed = model.prune_rows(self.removal_slack)

                # local pairs of the core mapped back to the full relaxation
                global_pairs = model.index.pairs_of(core)
                if len(constraint.coefficients) != len(global_pairs):
                    raise ValueError(f"Constraint has {len(constraint.coefficients)} coefficients, core of size {len(core)} needs {len(global_pairs)}")
                model.add_row(dict(zip(global_pairs, constraint.coefficients)), constraint.rhs)
                n_constraints += 1
                self.logger.info(
                    "Applying constraint %d on %d variables (%d rows removed), core time %.3fs (total %.3fs), LP time %.3fs",
                    n_constraints, len(core), n_removed, core_time, total_core_time, total_lp_time
                )
                state = CPAState.SOLVING

        ############################
        # Extract the assignment
        ############################
        elapsed = time.perf_counter() - start
        if state is CPAState.CONVERGED:
            assignment = self.extract_assignment(point)
            score = problem.score(assignment)
            bounds.update_lower(score, assignment)
            breadcrumbs.add_step(solution=assignment, cost=score, elapsed_time=elapsed, source='converged')
            if bounds.reaches_upper(score):
                self._solution_quality = EXACT
                self.logger.info("Global optimum found! Score = %f", score)
            else:
                # PSD but not rank one, the first row does not determine the signs
                self.logger.info("Converged point is fractional (score %f, bound %f). Rounding off.", score, bounds.upper_bound)
                state = CPAState.ROUNDING

        if state is CPAState.ROUNDING:
            self._solution_quality = APPROXIMATE
            rounded = self.rounder.round(point.matrix(), problem)
            bounds.update_lower(rounded.cost, rounded.z)
            for step in rounded:
                breadcrumbs.add_step(solution=step['solution'], cost=step['cost'], elapsed_time=elapsed, source='rounding', trial=step['trial'])
            self.logger.info("Rounded solution: best score = %f", rounded.cost)

        breadcrumbs.quality = self._solution_quality
        breadcrumbs.upper_bound = bounds.upper_bound
        breadcrumbs.lower_bound = bounds.lower_bound
        breadcrumbs.n_iterations = n_iter
        breadcrumbs.n_constraints = n_constraints
        breadcrumbs.bound_history = bounds.get_history()
        return breadcrumbs

    @staticmethod
    def extract_assignment(point) -> np.ndarray:
        """
        At an exact extreme point X_0i = x_0 x_i, so fixing x_0 = +1 gives every
        other sign from the first row.
        """
        assignment = np.ones(point.n, dtype=int)
        for i in range(1, point.n):
            assignment[i] = 1 if point.value(0, i) >= 0 else -1
        return assignment

    def _budget_exhausted(self, n_iter, start):
        if self.max_iterations is not None and n_iter >= self.max_iterations:
            self.logger.warning("Iteration limit %d reached", self.max_iterations)
            return True
        if self.time_limit is not None and time.perf_counter() - start >= self.time_limit:
            self.logger.warning("Time limit %.1fs reached", self.time_limit)
            return True
        return False

import networkx as nx
import numpy as np
import pytest

from psdcut.problems.quadratic import BinaryQuadraticProblem
from psdcut.solver.cutting_plane.constraints import Constraint, ConstraintGenerator, EigenvectorCutGenerator
from psdcut.solver.cutting_plane.cpa import CuttingPlaneSolver
from psdcut.solver.cutting_plane.exceptions import InvalidProblem, RelaxationSolveError
from psdcut.solver.cutting_plane.indexing import TriangularIndex
from psdcut.solver.cutting_plane.lp_engine import LPStatus
from psdcut.solver.cutting_plane.relaxation import CorrelationPoint
from psdcut.test.lp_stubs import ScriptedEngine


def triangle(sign):
    return BinaryQuadraticProblem(sign * (np.ones((3, 3)) - np.eye(3)))


class NeverFinds(ConstraintGenerator):
    def __init__(self):
        self.calls = 0

    def find_constraint(self, submatrix):
        self.calls += 1
        return None


class FixedCut(ConstraintGenerator):
    def find_constraint(self, submatrix):
        k = submatrix.shape[0]
        return Constraint(rhs=-1.5, coefficients=np.arange(1., k * (k - 1) // 2 + 1))


def assert_monotone(solution):
    upper = solution.bound_history['upper_bound'].to_numpy()
    lower = solution.bound_history['lower_bound'].to_numpy()
    assert np.all(np.diff(upper) <= 0)
    assert np.all(lower <= upper)
    assert solution.lower_bound <= solution.upper_bound


def test_no_cut_needed():
    problem = triangle(1.)
    solver = CuttingPlaneSolver(seed=0)
    solution = solver.solve(problem)

    assert solution.quality == 'exact'
    assert solver.solution_quality == 'exact'
    assert solution.n_iterations == 1
    assert solution.n_constraints == 0
    np.testing.assert_array_equal(solution.z, [1, 1, 1])
    assert solution.cost == pytest.approx(3.)
    assert solution.upper_bound == pytest.approx(3., abs=1e-4)
    assert problem.score(solution.z) == solution.cost


def test_cut_required():
    problem = triangle(-1.)
    solver = CuttingPlaneSolver(seed=0, max_iterations=30)
    solution = solver.solve(problem)

    assert solution.n_constraints >= 1
    history = solution.bound_history
    assert history['upper_bound'].iloc[0] == pytest.approx(3., abs=1e-4)
    # one cut already pushes the relaxation below the naive bound
    assert history['upper_bound'].iloc[1] < 3. - 1e-3
    assert solution.upper_bound < 3.
    # true optimum of the frustrated triangle is 1
    assert solution.upper_bound >= 1. - 1e-4
    assert solution.cost <= 1. + 1e-9
    assert problem.score(solution.z) == pytest.approx(solution.cost)
    assert_monotone(solution)


def make_instance(kind, seed):
    if kind == 'max_cut':
        return BinaryQuadraticProblem.from_graph(nx.gnp_random_graph(7, .4, seed=seed), solve=True)
    p = {'dense': .8, 'half': .5, 'sparse': .3}[kind]
    return BinaryQuadraticProblem.generate_random(6, p=p, seed=seed, solve=True)


@pytest.mark.parametrize("seed", range(3))
@pytest.mark.parametrize("kind", ['dense', 'half', 'sparse', 'max_cut'])
def test_bounds_bracket_optimum(kind, seed):
    problem = make_instance(kind, seed)
    solution = CuttingPlaneSolver(seed=seed, max_iterations=40).solve(problem)

    assert solution.lower_bound <= problem.ref_cost + 1e-9
    assert solution.upper_bound >= problem.ref_cost - 1e-4
    assert problem.score(solution.z) == pytest.approx(solution.cost)
    assert solution.cost == pytest.approx(solution.lower_bound, abs=1e-4)
    assert set(np.unique(solution.z)) <= {-1, 1}
    if solution.quality == 'exact':
        assert solution.cost == pytest.approx(problem.ref_cost, abs=1e-6)
    assert_monotone(solution)


def single_coupling():
    C = np.zeros((3, 3))
    C[1, 2] = C[2, 1] = -1.
    return BinaryQuadraticProblem(C, solve=True)


def test_zero_couplings_exact_only_at_optimum():
    problem = single_coupling()
    solution = CuttingPlaneSolver(seed=0).solve(problem)

    assert problem.ref_cost == 1.
    assert solution.cost <= 1.
    assert solution.upper_bound >= 1. - 1e-4
    if solution.quality == 'exact':
        assert solution.cost == 1.
    assert_monotone(solution)


def test_fractional_psd_point_is_rounded():
    # X_10 = X_20 = 0, X_21 = -1 is PSD but not rank one
    engine = ScriptedEngine([0., 0., -1.])
    solver = CuttingPlaneSolver(seed=0, engine_factory=lambda: engine)
    solution = solver.solve(single_coupling())

    assert engine.n_solves == 1
    assert solution.n_constraints == 0
    assert solution.quality == 'approximate'
    assert solver.solution_quality == 'approximate'
    assert solution.upper_bound == pytest.approx(1.)

    steps = solution.get_history('source', 'cost')
    assert steps[steps['source'] == 'converged']['cost'].tolist() == [-1.]
    assert solution.cost == 1.
    assert solution.z[1] == -solution.z[2]


def test_fatal_status_aborts():
    engine = ScriptedEngine(np.ones(3), statuses=[LPStatus.INFEASIBLE])
    solver = CuttingPlaneSolver(engine_factory=lambda: engine)
    with pytest.raises(RelaxationSolveError) as err:
        solver.solve(triangle(1.))
    assert err.value.status is LPStatus.INFEASIBLE


def test_numerical_instability_continues():
    engine = ScriptedEngine(np.ones(3), statuses=[LPStatus.NUMERICAL_INSTABILITY])
    solution = CuttingPlaneSolver(engine_factory=lambda: engine).solve(triangle(1.))
    assert solution.quality == 'exact'
    assert solution.cost == 3.


def test_separation_failure_falls_back_to_rounding():
    generator = NeverFinds()
    engine = ScriptedEngine(-np.ones(3))
    problem = triangle(-1.)
    solution = CuttingPlaneSolver(seed=0, generator=generator, engine_factory=lambda: engine).solve(problem)

    assert generator.calls == 5
    assert engine.n_solves == 1
    assert solution.quality == 'approximate'
    # the all-ones start plus 20 rounding trials
    assert len(solution) == 21
    assert solution.cost == pytest.approx(1.)
    assert solution.cost == max(step['cost'] for step in solution)
    history = solution.get_history('cost', 'source')
    assert len(history) == 21
    assert list(history['source'].unique()) == ['initial', 'rounding']
    assert solution.gap == solution.upper_bound - solution.cost
    assert solution.data['quality'] == 'approximate'
    assert problem.score(solution.z) == solution.cost


def test_rounding_is_reproducible():
    problem = triangle(-1.)

    def run():
        engine = ScriptedEngine(-np.ones(3))
        return CuttingPlaneSolver(seed=123, generator=NeverFinds(), engine_factory=lambda: engine).solve(problem)

    a, b = run(), run()
    for step_a, step_b in zip(a, b):
        np.testing.assert_array_equal(step_a['solution'], step_b['solution'])


def test_cut_is_mapped_to_global_pairs():
    M = np.eye(4)
    for a, b in [(1, 2), (1, 3), (2, 3)]:
        M[a, b] = M[b, a] = -1.
    point = CorrelationPoint.from_matrix(M)
    engine = ScriptedEngine(point.values)
    problem = BinaryQuadraticProblem(-(np.ones((4, 4)) - np.eye(4)))

    solver = CuttingPlaneSolver(seed=0, generator=FixedCut(), engine_factory=lambda: engine, max_iterations=2)
    solution = solver.solve(problem)

    assert solution.n_iterations == 2
    assert solution.n_constraints == 2
    assert engine.row_count() == 2
    index = TriangularIndex(4)
    expected_cols = {index.to_flat(a, b) - 1 for a, b in [(1, 2), (1, 3), (2, 3)]}
    for row in range(2):
        assert set(engine.rows[row]) == expected_cols
        assert sorted(engine.rows[row].values()) == [1., 2., 3.]
        assert engine.row_lower_bound(row) == -1.5
    assert solution.quality == 'approximate'

    history = solution.bound_history
    assert len(history) == 2
    assert (history[['lp_time', 'core_time']] >= 0).all().all()
    # no core search happens before the first solve
    assert history['core_time'].iloc[0] == 0.


def test_wrong_constraint_size_rejected():
    class TooShort(ConstraintGenerator):
        def find_constraint(self, submatrix):
            return Constraint(rhs=0., coefficients=np.ones(1))

    engine = ScriptedEngine(-np.ones(3))
    with pytest.raises(ValueError):
        CuttingPlaneSolver(generator=TooShort(), engine_factory=lambda: engine).solve(triangle(-1.))


def test_iteration_budget():
    solution = CuttingPlaneSolver(seed=0, max_iterations=0).solve(triangle(-1.))
    assert solution.n_iterations == 0
    assert solution.quality == 'approximate'
    assert solution.upper_bound == 3.


def test_empty_problem_rejected():
    with pytest.raises(InvalidProblem):
        CuttingPlaneSolver().solve(BinaryQuadraticProblem(np.zeros((0, 0))))


def test_single_variable():
    problem = BinaryQuadraticProblem(np.zeros((1, 1)), constant_term=2.5)
    solution = CuttingPlaneSolver().solve(problem)
    assert solution.quality == 'exact'
    np.testing.assert_array_equal(solution.z, [1])
    assert solution.cost == 2.5


def test_extract_assignment():
    x = np.array([1, -1, 1, 1, -1])
    point = CorrelationPoint.from_matrix(np.outer(x, x))
    np.testing.assert_array_equal(CuttingPlaneSolver.extract_assignment(point), x)
    np.testing.assert_array_equal(CuttingPlaneSolver.extract_assignment(CorrelationPoint.from_matrix(np.outer(-x, -x))), x)


def test_eigenvector_cut_is_valid_and_violated():
    M = np.array([[1., -1., -1.], [-1., 1., -1.], [-1., -1., 1.]])
    constraint = EigenvectorCutGenerator().find_constraint(M)
    assert constraint.rhs == pytest.approx(-1.)
    assert len(constraint.to_dense()) == 4
    np.testing.assert_allclose(Constraint.from_dense(constraint.to_dense()).coefficients, constraint.coefficients)

    index = TriangularIndex(3)
    values = np.array([M[x, y] for x, y in index])
    assert constraint.coefficients @ values < constraint.rhs

    # every +1/-1 assignment satisfies the cut
    for bits in range(8):
        s = np.array([1 if bits >> i & 1 else -1 for i in range(3)])
        X = np.array([s[x] * s[y] for x, y in index])
        assert constraint.coefficients @ X >= constraint.rhs - 1e-9

    assert EigenvectorCutGenerator().find_constraint(np.eye(3)) is None

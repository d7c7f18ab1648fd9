from psdcut.problems.quadratic import BinaryQuadraticProblem
from psdcut.solver.cutting_plane import CuttingPlaneSolver

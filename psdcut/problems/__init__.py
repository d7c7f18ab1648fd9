from psdcut.problems.quadratic import BinaryQuadraticProblem

from psdcut.solver.classical.brute_force import BruteForceSolver

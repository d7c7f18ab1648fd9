from psdcut.solver.cutting_plane.exceptions import InvalidIndex, InvalidProblem, RelaxationSolveError
from psdcut.solver.cutting_plane.indexing import TriangularIndex
from psdcut.solver.cutting_plane.lp_engine import CvxpyLPEngine, LPEngine, LPStatus
from psdcut.solver.cutting_plane.relaxation import CorrelationPoint, RelaxationModel
from psdcut.solver.cutting_plane.bounds import BoundTracker
from psdcut.solver.cutting_plane.separation import SeparationOracle, is_psd
from psdcut.solver.cutting_plane.constraints import Constraint, ConstraintGenerator, EigenvectorCutGenerator
from psdcut.solver.cutting_plane.rounding import Rounder, psd_correction
from psdcut.solver.cutting_plane.cpa import CPAState, CuttingPlaneSolver

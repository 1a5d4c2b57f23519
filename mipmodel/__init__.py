"""
mipmodel Python Package

Modeling layer for linear and mixed-integer programs on top of HiGHS (SciPy)
or CBC/SCIP (OR-Tools).
"""

from .solver import Solver, SolverState, new_solver
from .engine import Engine, EngineKind, available_engines, create_engine
from .parameters import Parameters
from .results import Results, ResultStatus, error_for_status
from .modeling import (
    Variable, VarType, LinearExpression, LinearRelation, RangeRelation,
    Constraint, Objective, Relation, Direction, between
)
from .errors import (
    MipError, ConstructionError, UnsupportedEngineError, EngineCreationError,
    ModelError, InvalidRelationError, InvalidDirectionError,
    SolveError, InfeasibleError, UnboundedError, AbnormalError,
    ModelInvalidError, NotSolvedError, UnknownStatusError,
    SolverStateError, SolutionUnavailableError, SolverReleasedError,
)

__version__ = "0.1.0"

# Relation tokens, so callers can write mipmodel.LESS_EQUAL
LESS_EQUAL = Relation.LE
GREATER_EQUAL = Relation.GE
EQUAL = Relation.EQ

MINIMIZE = Direction.MINIMIZE
MAXIMIZE = Direction.MAXIMIZE

HIGHS = EngineKind.HIGHS
CBC = EngineKind.CBC
SCIP = EngineKind.SCIP

__all__ = [
    'Solver',
    'SolverState',
    'new_solver',
    'Engine',
    'EngineKind',
    'available_engines',
    'create_engine',
    'Parameters',
    'Results',
    'ResultStatus',
    'error_for_status',
    '__version__',
    # Modeling interface
    'Variable',
    'VarType',
    'LinearExpression',
    'LinearRelation',
    'RangeRelation',
    'Constraint',
    'Objective',
    'Relation',
    'Direction',
    'between',
    'LESS_EQUAL',
    'GREATER_EQUAL',
    'EQUAL',
    'MINIMIZE',
    'MAXIMIZE',
    'HIGHS',
    'CBC',
    'SCIP',
    # Errors
    'MipError',
    'ConstructionError',
    'UnsupportedEngineError',
    'EngineCreationError',
    'ModelError',
    'InvalidRelationError',
    'InvalidDirectionError',
    'SolveError',
    'InfeasibleError',
    'UnboundedError',
    'AbnormalError',
    'ModelInvalidError',
    'NotSolvedError',
    'UnknownStatusError',
    'SolverStateError',
    'SolutionUnavailableError',
    'SolverReleasedError',
]

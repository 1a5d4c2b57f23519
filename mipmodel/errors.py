"""
Exception hierarchy for mipmodel
"""


class MipError(Exception):
    """Base class for all mipmodel errors"""


class ConstructionError(MipError):
    """Raised when a solver cannot be created"""


class UnsupportedEngineError(ConstructionError, ValueError):
    """The requested engine kind is not one of the supported kinds"""


class EngineCreationError(ConstructionError):
    """The engine library failed to create an instance"""


class ModelError(MipError, ValueError):
    """Malformed model construction (bad relation, direction, foreign variable, ...)"""


class InvalidRelationError(ModelError):
    """Relation token that cannot be expressed as a bounded row"""


class InvalidDirectionError(ModelError):
    """Optimization direction other than minimize/maximize"""


class SolveError(MipError):
    """
    Non-successful terminal status of a solve.

    These are expected outcomes of optimization. They are returned on
    ``Results.error`` rather than raised.

    Attributes
    ----------
    status : ResultStatus or int
        Engine status the error was built from
    """

    def __init__(self, message: str, status=None):
        super().__init__(message)
        self.status = status


class InfeasibleError(SolveError):
    pass


class UnboundedError(SolveError):
    pass


class AbnormalError(SolveError):
    pass


class ModelInvalidError(SolveError):
    pass


class NotSolvedError(SolveError):
    pass


class UnknownStatusError(SolveError):
    pass


class SolverStateError(MipError, RuntimeError):
    """Operation not valid in the solver's current state"""


class SolutionUnavailableError(SolverStateError):
    """Solution values were read before a feasible or optimal solve"""


class SolverReleasedError(SolverStateError):
    """The solver's engine has already been released"""

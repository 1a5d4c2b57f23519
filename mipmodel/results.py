"""
Results class for mipmodel solves
"""
from enum import IntEnum
from typing import Optional, Dict, Any, Union

from .errors import (
    SolveError, InfeasibleError, UnboundedError, AbnormalError,
    ModelInvalidError, NotSolvedError, UnknownStatusError,
)


class ResultStatus(IntEnum):
    """Terminal status reported by an engine"""
    OPTIMAL = 0
    FEASIBLE = 1
    INFEASIBLE = 2
    UNBOUNDED = 3
    ABNORMAL = 4
    MODEL_INVALID = 5
    NOT_SOLVED = 6


_STATUS_ERRORS = {
    ResultStatus.INFEASIBLE: (InfeasibleError, "problem is infeasible"),
    ResultStatus.UNBOUNDED: (UnboundedError, "problem is unbounded"),
    ResultStatus.ABNORMAL: (AbnormalError, "solver encountered an abnormal condition"),
    ResultStatus.MODEL_INVALID: (ModelInvalidError, "model is invalid"),
    ResultStatus.NOT_SOLVED: (NotSolvedError, "problem was not solved"),
}


def to_status(code: Union[int, ResultStatus]) -> Optional[ResultStatus]:
    """Convert an engine status code, returning None for codes outside the known set"""
    try:
        return ResultStatus(code)
    except ValueError:
        return None


def error_for_status(code: Union[int, ResultStatus]) -> Optional[SolveError]:
    """
    Build the error matching an engine status code.

    Parameters
    ----------
    code : int or ResultStatus
        Raw engine status

    Returns
    -------
    SolveError or None
        None for OPTIMAL and FEASIBLE, an error instance otherwise
    """
    status = to_status(code)
    if status is None:
        return UnknownStatusError("unknown result status", code)
    if status in (ResultStatus.OPTIMAL, ResultStatus.FEASIBLE):
        return None
    error_cls, message = _STATUS_ERRORS[status]
    return error_cls(message, status)


class Results:
    """
    Outcome of a single ``Solver.solve`` call.

    A ``Results`` unpacks into ``(is_optimal, error)``:

    >>> is_optimal, error = solver.solve()

    Attributes
    ----------
    status : ResultStatus or None
        Engine status; None when the engine returned an unknown code
    raw_status : int
        Status code exactly as the engine returned it
    error : SolveError or None
        Error built from the status, None for OPTIMAL and FEASIBLE
    objective_value : float or None
        Objective of the best solution (None without a solution)
    best_bound : float or None
        Proven bound on the optimum (None without a solution)
    gap : float or None
        Relative gap, None when undefined or without a solution
    time : float
        Wall time of the solve in seconds
    """

    def __init__(self):
        self.status: Optional[ResultStatus] = None
        self.raw_status: int = -1
        self.error: Optional[SolveError] = None
        self.objective_value: Optional[float] = None
        self.best_bound: Optional[float] = None
        self.gap: Optional[float] = None
        self.time: float = 0.0

    @classmethod
    def from_status(cls, code: Union[int, ResultStatus]) -> 'Results':
        """Create Results holding the status and its error"""
        results = cls()
        results.raw_status = int(code)
        results.status = to_status(code)
        results.error = error_for_status(code)
        return results

    def is_optimal(self) -> bool:
        """Check if the engine certified optimality"""
        return self.status == ResultStatus.OPTIMAL

    def is_feasible(self) -> bool:
        """Check if a solution is available (optimal or feasible)"""
        return self.status in (ResultStatus.OPTIMAL, ResultStatus.FEASIBLE)

    def __iter__(self):
        return iter((self.is_optimal(), self.error))

    def __repr__(self):
        status = self.status.name if self.status is not None else self.raw_status
        return (f"Results(status={status}, "
                f"objective_value={self.objective_value}, "
                f"time={self.time:.3f}s)")

    def __str__(self):
        status = self.status.name if self.status is not None else f"UNKNOWN({self.raw_status})"
        lines = [
            "mipmodel Solve Results",
            "=" * 50,
            f"Status:          {status}",
            f"Time:            {self.time:.3f} seconds",
        ]
        if self.error is not None:
            lines.append(f"Error:           {self.error}")
        if self.objective_value is not None:
            lines.append(f"Objective:       {self.objective_value:.6e}")
            lines.append(f"Best bound:      {self.best_bound:.6e}")
        if self.gap is not None:
            lines.append(f"Gap:             {self.gap:.6e}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert results to dictionary"""
        return {
            'status': self.status.name if self.status is not None else None,
            'raw_status': self.raw_status,
            'error': str(self.error) if self.error is not None else None,
            'objective_value': self.objective_value,
            'best_bound': self.best_bound,
            'gap': self.gap,
            'time': self.time,
        }

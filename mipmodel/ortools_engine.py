"""
CBC and SCIP engines backed by OR-Tools' pywraplp
"""
import logging
import math
from typing import List, Optional

from .engine import Engine, EngineKind
from .errors import EngineCreationError
from .parameters import Parameters

logger = logging.getLogger(__name__)


class OrtoolsEngine(Engine):
    """
    Thin adapter over ``pywraplp.Solver``.

    OR-Tools' ``MPSolver.ResultStatus`` codes coincide with ``ResultStatus``
    and are passed through unchanged.

    Parameters
    ----------
    kind : EngineKind
        ``EngineKind.CBC`` or ``EngineKind.SCIP``
    param : Parameters, optional
        Engine configuration. If None, default parameters are used.

    Raises
    ------
    EngineCreationError
        If OR-Tools is not installed or does not ship the requested backend
    """

    def __init__(self, kind: EngineKind, param: Optional[Parameters] = None):
        try:
            from ortools.linear_solver import pywraplp
        except ImportError as e:
            raise EngineCreationError(
                f"{kind.value} engine requires OR-Tools: {e}\n"
                f"Install it with:\n"
                f"  python -m pip install 'mipmodel[ortools]'"
            ) from e

        self.kind = kind
        self.param = param if param is not None else Parameters()
        self._pywraplp = pywraplp
        self._solver = pywraplp.Solver.CreateSolver(kind.value)
        if self._solver is None:
            raise EngineCreationError(f"OR-Tools could not create a {kind.value} solver")

        if self.param.verbose:
            self._solver.EnableOutput()
        if self.param.has_time_limit():
            self.set_time_limit(self.param.time_limit)

        self._variables: List = []
        self._constraints: List = []

    def add_variable(self, name: str, lb: float, ub: float, is_integer: bool) -> int:
        self._variables.append(self._solver.Var(lb, ub, bool(is_integer), name))
        return len(self._variables) - 1

    def add_constraint(self, lb: float, ub: float) -> int:
        self._constraints.append(self._solver.Constraint(lb, ub))
        return len(self._constraints) - 1

    def set_coefficient(self, row: int, col: int, coeff: float) -> None:
        self._constraints[row].SetCoefficient(self._variables[col], coeff)

    def set_objective_coefficient(self, col: int, coeff: float) -> None:
        self._solver.Objective().SetCoefficient(self._variables[col], coeff)

    def set_maximization(self) -> None:
        self._solver.Objective().SetMaximization()

    def set_minimization(self) -> None:
        self._solver.Objective().SetMinimization()

    def set_time_limit(self, seconds: Optional[float]) -> None:
        if seconds is None:
            # MPSolver has no "unset"; a zero limit means no limit
            self._solver.SetTimeLimit(0)
        else:
            self._solver.SetTimeLimit(max(1, int(math.ceil(seconds * 1000))))

    def _solver_parameters(self):
        params = self._pywraplp.MPSolverParameters()
        if self.param.mip_rel_gap is not None:
            params.SetDoubleParam(params.RELATIVE_MIP_GAP, float(self.param.mip_rel_gap))
        if not self.param.presolve:
            params.SetIntegerParam(params.PRESOLVE, params.PRESOLVE_OFF)
        return params

    def solve(self) -> int:
        status = self._solver.Solve(self._solver_parameters())
        logger.debug(f"OR-Tools {self.kind.value} finished with status {status}")
        return int(status)

    def objective_value(self) -> float:
        return self._solver.Objective().Value()

    def best_bound(self) -> float:
        return self._solver.Objective().BestBound()

    def solution_value(self, col: int) -> float:
        return self._variables[col].solution_value()

    def close(self) -> None:
        self._variables = []
        self._constraints = []
        self._solver = None

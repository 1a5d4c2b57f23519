"""
High-level solver interface for mipmodel
"""
import datetime
import logging
import math
import time
from enum import Enum
from typing import Union, Optional, List

import numpy as np

from .engine import Engine, EngineKind, create_engine
from .errors import (
    ModelError, SolverStateError, SolutionUnavailableError, SolverReleasedError,
)
from .modeling import (
    Variable, VarType, LinearExpression, LinearRelation, RangeRelation,
    Relation, Constraint, Direction, Objective,
)
from .parameters import Parameters
from .results import Results, ResultStatus

logger = logging.getLogger(__name__)


TimeLimit = Union[None, float, int, datetime.timedelta]


class SolverState(Enum):
    """Lifecycle of a Solver"""
    BUILT = 'built'
    SOLVING = 'solving'
    SOLVED = 'solved'
    RELEASED = 'released'


def _to_seconds(time_limit: TimeLimit) -> Optional[float]:
    """Positive time limit in seconds, or None for no limit"""
    if time_limit is None:
        return None
    if isinstance(time_limit, datetime.timedelta):
        seconds = time_limit.total_seconds()
    else:
        seconds = float(time_limit)
    return seconds if seconds > 0 else None


class Solver:
    """
    Mixed-integer / linear optimization model bound to one engine instance.

    The solver owns every variable, constraint and the objective created
    through it, and the engine that backs them. Release the engine with
    ``release_resources`` or use the solver as a context manager.

    Parameters
    ----------
    kind : EngineKind or str, optional
        Engine kind (default: ``EngineKind.HIGHS``)
    parameters : Parameters, optional
        Engine configuration. If None, default parameters are used.
    name : str, optional
        Name of the model, for display only

    Raises
    ------
    UnsupportedEngineError
        If ``kind`` is not a supported engine kind
    EngineCreationError
        If the engine cannot be instantiated

    Examples
    --------
    >>> from mipmodel import Solver, LinearExpression
    >>>
    >>> with Solver('HIGHS') as solver:
    ...     x = solver.var_float('x', 0, 10)
    ...     obj = LinearExpression().add_var(x)
    ...     solver.set_objective(obj, 'maximize')
    ...     result = solver.solve()
    ...     print(result.is_optimal(), x.value)
    True 10.0
    """

    def __init__(self, kind: Union[EngineKind, str] = EngineKind.HIGHS,
                 parameters: Optional[Parameters] = None,
                 name: Optional[str] = None):
        self._state = SolverState.RELEASED
        self.kind = EngineKind.parse(kind)
        self.parameters = parameters if parameters is not None else Parameters()
        self.name = name or "MIP_Model"

        self._engine: Engine = create_engine(self.kind, self.parameters)

        self._variables: List[Variable] = []
        self._constraints: List[Constraint] = []
        self._objective: Optional[Objective] = None
        self._status: Optional[ResultStatus] = None
        self._state = SolverState.BUILT

        logger.debug(f"Solver '{self.name}' created with {self.kind.value} engine")

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> SolverState:
        return self._state

    @property
    def status(self) -> Optional[ResultStatus]:
        """Status of the last solve, None before the first solve"""
        return self._status

    def is_released(self) -> bool:
        return self._state is SolverState.RELEASED

    def _ensure_not_released(self):
        if self._state is SolverState.RELEASED:
            raise SolverReleasedError("Solver resources have been released")

    def _ensure_active(self):
        self._ensure_not_released()
        if self._state is SolverState.SOLVING:
            raise SolverStateError("Solver is busy solving")

    def _model_changed(self):
        """Any model mutation invalidates the previous solution"""
        if self._state is SolverState.SOLVED:
            self._state = SolverState.BUILT
            self._status = None

    def _require_solution(self):
        self._ensure_active()
        if self._status not in (ResultStatus.OPTIMAL, ResultStatus.FEASIBLE):
            raise SolutionUnavailableError(
                "No solution available: solve() has not produced an optimal or feasible result")

    def _own(self, variable: Variable) -> Variable:
        if not isinstance(variable, Variable):
            raise TypeError(f"Expected Variable, got {type(variable).__name__}")
        if variable.solver is not self:
            raise ModelError(f"{variable!r} belongs to a different solver")
        return variable

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def _new_variable(self, name: Optional[str], lb: float, ub: float,
                      var_type: VarType) -> Variable:
        self._ensure_active()
        index = len(self._variables)
        name = name or f"x{index}"
        engine_index = self._engine.add_variable(name, lb, ub, var_type.is_integer)
        if engine_index != index:
            raise SolverStateError(
                f"Engine assigned column {engine_index}, expected {index}")
        var = Variable(self, index, name, lb, ub, var_type)
        self._variables.append(var)
        self._model_changed()
        logger.debug(f"Added {var_type.value} variable {name} in [{lb}, {ub}]")
        return var

    def var_float(self, name: Optional[str] = None,
                  lower_bound: float = 0.0,
                  upper_bound: float = np.inf) -> Variable:
        """
        Add a continuous variable.

        Parameters
        ----------
        name : str, optional
            Name of the variable (default: ``x<index>``)
        lower_bound : float, optional
            Lower bound (default: 0)
        upper_bound : float, optional
            Upper bound (default: inf)

        Returns
        -------
        Variable
            The created variable object
        """
        return self._new_variable(name, float(lower_bound), float(upper_bound),
                                  VarType.CONTINUOUS)

    def var_int(self, name: Optional[str] = None,
                lower_bound: float = 0,
                upper_bound: float = np.inf) -> Variable:
        """Add an integer variable; see ``var_float``"""
        return self._new_variable(name, float(lower_bound), float(upper_bound),
                                  VarType.INTEGER)

    def var_bool(self, name: Optional[str] = None) -> Variable:
        """Add a binary variable (integer in [0, 1])"""
        return self._new_variable(name, 0.0, 1.0, VarType.BINARY)

    def var_array(self, n: int, name_prefix: str = 'x',
                  lower_bound: float = 0.0,
                  upper_bound: float = np.inf,
                  var_type: Union[VarType, str] = VarType.CONTINUOUS) -> List[Variable]:
        """
        Add multiple variables at once.

        Parameters
        ----------
        n : int
            Number of variables to add
        name_prefix : str, optional
            Prefix for variable names (default: 'x')
        lower_bound, upper_bound : float, optional
            Bounds shared by all variables; ignored for binary variables
        var_type : VarType or str, optional
            Kind of the variables (default: continuous)

        Examples
        --------
        >>> x = solver.var_array(5, name_prefix='x')  # Creates x0, x1, x2, x3, x4
        """
        var_type = VarType(var_type)
        if var_type is VarType.BINARY:
            return [self.var_bool(f"{name_prefix}{i}") for i in range(n)]
        return [self._new_variable(f"{name_prefix}{i}", float(lower_bound),
                                   float(upper_bound), var_type)
                for i in range(n)]

    @property
    def variables(self) -> List[Variable]:
        self._ensure_not_released()
        return list(self._variables)

    @property
    def num_variables(self) -> int:
        """Number of variables"""
        self._ensure_not_released()
        return len(self._variables)

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _add_row(self, expression: LinearExpression, lower: float, upper: float,
                 name: Optional[str]) -> Constraint:
        self._ensure_active()
        terms = expression.terms
        for var in terms:
            self._own(var)

        index = self._engine.add_constraint(lower, upper)
        for var, coef in terms.items():
            self._engine.set_coefficient(index, var.index, coef)

        constraint = Constraint(index, name or f"c{index}", lower, upper, terms)
        self._constraints.append(constraint)
        self._model_changed()
        logger.debug(f"Added {constraint!r}")
        return constraint

    def add_constraint_expr(self, expression: Union[LinearExpression, Variable],
                            relation: Union[Relation, str],
                            rhs: float,
                            name: Optional[str] = None) -> Constraint:
        """
        Add the constraint ``expression <relation> rhs``.

        ``<=`` becomes the row (-inf, rhs], ``>=`` becomes [rhs, +inf) and
        ``==`` becomes [rhs, rhs]. A constant carried by ``expression`` is
        moved to the right-hand side.

        Parameters
        ----------
        expression : LinearExpression or Variable
            Left-hand side; its terms are copied into the row
        relation : Relation or str
            One of ``'<='``, ``'>='``, ``'=='`` (``'='`` is accepted too)
        rhs : float
            Right-hand side constant
        name : str, optional
            Name for the constraint

        Returns
        -------
        Constraint
            The added constraint

        Raises
        ------
        InvalidRelationError
            For strict inequalities or an unknown relation token; the model
            is left untouched

        Examples
        --------
        >>> expr = LinearExpression().add_term(x, 2).add_term(y, 3)
        >>> solver.add_constraint_expr(expr, '<=', 10, name='capacity')
        """
        relation = Relation.parse(relation)
        expression = LinearExpression.coerce(expression)
        lower, upper = relation.row_bounds(float(rhs) - expression.constant)
        return self._add_row(expression, lower, upper, name)

    def add_range_constraint(self, expression: Union[LinearExpression, Variable],
                             lower: float, upper: float,
                             name: Optional[str] = None) -> Constraint:
        """Add the two-sided constraint ``lower <= expression <= upper``"""
        if float(lower) > float(upper):
            raise ModelError(f"Lower bound ({lower}) must be <= upper bound ({upper})")
        expression = LinearExpression.coerce(expression)
        return self._add_row(expression, float(lower) - expression.constant,
                             float(upper) - expression.constant, name)

    def add(self, relation: Union[LinearRelation, RangeRelation],
            name: Optional[str] = None) -> Constraint:
        """
        Add a constraint built with comparison operators or ``between``.

        Examples
        --------
        >>> solver.add(x + 2*y <= 10, name='c1')
        >>> solver.add(between(1, x - y, 4))
        """
        if isinstance(relation, LinearRelation):
            return self.add_constraint_expr(relation.expression, relation.relation,
                                            relation.rhs, name)
        if isinstance(relation, RangeRelation):
            return self.add_range_constraint(relation.expression, relation.lower,
                                             relation.upper, name)
        raise TypeError(
            "Must provide a relation (use <=, >=, == on expressions, or between()). "
            "A bare variable compared with == gives a bool: write 1 * x == 3 "
            "or add_constraint_expr(x, '==', 3)")

    @property
    def constraints(self) -> List[Constraint]:
        self._ensure_not_released()
        return list(self._constraints)

    @property
    def num_constraints(self) -> int:
        """Number of constraints"""
        self._ensure_not_released()
        return len(self._constraints)

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------

    def set_objective(self, expression: Union[LinearExpression, Variable, float],
                      direction: Union[Direction, str]) -> Objective:
        """
        Set the objective function, replacing any previous one.

        Variables of the previous objective that are absent from
        ``expression`` get a zero coefficient; the direction is overwritten.

        Parameters
        ----------
        expression : LinearExpression, Variable, or float
            Objective expression
        direction : Direction or str
            ``'minimize'`` or ``'maximize'``

        Returns
        -------
        Objective
            The active objective

        Raises
        ------
        InvalidDirectionError
            For any other direction; the previous objective stays active
        """
        self._ensure_active()
        direction = Direction.parse(direction)
        expression = LinearExpression.coerce(expression)
        terms = expression.terms
        for var in terms:
            self._own(var)

        if self._objective is not None:
            for var in self._objective.terms:
                if var not in terms:
                    self._engine.set_objective_coefficient(var.index, 0.0)

        for var, coef in terms.items():
            self._engine.set_objective_coefficient(var.index, coef)

        if direction is Direction.MAXIMIZE:
            self._engine.set_maximization()
        else:
            self._engine.set_minimization()

        self._objective = Objective(direction, terms, expression.constant)
        self._model_changed()
        logger.debug(f"Objective set: {self._objective!r}")
        return self._objective

    def minimize(self, expression: Union[LinearExpression, Variable]) -> Objective:
        return self.set_objective(expression, Direction.MINIMIZE)

    def maximize(self, expression: Union[LinearExpression, Variable]) -> Objective:
        return self.set_objective(expression, Direction.MAXIMIZE)

    @property
    def objective(self) -> Optional[Objective]:
        self._ensure_not_released()
        return self._objective

    # ------------------------------------------------------------------
    # Solve and post-solve queries
    # ------------------------------------------------------------------

    def solve(self, time_limit: TimeLimit = None) -> Results:
        """
        Solve the model.

        Parameters
        ----------
        time_limit : float, int or datetime.timedelta, optional
            Wall-clock budget in seconds. A positive value overrides
            ``parameters.time_limit``; ``None`` or a non-positive value
            falls back to ``parameters.time_limit`` and otherwise runs until
            the engine reaches a terminal status.

        Returns
        -------
        Results
            Status, optimality flag and error. Unpacks as
            ``is_optimal, error = solver.solve()``. Non-successful statuses
            are reported on ``Results.error``, not raised.

        Raises
        ------
        SolverReleasedError
            If the solver has been released
        SolverStateError
            If a solve is already running
        """
        self._ensure_active()

        seconds = _to_seconds(time_limit)
        if seconds is None and self.parameters.has_time_limit():
            seconds = float(self.parameters.time_limit)
        self._engine.set_time_limit(seconds)

        logger.info(
            f"Solving '{self.name}' with {self.kind.value}: "
            f"{len(self._variables)} variables, {len(self._constraints)} constraints, "
            f"time limit {'none' if seconds is None else f'{seconds:g}s'}")

        self._state = SolverState.SOLVING
        self._status = None
        start = time.perf_counter()
        try:
            code = self._engine.solve()
        finally:
            self._state = SolverState.SOLVED
        elapsed = time.perf_counter() - start

        results = Results.from_status(code)
        results.time = elapsed
        self._status = results.status

        if results.is_feasible():
            results.objective_value = self.objective_value()
            results.best_bound = self.best_bound()
            results.gap = self.gap()
            logger.info(f"Solve finished: {results.status.name}, "
                        f"objective {results.objective_value:.6g}, {elapsed:.3f}s")
        else:
            logger.info(f"Solve finished: {results.error} ({elapsed:.3f}s)")

        return results

    def _offset(self) -> float:
        return self._objective.offset if self._objective is not None else 0.0

    def objective_value(self) -> float:
        """
        Objective value of the best solution found.

        Raises
        ------
        SolutionUnavailableError
            If the last solve did not produce a feasible solution
        """
        self._require_solution()
        return float(self._engine.objective_value()) + self._offset()

    def best_bound(self) -> float:
        """
        Engine's proven bound on the optimum.

        A lower bound when minimizing, an upper bound when maximizing: if the
        problem is minimized and the bound is 100, no solution better than
        100 exists.
        """
        self._require_solution()
        return float(self._engine.best_bound()) + self._offset()

    def gap(self) -> Optional[float]:
        """
        Relative gap ``|best_bound - objective| / |objective|``.

        Returns 0.0 for an optimal solve. When the objective is exactly zero
        the ratio is undefined: 0.0 is returned if the bound is zero too and
        None otherwise. A non-finite bound also gives None.
        """
        self._require_solution()
        if self._status is ResultStatus.OPTIMAL:
            return 0.0
        objective = self.objective_value()
        bound = self.best_bound()
        if not math.isfinite(bound) or not math.isfinite(objective):
            return None
        if objective == 0.0:
            return 0.0 if bound == 0.0 else None
        return abs(bound - objective) / abs(objective)

    def solution_value(self, variable: Variable) -> float:
        """Value of ``variable`` in the last solution"""
        self._own(variable)
        self._require_solution()
        return float(self._engine.solution_value(variable.index))

    def values(self, variables: Optional[List[Variable]] = None) -> np.ndarray:
        """Solution values of ``variables`` (default: all variables) as an array"""
        self._require_solution()
        if variables is None:
            variables = self._variables
        return np.array([self.solution_value(var) for var in variables], dtype=np.float64)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def release_resources(self):
        """
        Free the engine and release its memory.

        After calling this method, the solver and its variables cannot be used
        anymore. Calling it again has no effect.
        """
        if self._state is SolverState.RELEASED:
            return
        if self._state is SolverState.SOLVING:
            raise SolverStateError("Cannot release a solver while it is solving")
        try:
            self._engine.close()
        finally:
            self._engine = None
            self._state = SolverState.RELEASED
            self._status = None
            logger.debug(f"Solver '{self.name}' released")

    def __del__(self):
        """Destructor - release the engine when the solver is garbage collected"""
        if getattr(self, '_state', SolverState.RELEASED) is not SolverState.RELEASED:
            self.release_resources()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - automatically release the engine"""
        self.release_resources()
        return False

    def __repr__(self):
        if self.is_released():
            return f"<mipmodel.Solver '{self.name}' (released)>"
        return (f"<mipmodel.Solver '{self.name}' kind={self.kind.value} "
                f"state={self._state.value} variables={len(self._variables)} "
                f"constraints={len(self._constraints)}>")


def new_solver(kind: Union[EngineKind, str] = EngineKind.HIGHS,
               parameters: Optional[Parameters] = None) -> Solver:
    """
    Convenience function to create a Solver.

    Examples
    --------
    >>> solver = new_solver('CBC')
    >>> try:
    ...     ...
    ... finally:
    ...     solver.release_resources()
    """
    return Solver(kind, parameters)

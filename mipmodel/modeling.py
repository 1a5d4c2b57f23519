"""
Modeling interface for mipmodel

Variables, linear expressions, constraint rows and objectives. Variables are
created through a ``Solver``; expressions are free-standing accumulators that
reference variables without owning them.

Example
-------
>>> from mipmodel import Solver, LinearExpression
>>>
>>> with Solver('HIGHS') as solver:
...     x = solver.var_float('x', 0, 10)
...     y = solver.var_int('y', 0, 5)
...
...     expr = LinearExpression()
...     expr.add_term(x, 1.0).add_term(y, 2.0)
...     solver.add_constraint_expr(expr, '<=', 12)
...
...     solver.set_objective(3*x + 5*y, 'maximize')
...     is_optimal, error = solver.solve()
...     print(x.value, y.value)
"""

import numpy as np
from enum import Enum
from typing import Union, Optional, Dict, Iterator, Tuple, TYPE_CHECKING

from .errors import InvalidRelationError, InvalidDirectionError, ModelError

if TYPE_CHECKING:
    from .solver import Solver


Scalar = (int, float, np.number)


class VarType(Enum):
    """Kind of decision variable"""
    CONTINUOUS = 'continuous'
    INTEGER = 'integer'
    BINARY = 'binary'

    @property
    def is_integer(self) -> bool:
        return self is not VarType.CONTINUOUS


class Relation(Enum):
    """Relational operator of a constraint"""
    LE = '<='  # Less than or equal
    GE = '>='  # Greater than or equal
    EQ = '=='  # Equal

    @classmethod
    def parse(cls, relation: Union['Relation', str]) -> 'Relation':
        """
        Convert a relation token to a Relation.

        Raises
        ------
        InvalidRelationError
            For strict inequalities and unrecognized tokens
        """
        if isinstance(relation, Relation):
            return relation
        token = relation.strip() if isinstance(relation, str) else relation
        if token == '=':
            return cls.EQ
        if token in ('<', '>'):
            raise InvalidRelationError(f"strict inequalities are not supported: {token}")
        try:
            return cls(token)
        except ValueError:
            raise InvalidRelationError(f"unknown relation: {relation!r}") from None

    def row_bounds(self, rhs: float) -> Tuple[float, float]:
        """Map ``expr <relation> rhs`` to row bounds (lower, upper)"""
        if self is Relation.LE:
            return -np.inf, rhs
        if self is Relation.GE:
            return rhs, np.inf
        return rhs, rhs


class Direction(Enum):
    """Optimization direction"""
    MINIMIZE = 'minimize'
    MAXIMIZE = 'maximize'

    @classmethod
    def parse(cls, direction: Union['Direction', str]) -> 'Direction':
        if isinstance(direction, Direction):
            return direction
        if isinstance(direction, str):
            try:
                return cls(direction.strip().lower())
            except ValueError:
                pass
        raise InvalidDirectionError(f"unknown optimization direction: {direction!r}")


class Variable:
    """
    Represents a decision variable owned by a ``Solver``.

    Do not instantiate directly; use ``Solver.var_float``, ``Solver.var_int``
    or ``Solver.var_bool``. Variables compare by identity, so they can be used
    as dictionary keys.

    Parameters
    ----------
    solver : Solver
        Owning solver
    index : int
        Column id of the variable inside its solver's engine
    name : str
        Name of the variable, for display only
    lower_bound : float
        Lower bound
    upper_bound : float
        Upper bound
    var_type : VarType
        Continuous, integer or binary

    Examples
    --------
    >>> x = solver.var_float('x', 0, 10)
    >>> expr = 3*x + 5  # Create linear expression
    """

    def __init__(self, solver: 'Solver', index: int, name: str,
                 lower_bound: float, upper_bound: float, var_type: VarType):
        self._solver = solver
        self.index = index
        self.name = name
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.var_type = var_type

    @property
    def solver(self) -> 'Solver':
        return self._solver

    @property
    def value(self) -> float:
        """
        Value of this variable in the last solution.

        Raises
        ------
        SolutionUnavailableError
            If the last solve did not produce a feasible solution
        SolverReleasedError
            If the owning solver has been released
        """
        return self._solver.solution_value(self)

    def __repr__(self):
        return f"Variable({self.name})"

    # Arithmetic operations
    def __add__(self, other):
        return LinearExpression.from_variable(self) + other

    def __radd__(self, other):
        return LinearExpression.from_variable(self) + other

    def __sub__(self, other):
        return LinearExpression.from_variable(self) - other

    def __rsub__(self, other):
        return (-1) * LinearExpression.from_variable(self) + other

    def __mul__(self, other):
        return LinearExpression.from_variable(self) * other

    def __rmul__(self, other):
        return LinearExpression.from_variable(self) * other

    def __neg__(self):
        return -1 * self

    def __truediv__(self, other):
        if not isinstance(other, Scalar):
            raise TypeError("Can only divide variable by scalar")
        return self * (1.0 / other)

    # Comparison operators for constraints. __eq__ is left alone so that
    # variables stay hashable by identity.
    def __le__(self, other):
        return LinearExpression.from_variable(self) <= other

    def __ge__(self, other):
        return LinearExpression.from_variable(self) >= other

    def __lt__(self, other):
        return LinearExpression.from_variable(self) < other

    def __gt__(self, other):
        return LinearExpression.from_variable(self) > other


class LinearExpression:
    """
    Represents a linear expression: sum of (coefficient * variable) + constant.

    Coefficients accumulate: adding the same variable twice sums the
    coefficients. A term whose net coefficient is zero stays in the mapping
    and contributes nothing.

    Parameters
    ----------
    terms : dict, optional
        Dictionary mapping variables to coefficients
    constant : float, optional
        Constant term

    Examples
    --------
    >>> expr = LinearExpression()
    >>> expr.add_term(x, 3).add_var(y)
    >>> expr.add_expr(2*z - 5)
    >>> print(expr)
    3.0*x + y + 2.0*z - 5.0
    """

    def __init__(self, terms: Optional[Dict[Variable, float]] = None,
                 constant: float = 0.0):
        self._terms: Dict[Variable, float] = dict(terms) if terms else {}
        self.constant = float(constant)

    @staticmethod
    def from_variable(var: Variable) -> 'LinearExpression':
        """Create expression from a single variable"""
        return LinearExpression({var: 1.0}, 0.0)

    @staticmethod
    def from_constant(value: float) -> 'LinearExpression':
        """Create expression from a constant"""
        return LinearExpression({}, value)

    @staticmethod
    def coerce(value: Union['LinearExpression', Variable, float]) -> 'LinearExpression':
        """Wrap a variable or scalar into an expression; expressions pass through"""
        if isinstance(value, LinearExpression):
            return value
        if isinstance(value, Variable):
            return LinearExpression.from_variable(value)
        if isinstance(value, Scalar):
            return LinearExpression.from_constant(float(value))
        raise TypeError(
            f"Expected Variable, scalar or LinearExpression, got {type(value).__name__}")

    def add_term(self, variable: Variable, coefficient: float) -> 'LinearExpression':
        """Add ``coefficient * variable`` to this expression"""
        self._terms[variable] = self._terms.get(variable, 0.0) + float(coefficient)
        return self

    def add_var(self, variable: Variable) -> 'LinearExpression':
        """Add ``variable`` with coefficient 1"""
        return self.add_term(variable, 1.0)

    def add_expr(self, other: 'LinearExpression') -> 'LinearExpression':
        """Merge the terms of ``other`` into this expression; ``other`` is not modified"""
        for variable, coefficient in other._terms.items():
            self.add_term(variable, coefficient)
        self.constant += other.constant
        return self

    @property
    def terms(self) -> Dict[Variable, float]:
        """Copy of the (variable, coefficient) mapping"""
        return dict(self._terms)

    def coefficient(self, variable: Variable) -> float:
        """Get coefficient for a variable"""
        return self._terms.get(variable, 0.0)

    def copy(self) -> 'LinearExpression':
        """Create a copy of this expression"""
        return LinearExpression(self._terms, self.constant)

    def __len__(self):
        return len(self._terms)

    def __iter__(self) -> Iterator[Tuple[Variable, float]]:
        return iter(list(self._terms.items()))

    def __repr__(self):
        terms = []
        for var, coef in self._terms.items():
            if coef == 1.0:
                terms.append(f"{var.name}")
            elif coef == -1.0:
                terms.append(f"-{var.name}")
            else:
                terms.append(f"{coef}*{var.name}")

        if self.constant != 0.0:
            terms.append(f"{self.constant}")

        if not terms:
            return "0"

        result = terms[0]
        for term in terms[1:]:
            if term.startswith('-'):
                result += f" - {term[1:]}"
            else:
                result += f" + {term}"
        return result

    # Arithmetic operations
    def __add__(self, other):
        if isinstance(other, (LinearExpression, Variable, *Scalar)):
            return self.copy().add_expr(LinearExpression.coerce(other))
        return NotImplemented

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        if isinstance(other, (LinearExpression, Variable, *Scalar)):
            return self.copy().add_expr(LinearExpression.coerce(other) * -1)
        return NotImplemented

    def __rsub__(self, other):
        return (-1 * self) + other

    def __mul__(self, other):
        if isinstance(other, Scalar):
            scalar = float(other)
            return LinearExpression(
                {k: v * scalar for k, v in self._terms.items()},
                self.constant * scalar
            )
        raise TypeError("Can only multiply expression by scalar (no quadratic terms)")

    def __rmul__(self, other):
        return self.__mul__(other)

    def __neg__(self):
        return self * (-1)

    def __truediv__(self, other):
        if not isinstance(other, Scalar):
            raise TypeError("Can only divide expression by scalar")
        return self * (1.0 / float(other))

    # Comparison operators for constraints
    def __le__(self, other):
        return LinearRelation.build(self, Relation.LE, other)

    def __ge__(self, other):
        return LinearRelation.build(self, Relation.GE, other)

    def __eq__(self, other):
        return LinearRelation.build(self, Relation.EQ, other)

    def __lt__(self, other):
        raise InvalidRelationError("strict inequalities are not supported: <")

    def __gt__(self, other):
        raise InvalidRelationError("strict inequalities are not supported: >")

    __hash__ = None


class LinearRelation:
    """
    ``expression <relation> rhs`` produced by comparison operators.

    Not yet part of any model; post it with ``Solver.add``. Right-hand sides
    that contain variables are moved to the left so that ``rhs`` is a scalar.
    """

    def __init__(self, expression: LinearExpression, relation: Relation, rhs: float):
        self.expression = expression
        self.relation = relation
        self.rhs = rhs

    @classmethod
    def build(cls, lhs: LinearExpression, relation: Relation, rhs) -> 'LinearRelation':
        rhs = LinearExpression.coerce(rhs)
        expression = lhs.copy()
        for variable, coefficient in rhs:
            expression.add_term(variable, -coefficient)
        return cls(expression, relation, rhs.constant)

    def __repr__(self):
        return f"LinearRelation({self.expression} {self.relation.value} {self.rhs})"


class RangeRelation:
    """Two-sided ``lower <= expression <= upper``, see ``between``"""

    def __init__(self, lower: float, expression: LinearExpression, upper: float):
        self.lower = lower
        self.expression = expression
        self.upper = upper

    def __repr__(self):
        return f"RangeRelation({self.lower} <= {self.expression} <= {self.upper})"


def between(lower: float, expr: Union[LinearExpression, Variable],
            upper: float) -> RangeRelation:
    """
    Create a two-sided relation: lower <= expr <= upper.

    Python's comparison chaining doesn't work for custom objects, so use this
    helper and post the result with ``Solver.add``.

    Parameters
    ----------
    lower : float or int
        Lower bound
    expr : LinearExpression or Variable
        Expression to bound
    upper : float or int
        Upper bound

    Raises
    ------
    ModelError
        If ``lower > upper``

    Examples
    --------
    >>> solver.add(between(5, 2*x, 10))  # 5 <= 2*x <= 10
    """
    lower_val = float(lower)
    upper_val = float(upper)
    if lower_val > upper_val:
        raise ModelError(f"Lower bound ({lower_val}) must be <= upper bound ({upper_val})")
    return RangeRelation(lower_val, LinearExpression.coerce(expr).copy(), upper_val)


class Constraint:
    """
    A bounded linear row ``lower_bound <= sum(coef * var) <= upper_bound``.

    Created by the solver; the terms are copied from the source expression at
    construction time and never change afterwards.

    Attributes
    ----------
    index : int
        Row id in the solver's engine
    name : str
        Name of the constraint
    lower_bound : float
        Row lower bound (``-inf`` for ``<=`` rows)
    upper_bound : float
        Row upper bound (``+inf`` for ``>=`` rows)
    """

    def __init__(self, index: int, name: str, lower_bound: float,
                 upper_bound: float, terms: Dict[Variable, float]):
        self.index = index
        self.name = name
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self._terms = dict(terms)

    @property
    def terms(self) -> Dict[Variable, float]:
        return dict(self._terms)

    def coefficient(self, variable: Variable) -> float:
        return self._terms.get(variable, 0.0)

    def is_satisfied_by(self, values: Dict[Variable, float], tol: float = 1e-9) -> bool:
        """Check the row against an assignment of values to variables"""
        activity = sum(coef * values.get(var, 0.0) for var, coef in self._terms.items())
        return self.lower_bound - tol <= activity <= self.upper_bound + tol

    def __repr__(self):
        expr = LinearExpression(self._terms)
        return f"Constraint({self.lower_bound} <= {expr} <= {self.upper_bound}, name={self.name})"


class Objective:
    """
    Direction plus linear expression applied to the engine.

    Attributes
    ----------
    direction : Direction
        Minimize or maximize
    offset : float
        Constant of the source expression, added to reported values
    """

    def __init__(self, direction: Direction, terms: Dict[Variable, float], offset: float = 0.0):
        self.direction = direction
        self._terms = dict(terms)
        self.offset = offset

    @property
    def terms(self) -> Dict[Variable, float]:
        return dict(self._terms)

    def coefficient(self, variable: Variable) -> float:
        return self._terms.get(variable, 0.0)

    @property
    def is_maximization(self) -> bool:
        return self.direction is Direction.MAXIMIZE

    def __repr__(self):
        expr = LinearExpression(self._terms, self.offset)
        return f"Objective({self.direction.value} {expr})"

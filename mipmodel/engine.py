"""
Engine boundary for mipmodel

An engine is the native optimization backend behind a ``Solver``. The
modeling layer talks to it only through the primitive calls of ``Engine``,
addressing columns and rows by the integer ids the engine hands out.
"""
import abc
import importlib.util
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from .errors import ConstructionError, EngineCreationError, UnsupportedEngineError
from .parameters import Parameters

logger = logging.getLogger(__name__)


class EngineKind(Enum):
    """Supported engine kinds"""
    HIGHS = 'HIGHS'
    CBC = 'CBC'
    SCIP = 'SCIP'

    @classmethod
    def parse(cls, kind: Union['EngineKind', str]) -> 'EngineKind':
        if isinstance(kind, EngineKind):
            return kind
        if isinstance(kind, str):
            try:
                return cls(kind.strip().upper())
            except ValueError:
                pass
        raise UnsupportedEngineError(f"unsupported solver type: {kind!r}")


class Engine(abc.ABC):
    """
    Capability contract required from an optimization engine.

    One engine instance backs exactly one ``Solver`` and is not reentrant.
    Column ids and row ids are assigned in creation order starting at 0.

    Status codes returned by ``solve`` follow ``ResultStatus``:
    0 optimal, 1 feasible, 2 infeasible, 3 unbounded, 4 abnormal,
    5 model invalid, 6 not solved.
    """

    kind: EngineKind

    @abc.abstractmethod
    def add_variable(self, name: str, lb: float, ub: float, is_integer: bool) -> int:
        """Add a column and return its id"""

    @abc.abstractmethod
    def add_constraint(self, lb: float, ub: float) -> int:
        """Add an empty row with bounds ``[lb, ub]`` and return its id"""

    @abc.abstractmethod
    def set_coefficient(self, row: int, col: int, coeff: float) -> None:
        """Set (overwrite) the coefficient of column ``col`` in row ``row``"""

    @abc.abstractmethod
    def set_objective_coefficient(self, col: int, coeff: float) -> None:
        """Set (overwrite) the objective coefficient of column ``col``"""

    @abc.abstractmethod
    def set_maximization(self) -> None:
        pass

    @abc.abstractmethod
    def set_minimization(self) -> None:
        pass

    @abc.abstractmethod
    def set_time_limit(self, seconds: Optional[float]) -> None:
        """Wall-clock budget for the next solve; None removes the limit"""

    @abc.abstractmethod
    def solve(self) -> int:
        """Run the engine and return a terminal status code"""

    @abc.abstractmethod
    def objective_value(self) -> float:
        pass

    @abc.abstractmethod
    def best_bound(self) -> float:
        pass

    @abc.abstractmethod
    def solution_value(self, col: int) -> float:
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """Release all native resources held by the engine"""


def _highs_factory(kind: EngineKind, parameters: Parameters) -> Engine:
    from .scipy_engine import ScipyEngine
    return ScipyEngine(parameters)


def _ortools_factory(kind: EngineKind, parameters: Parameters) -> Engine:
    from .ortools_engine import OrtoolsEngine
    return OrtoolsEngine(kind, parameters)


_ENGINE_FACTORIES: Dict[EngineKind, Callable[[EngineKind, Parameters], Engine]] = {
    EngineKind.HIGHS: _highs_factory,
    EngineKind.CBC: _ortools_factory,
    EngineKind.SCIP: _ortools_factory,
}

_ENGINE_DISTRIBUTIONS = {
    EngineKind.HIGHS: 'scipy',
    EngineKind.CBC: 'ortools',
    EngineKind.SCIP: 'ortools',
}


def available_engines() -> List[EngineKind]:
    """Engine kinds whose backing library is installed"""
    return [kind for kind in EngineKind
            if importlib.util.find_spec(_ENGINE_DISTRIBUTIONS[kind]) is not None]


def create_engine(kind: Union[EngineKind, str],
                  parameters: Optional[Parameters] = None) -> Engine:
    """
    Create an engine instance of the given kind.

    Parameters
    ----------
    kind : EngineKind or str
        Engine kind, e.g. ``EngineKind.HIGHS`` or ``'CBC'``
    parameters : Parameters, optional
        Engine configuration. If None, default parameters are used.

    Returns
    -------
    Engine
        A fresh engine with an empty model

    Raises
    ------
    UnsupportedEngineError
        If ``kind`` is not a supported engine kind
    EngineCreationError
        If the engine library fails to create an instance
    """
    kind = EngineKind.parse(kind)
    factory = _ENGINE_FACTORIES.get(kind)
    if factory is None:
        raise UnsupportedEngineError(f"unsupported solver type: {kind.value}")

    if parameters is None:
        parameters = Parameters()

    try:
        engine = factory(kind, parameters)
    except ConstructionError:
        raise
    except Exception as e:
        raise EngineCreationError(f"failed to create {kind.value} engine: {e}") from e

    logger.debug(f"Created {kind.value} engine")
    return engine

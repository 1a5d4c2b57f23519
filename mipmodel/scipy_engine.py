"""
HiGHS engine backed by scipy.optimize.milp
"""
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy import sparse
from scipy.optimize import Bounds, LinearConstraint, milp

from .engine import Engine, EngineKind
from .parameters import Parameters
from .results import ResultStatus

logger = logging.getLogger(__name__)


# scipy.optimize.milp status -> ResultStatus. Status 1 (time, iteration or
# node limit) is resolved against the availability of a solution.
_SCIPY_STATUS = {
    0: ResultStatus.OPTIMAL,
    2: ResultStatus.INFEASIBLE,
    3: ResultStatus.UNBOUNDED,
    4: ResultStatus.ABNORMAL,
}


def _ensure_contiguous_float64(arr):
    """Ensure array is contiguous float64"""
    if not isinstance(arr, np.ndarray):
        arr = np.array(arr, dtype=np.float64)
    if arr.dtype != np.float64:
        arr = arr.astype(np.float64)
    return np.ascontiguousarray(arr)


def _is_infeasible_or_unbounded(res) -> bool:
    """HiGHS "primal infeasible or unbounded", which scipy reports as status 4"""
    return "unbounded" in (res.message or "").lower()


class ScipyEngine(Engine):
    """
    In-memory model solved with HiGHS through ``scipy.optimize.milp``.

    The model is kept as plain Python containers while it is being built and
    converted to the array form expected by HiGHS on every ``solve``:

        minimize    c'*x
        subject to  AL <= A*x <= AU
                    l <= x <= u
                    x_j integer for j in integrality

    Maximization negates ``c`` before the call and the reported objective
    and bound afterwards.

    Parameters
    ----------
    param : Parameters, optional
        Engine configuration. If None, default parameters are used.
    """

    kind = EngineKind.HIGHS

    def __init__(self, param: Optional[Parameters] = None):
        self.param = param if param is not None else Parameters()
        self._time_limit: Optional[float] = None

        self._names: List[str] = []
        self._lower: List[float] = []
        self._upper: List[float] = []
        self._integrality: List[int] = []
        self._row_lower: List[float] = []
        self._row_upper: List[float] = []
        self._coefficients: Dict[Tuple[int, int], float] = {}
        self._objective: Dict[int, float] = {}
        self._maximize = False

        self._x: Optional[np.ndarray] = None
        self._objective_value = math.nan
        self._best_bound = math.nan

    def add_variable(self, name: str, lb: float, ub: float, is_integer: bool) -> int:
        self._names.append(name)
        self._lower.append(float(lb))
        self._upper.append(float(ub))
        self._integrality.append(1 if is_integer else 0)
        return len(self._names) - 1

    def add_constraint(self, lb: float, ub: float) -> int:
        self._row_lower.append(float(lb))
        self._row_upper.append(float(ub))
        return len(self._row_lower) - 1

    def set_coefficient(self, row: int, col: int, coeff: float) -> None:
        self._coefficients[(row, col)] = float(coeff)

    def set_objective_coefficient(self, col: int, coeff: float) -> None:
        self._objective[col] = float(coeff)

    def set_maximization(self) -> None:
        self._maximize = True

    def set_minimization(self) -> None:
        self._maximize = False

    def set_time_limit(self, seconds: Optional[float]) -> None:
        self._time_limit = seconds

    def _build_arrays(self):
        """
        Convert the model to the array form passed to HiGHS.

        Returns
        -------
        c, l, u, integrality : np.ndarray
            Objective (already negated when maximizing), variable bounds and
            integrality flags, each of length n
        A : scipy.sparse.csr_matrix
            Constraint matrix (m x n)
        AL, AU : np.ndarray
            Row bounds (length m)
        """
        n = len(self._names)
        m = len(self._row_lower)

        c = np.zeros(n)
        for col, coef in self._objective.items():
            c[col] = coef
        if self._maximize:
            c = -c

        l = _ensure_contiguous_float64(self._lower)
        u = _ensure_contiguous_float64(self._upper)
        integrality = np.array(self._integrality, dtype=np.int32)

        if m == 0:
            A = sparse.csr_matrix((0, n))
        else:
            rows = []
            cols = []
            data = []
            for (row, col), coef in self._coefficients.items():
                rows.append(row)
                cols.append(col)
                data.append(coef)
            A = sparse.coo_matrix((data, (rows, cols)), shape=(m, n)).tocsr()

        AL = _ensure_contiguous_float64(self._row_lower)
        AU = _ensure_contiguous_float64(self._row_upper)
        return c, l, u, integrality, A, AL, AU

    def _validate(self, c, l, u, A, AL, AU) -> Optional[str]:
        """Return a reason the model is invalid, or None"""
        if np.any(l > u):
            bad = int(np.argmax(l > u))
            return f"variable {self._names[bad]!r} has lower bound {l[bad]} > upper bound {u[bad]}"
        if np.any(AL > AU):
            return f"row {int(np.argmax(AL > AU))} has lower bound > upper bound"
        if np.isnan(c).any() or np.isnan(A.data).any():
            return "NaN coefficient"
        if np.isnan(l).any() or np.isnan(u).any() or np.isnan(AL).any() or np.isnan(AU).any():
            return "NaN bound"
        return None

    def _options(self) -> dict:
        options = {
            'disp': bool(self.param.verbose),
            'presolve': bool(self.param.presolve),
        }
        time_limit = self._time_limit
        if time_limit is None and self.param.has_time_limit():
            time_limit = self.param.time_limit
        if time_limit is not None:
            options['time_limit'] = float(time_limit)
        if self.param.mip_rel_gap is not None:
            options['mip_rel_gap'] = float(self.param.mip_rel_gap)
        if self.param.node_limit is not None:
            options['node_limit'] = int(self.param.node_limit)
        return options

    def solve(self) -> int:
        self._x = None
        self._objective_value = math.nan
        self._best_bound = math.nan

        if not self._names:
            self._x = np.zeros(0)
            self._objective_value = 0.0
            self._best_bound = 0.0
            return int(ResultStatus.OPTIMAL)

        c, l, u, integrality, A, AL, AU = self._build_arrays()

        reason = self._validate(c, l, u, A, AL, AU)
        if reason is not None:
            logger.warning(f"HiGHS model rejected: {reason}")
            return int(ResultStatus.MODEL_INVALID)

        constraints = LinearConstraint(A, AL, AU) if A.shape[0] > 0 else None
        options = self._options()
        try:
            res = milp(
                c,
                integrality=integrality,
                bounds=Bounds(l, u),
                constraints=constraints,
                options=options,
            )
            logger.debug(f"HiGHS finished with status {res.status}: {res.message}")

            if res.status == 4 and options['presolve'] and _is_infeasible_or_unbounded(res):
                # Presolve cannot tell the two apart; the full solve can
                options['presolve'] = False
                res = milp(
                    c,
                    integrality=integrality,
                    bounds=Bounds(l, u),
                    constraints=constraints,
                    options=options,
                )
                logger.debug(f"HiGHS re-solve without presolve: {res.status}: {res.message}")
        except ValueError as e:
            logger.warning(f"HiGHS model rejected: {e}")
            return int(ResultStatus.MODEL_INVALID)

        if res.status == 1:
            status = ResultStatus.FEASIBLE if res.x is not None else ResultStatus.NOT_SOLVED
        else:
            status = _SCIPY_STATUS.get(res.status, ResultStatus.ABNORMAL)

        if status in (ResultStatus.OPTIMAL, ResultStatus.FEASIBLE) and res.x is not None:
            sign = -1.0 if self._maximize else 1.0
            self._x = np.asarray(res.x, dtype=np.float64)
            self._objective_value = sign * float(res.fun)
            dual_bound = getattr(res, 'mip_dual_bound', None) if any(self._integrality) else None
            if dual_bound is not None and math.isfinite(dual_bound):
                self._best_bound = sign * float(dual_bound)
            elif status == ResultStatus.OPTIMAL or not any(self._integrality):
                # Pure LPs carry no MIP bound; an LP optimum is its own bound
                self._best_bound = self._objective_value
            else:
                self._best_bound = -sign * math.inf

        return int(status)

    def objective_value(self) -> float:
        return self._objective_value

    def best_bound(self) -> float:
        return self._best_bound

    def solution_value(self, col: int) -> float:
        if self._x is None:
            return math.nan
        return float(self._x[col])

    def close(self) -> None:
        self._coefficients.clear()
        self._objective.clear()
        self._x = None

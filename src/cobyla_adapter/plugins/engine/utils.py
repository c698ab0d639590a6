"""Utilities for use by engine plugins.

Engines that do not support all termination criteria natively can wrap the
cost function in an
[`EvaluationTracker`][cobyla_adapter.plugins.engine.utils.EvaluationTracker].
The tracker counts evaluations, keeps the best feasible candidate, and, if
requested, stops the engine by raising
[`EngineStop`][cobyla_adapter.plugins.engine.utils.EngineStop] when a budget,
the stop value, or a tolerance is reached.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable

import numpy as np

from cobyla_adapter.enums import RawStatus

from .base import EngineResult

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .base import EngineSettings


class EngineStop(Exception):  # noqa: N818
    """Raised by a tracker to stop an engine, carrying the raw status."""

    def __init__(self, status: RawStatus) -> None:
        """Initialize the exception.

        Args:
            status: The raw status describing why the engine stops.
        """
        self.status = status
        super().__init__(status.name)


class EvaluationTracker:
    """Track the evaluations of an engine run.

    The tracker is called in place of the cost function. It records the number
    of evaluations, the best feasible candidate, and the last candidate.

    If `enforce` is `True`, the criteria of the settings are checked:

    - Before an evaluation, the evaluation budget (`max_eval`) and the time
      budget (`max_time`).
    - After an evaluation that improves the best feasible candidate, the stop
      value, and the objective and parameter tolerances, comparing the new best
      candidate with the previous one.
    """

    def __init__(
        self,
        function: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        settings: EngineSettings,
        *,
        enforce: bool = False,
    ) -> None:
        """Initialize the tracker.

        Args:
            function: The cost function.
            settings: The settings of the run.
            enforce:  If `True`, raise `EngineStop` when a criterion is met.
        """
        self._function = function
        self._settings = settings
        self._enforce = enforce
        self._start = time.perf_counter()
        self.evaluations = 0
        self.best_x: NDArray[np.float64] | None = None
        self.best_cost: NDArray[np.float64] | None = None
        self.last_x: NDArray[np.float64] | None = None
        self.last_cost: NDArray[np.float64] | None = None

    def __call__(self, x: NDArray[np.float64]) -> NDArray[np.float64]:
        """Evaluate the cost function at `x`.

        Args:
            x: The parameter vector.

        Returns:
            The cost vector.

        Raises:
            EngineStop: If a termination criterion is met.
        """
        if self._enforce:
            self._check_budgets()
        x = np.array(x, dtype=np.float64)
        cost = self._function(x)
        self.evaluations += 1
        self.last_x, self.last_cost = x, cost
        if self._is_feasible(cost) and not np.isnan(cost[0]):
            if self.best_cost is None or cost[0] <= self.best_cost[0]:
                prev_x, prev_cost = self.best_x, self.best_cost
                self.best_x, self.best_cost = x, cost
                if self._enforce:
                    self._check_improvement(x, cost, prev_x, prev_cost)
        return cost

    def result(self, status: int, message: str = "") -> EngineResult:
        """Build the engine result from the tracked candidates.

        Args:
            status:  The raw status.
            message: A description of the outcome.

        Returns:
            The result, holding the best feasible candidate, the last one if
            none was feasible, or no candidate if nothing was evaluated.
        """
        if self.best_x is not None:
            x, cost = self.best_x, self.best_cost
        else:
            x, cost = self.last_x, self.last_cost
        return EngineResult(
            x=x,
            cost=cost,
            status=int(status),
            evaluations=self.evaluations,
            message=message,
        )

    def _is_feasible(self, cost: NDArray[np.float64]) -> bool:
        return bool(np.all(cost[1:] >= -self._settings.constraint_tolerance))

    def _check_budgets(self) -> None:
        # The start point is always evaluated.
        if self.evaluations == 0:
            return
        max_eval = self._settings.max_eval
        if max_eval is not None and self.evaluations >= max_eval:
            raise EngineStop(RawStatus.MAXEVAL_REACHED)
        max_time = self._settings.max_time
        if max_time is not None and time.perf_counter() - self._start >= max_time:
            raise EngineStop(RawStatus.MAXTIME_REACHED)

    def _check_improvement(
        self,
        x: NDArray[np.float64],
        cost: NDArray[np.float64],
        prev_x: NDArray[np.float64] | None,
        prev_cost: NDArray[np.float64] | None,
    ) -> None:
        stop_val = self._settings.stop_val
        if stop_val is not None and cost[0] <= stop_val:
            raise EngineStop(RawStatus.STOPVAL_REACHED)
        if prev_x is None or prev_cost is None:
            return
        tols = self._settings.stop_tols
        if _relative_stop(cost[0], prev_cost[0], tols.ftol_rel, tols.ftol_abs):
            raise EngineStop(RawStatus.FTOL_REACHED)
        if tols.has_xtol and _x_stop(x, prev_x, tols.xtol_rel, tols.xtol_abs):
            raise EngineStop(RawStatus.XTOL_REACHED)


def _relative_stop(new: float, old: float, reltol: float, abstol: float) -> bool:
    diff = abs(new - old)
    return bool(
        diff < abstol
        or diff < reltol * (abs(new) + abs(old)) * 0.5
        or (reltol > 0 and new == old)
    )


def _x_stop(
    x: NDArray[np.float64],
    prev_x: NDArray[np.float64],
    xtol_rel: float,
    xtol_abs: NDArray[np.float64] | None,
) -> bool:
    diff = np.abs(x - prev_x)
    abs_ok = np.zeros(x.size, dtype=np.bool_)
    if xtol_abs is not None:
        abs_ok = diff < xtol_abs
    rel_ok = diff < xtol_rel * np.abs(x)
    return bool(np.all(abs_ok | rel_ok))


class CostCache:
    """Cache the cost vector of the last evaluated point.

    Engines that request the objective and each constraint through separate
    functions at the same point use this cache to evaluate the cost vector
    only once per point.
    """

    def __init__(
        self, function: Callable[[NDArray[np.float64]], NDArray[np.float64]]
    ) -> None:
        """Initialize the cache.

        Args:
            function: The cost function.
        """
        self._function = function
        self._variables: NDArray[np.float64] | None = None
        self._cost: NDArray[np.float64] | None = None

    def __call__(self, variables: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the cost vector at a point, evaluating it if needed.

        Args:
            variables: The parameter vector.

        Returns:
            The cost vector.
        """
        if (
            self._cost is None
            or self._variables is None
            or not np.array_equal(variables, self._variables)
        ):
            self._variables = np.array(variables, dtype=np.float64)
            self._cost = None
            self._cost = self._function(self._variables)
        return self._cost

    def objective(self, variables: NDArray[np.float64]) -> float:
        """Return the objective value at a point.

        Args:
            variables: The parameter vector.

        Returns:
            The objective value.
        """
        return float(self(variables)[0])

    def constraint(self, index: int) -> Callable[[NDArray[np.float64]], float]:
        """Return a function computing a single constraint value.

        Args:
            index: The index of the constraint.

        Returns:
            A function of the parameter vector.
        """

        def _constraint(variables: NDArray[np.float64]) -> float:
            return float(self(variables)[index + 1])

        return _constraint

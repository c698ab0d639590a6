"""The executor driving solvers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Self

from cobyla_adapter.config import ExecutorConfig
from cobyla_adapter.enums import ObserverMode, SuccessStatus

from ._observers import ObserverSchedule
from ._problem import Problem

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from ._observers import Observer
    from ._problem import CostFunction
    from ._solver import Solver
    from ._state import CobylaState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OptimizationResult:
    """The outcome of an executor run.

    Attributes:
        problem: The problem, holding the evaluation counters of the last step.
        solver:  The solver.
        state:   The final state.
    """

    problem: Problem
    solver: Solver
    state: CobylaState

    @property
    def success(self) -> bool:
        """Whether the run terminated with a success status."""
        return isinstance(self.state.status, SuccessStatus)

    def __str__(self) -> str:
        """Return a readable report of the run."""
        state = self.state
        lines = [
            "OptimizationResult:",
            f"    Solver:        {self.solver.name}",
            f"    param (best):  {state.best_param if state.has_best() else None}",
            f"    cost (best):   {state.best_cost if state.has_best() else None}",
            f"    iters (best):  {state.last_best_iter}",
            f"    iters (total): {state.iter}",
            f"    evaluations:   {state.counts.get('cost_count', 0)}",
            f"    termination:   {_status_name(state)}",
        ]
        if state.time is not None:
            lines.append(f"    time:          {state.time:.6f}s")
        return "\n".join(lines)


class Executor:
    """Drive a solver until its state is terminated.

    The executor owns the run loop shared by all solvers: it initializes the
    solver, calls its `next_iter` method until the state carries a
    termination status, enforces the iteration and time budgets, and notifies
    the attached observers.

    Algorithmic failures are reported through the status of the returned
    state. Configuration errors and exceptions raised by the cost function are
    propagated.

    ```py
    result = (
        Executor(problem, CobylaSolver([1.0, 1.0]))
        .configure(max_iters=100)
        .add_observer(LoggingObserver(), ObserverMode.ALWAYS)
        .run()
    )
    ```
    """

    def __init__(
        self,
        problem: Problem | CostFunction | Callable[[NDArray[Any]], ArrayLike],
        solver: Solver,
        state: CobylaState | None = None,
    ) -> None:
        """Initialize the executor.

        If no state is given, it is obtained from the `initial_state` method
        of the solver.

        Args:
            problem: The problem, or a cost function to wrap in a problem.
            solver:  The solver.
            state:   The initial state (optional).
        """
        self._problem = problem if isinstance(problem, Problem) else Problem(problem)
        self._solver = solver
        if state is None:
            initial_state = getattr(solver, "initial_state", None)
            if initial_state is None:
                msg = f"solver {solver.name} cannot create a state"
                raise ValueError(msg)
            state = initial_state()
        self._state: CobylaState = state
        self._config = ExecutorConfig()
        self._observers: list[tuple[Observer, ObserverSchedule]] = []

    def configure(self, **kwargs: Any) -> Self:  # noqa: ANN401
        """Configure the run.

        The keyword arguments are fields of
        [`ExecutorConfig`][cobyla_adapter.config.ExecutorConfig].

        Returns:
            The executor, allowing for method chaining.
        """
        self._config = ExecutorConfig.model_validate(
            dict(self._config) | kwargs
        )
        return self

    def timer(self, timer: bool) -> Self:  # noqa: FBT001
        """Switch timing of the run on or off.

        Args:
            timer: If `True`, the elapsed time is stored in the state.

        Returns:
            The executor, allowing for method chaining.
        """
        return self.configure(timer=timer)

    def add_observer(
        self, observer: Observer, mode: ObserverMode | ObserverSchedule
    ) -> Self:
        """Attach an observer.

        Args:
            observer: The observer.
            mode:     When to notify the observer; use
                      [`every`][cobyla_adapter.optimization.every] for
                      periodic notifications.

        Returns:
            The executor, allowing for method chaining.
        """
        schedule = mode if isinstance(mode, ObserverSchedule) else ObserverSchedule(mode)
        self._observers.append((observer, schedule))
        return self

    def run(self) -> OptimizationResult:
        """Run the solver.

        Returns:
            The result, wrapping the final state.
        """
        state = self._state
        state.max_iters = self._config.max_iters
        state.max_time = self._config.max_time
        state.iprint = self._config.iprint

        start = time.perf_counter()
        logger.info("starting %s", self._solver.name)

        state, kv = self._solver.init(self._problem, state)
        self._update_counts(state)
        for observer, _ in self._observers:
            observer.observe_init(self._solver.name, kv)

        while not state.terminated:
            elapsed = time.perf_counter() - start
            if state.max_iters is not None and state.iter >= state.max_iters:
                state.finish(SuccessStatus.MAXEVAL_REACHED)
                break
            if state.max_time is not None and elapsed >= state.max_time:
                state.finish(SuccessStatus.MAXTIME_REACHED)
                break

            state, kv = self._solver.next_iter(self._problem, state)
            self._update_counts(state)
            if self._config.timer:
                state.time = time.perf_counter() - start
            for observer, schedule in self._observers:
                if schedule.notify(state):
                    observer.observe_iter(state, kv)

            if not state.terminated and self._solver.terminate(state):
                state.finish(SuccessStatus.SUCCESS)

        if self._config.timer:
            state.time = time.perf_counter() - start
        logger.info(
            "%s terminated after %d iterations: %s",
            self._solver.name,
            state.iter,
            _status_name(state),
        )
        self._state = state
        return OptimizationResult(problem=self._problem, solver=self._solver, state=state)

    def _update_counts(self, state: CobylaState) -> None:
        for name, value in self._problem.take_counts().items():
            state.increment_count(name, value)


def _status_name(state: CobylaState) -> str:
    if state.status is None:
        return "running"
    return f"{type(state.status).__name__}.{state.status.name}"

import logging
from typing import Any

import numpy as np
import pytest
from pydantic import ValidationError

from cobyla_adapter.enums import ObserverMode, Phase, SuccessStatus
from cobyla_adapter.optimization import (
    CobylaState,
    Executor,
    LoggingObserver,
    Observer,
    ObserverSchedule,
    Problem,
    Solver,
    every,
)

_COSTS = [3.0, 1.0, 2.0, 0.0, 5.0, 4.0]


class _SequenceSolver(Solver):
    """Solver moving through a fixed sequence of costs, one per iteration."""

    name = "sequence"

    def __init__(self, costs: list[float], stop_at: int | None = None) -> None:
        self._costs = costs
        self._stop_at = stop_at

    def cost(self, problem: Problem, x: Any) -> Any:
        return problem.cost(x)

    def next_iter(
        self, problem: Problem, state: CobylaState
    ) -> tuple[CobylaState, dict[str, Any]]:
        state.begin()
        value = self._costs[state.iter % len(self._costs)]
        self.cost(problem, state.param)
        state.update(state.param, [value])
        return state, {"value": value}

    def terminate(self, state: CobylaState) -> bool:
        return self._stop_at is not None and state.iter >= self._stop_at


class _RecordingObserver(Observer):
    def __init__(self) -> None:
        self.init_calls: list[tuple[str, dict[str, Any]]] = []
        self.iters: list[int] = []
        self.best_costs: list[float] = []

    def observe_init(self, name: str, kv: dict[str, Any]) -> None:
        self.init_calls.append((name, kv))

    def observe_iter(self, state: CobylaState, kv: dict[str, Any]) -> None:  # noqa: ARG002
        self.iters.append(state.iter)
        self.best_costs.append(state.best_cost)


def _zero(x: Any) -> Any:
    return np.zeros(1) + 0 * x[0]


def test_executor_max_iters() -> None:
    result = (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_iters=5)
        .run()
    )
    assert result.state.iter == 5
    assert result.state.status == SuccessStatus.MAXEVAL_REACHED
    assert result.state.phase == Phase.EXHAUSTED
    assert result.state.counts["cost_count"] == 5
    assert result.state.best_cost == 0.0
    assert result.success


def test_executor_max_time() -> None:
    result = (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_time=1e-9)
        .run()
    )
    assert result.state.status == SuccessStatus.MAXTIME_REACHED
    assert result.state.iter <= 1


def test_executor_solver_terminate() -> None:
    result = Executor(_zero, _SequenceSolver(_COSTS, stop_at=2), CobylaState([0.0])).run()
    assert result.state.iter == 2
    assert result.state.status == SuccessStatus.SUCCESS


def test_executor_requires_state() -> None:
    with pytest.raises(ValueError, match="solver sequence cannot create a state"):
        Executor(_zero, _SequenceSolver(_COSTS))


def test_executor_configure() -> None:
    executor = Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
    with pytest.raises(ValidationError):
        executor.configure(max_iters=-1)
    with pytest.raises(ValidationError):
        executor.configure(foo=1)


def test_executor_timer() -> None:
    state = CobylaState([0.0])
    result = (
        Executor(_zero, _SequenceSolver(_COSTS), state)
        .configure(max_iters=2, iprint=1)
        .timer(True)
        .run()
    )
    assert result.state.time is not None
    assert result.state.time >= 0.0
    assert result.state.iprint == 1

    result = (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_iters=2)
        .run()
    )
    assert result.state.time is None


@pytest.mark.parametrize(
    ("mode", "iters"),
    [
        (ObserverMode.ALWAYS, [1, 2, 3, 4, 5, 6]),
        (ObserverMode.NEVER, []),
        (ObserverMode.NEW_BEST, [1, 2, 4]),
        (every(2), [2, 4, 6]),
        (every(4), [4]),
    ],
)
def test_observer_modes(mode: ObserverMode | ObserverSchedule, iters: list[int]) -> None:
    observer = _RecordingObserver()
    (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_iters=6)
        .add_observer(observer, mode)
        .run()
    )
    assert observer.iters == iters
    assert observer.init_calls == [("sequence", {})]


def test_observer_best_cost_monotone() -> None:
    observer = _RecordingObserver()
    (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_iters=6)
        .add_observer(observer, ObserverMode.ALWAYS)
        .run()
    )
    assert observer.best_costs == [3.0, 1.0, 1.0, 0.0, 0.0, 0.0]


def test_observer_schedule_period() -> None:
    with pytest.raises(ValueError, match="the observer period must be positive"):
        every(0)


def test_logging_observer(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        (
            Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
            .configure(max_iters=2)
            .add_observer(LoggingObserver(), ObserverMode.ALWAYS)
            .run()
        )
    assert "iter: 1, cost: 3.0, best_cost: 3.0, cost_count: 1, value: 3.0" in caplog.text
    assert "iter: 2, cost: 1.0, best_cost: 1.0, cost_count: 2, value: 1.0" in caplog.text
    assert "sequence terminated after 2 iterations" in caplog.text


def test_problem_cost_function_protocol() -> None:
    class _Problem:
        def cost(self, x: Any) -> Any:
            x[0] = 100.0
            return [1.0, 2.0]

    problem = Problem(_Problem())
    x = np.array([0.0])
    assert np.array_equal(problem.cost(x), [1.0, 2.0])
    assert x[0] == 0.0
    assert problem.take_counts() == {"cost_count": 1}
    assert problem.take_counts() == {}


def test_problem_not_callable() -> None:
    with pytest.raises(TypeError, match="not a cost function"):
        Problem(1)  # type: ignore[arg-type]


def test_result_str() -> None:
    result = (
        Executor(_zero, _SequenceSolver(_COSTS), CobylaState([0.0]))
        .configure(max_iters=3)
        .run()
    )
    text = str(result)
    assert "Solver:        sequence" in text
    assert "cost (best):   1.0" in text
    assert "termination:   SuccessStatus.MAXEVAL_REACHED" in text

from typing import Any, Callable, Sequence

import numpy as np
import pytest
from numpy.typing import NDArray

from cobyla_adapter.enums import RawStatus
from cobyla_adapter.plugins.engine import CobylaEngine, EngineResult, EngineSettings
from cobyla_adapter.plugins.engine.utils import EvaluationTracker

_Function = Callable[[NDArray[np.float64]], NDArray[np.float64]]


def pytest_addoption(parser: Any) -> Any:
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="run slow tests"
    )


def pytest_collection_modifyitems(config: Any, items: Sequence[Any]) -> None:
    if not config.getoption("--run-slow"):
        skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


def _paraboloid(x: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.array([10.0 * (x[0] + 1.0) ** 2 + x[1] ** 2, x[0]])


class RecordingFunction:
    """Cost function recording the points it is evaluated at."""

    def __init__(self, function: _Function) -> None:
        self._function = function
        self.points: list[NDArray[np.float64]] = []

    def __call__(self, x: NDArray[np.float64]) -> NDArray[np.float64]:
        self.points.append(np.array(x))
        return self._function(x)


class StubEngine(CobylaEngine):
    """Engine evaluating a fixed pattern of points around the start point.

    The points are `x0 + offset * rhobeg` for the given offsets, after the
    start point itself. The returned status is fixed.
    """

    def __init__(
        self,
        status: int = RawStatus.SUCCESS,
        offsets: Sequence[Sequence[float]] = (),
    ) -> None:
        self.status = status
        self.offsets = [np.asarray(offset, dtype=np.float64) for offset in offsets]
        self.calls: list[tuple[NDArray[np.float64], EngineSettings]] = []

    def minimize(
        self,
        function: _Function,
        x0: NDArray[np.float64],
        settings: EngineSettings,
    ) -> EngineResult:
        self.calls.append((x0.copy(), settings))
        tracker = EvaluationTracker(function, settings)
        tracker(x0)
        for offset in self.offsets:
            tracker(x0 + offset * settings.rhobeg)
        return tracker.result(self.status, "stub")


@pytest.fixture(name="paraboloid")
def paraboloid_fixture() -> _Function:
    return _paraboloid


@pytest.fixture(name="recorder")
def recorder_fixture() -> Callable[[_Function], RecordingFunction]:
    return RecordingFunction


@pytest.fixture(name="stub_engine")
def stub_engine_fixture() -> type[StubEngine]:
    return StubEngine

from typing import Any

import numpy as np
import pytest

from cobyla_adapter.cobyla import CobylaSolver
from cobyla_adapter.config import RhoBeg, StopTols
from cobyla_adapter.enums import FailStatus, Phase, RawStatus, SuccessStatus
from cobyla_adapter.exceptions import ForcedStop
from cobyla_adapter.optimization import Executor
from cobyla_adapter.plugins.engine import EngineSettings
from cobyla_adapter.plugins.engine.scipy import SciPyEngine, _raw_status, _rhoend

initial_values = [1.0, 1.0]


def test_scipy_paraboloid(paraboloid: Any) -> None:
    result = (
        Executor(paraboloid, CobylaSolver(initial_values, rhobeg=RhoBeg.uniform(1.0)))
        .configure(max_iters=100)
        .run()
    )
    state = result.state
    assert result.success
    assert np.allclose(state.best_param, [0.0, 0.0], atol=1e-2)
    assert state.best_cost == pytest.approx(10.0, abs=1e-2)
    assert state.best_constraints[0] >= -1e-8
    assert 0 < state.counts["cost_count"] <= 100


def test_scipy_first_evaluation_is_start_point(recorder: Any, paraboloid: Any) -> None:
    function = recorder(paraboloid)
    solver = CobylaSolver(initial_values, rhobeg=[0.5, 2.0], constraint_count=1)
    Executor(function, solver).configure(max_iters=10).run()
    assert np.array_equal(function.points[0], initial_values)


def test_scipy_disabled_tolerances(paraboloid: Any) -> None:
    result = (
        Executor(paraboloid, CobylaSolver(initial_values, stop_tols=StopTols()))
        .configure(max_iters=100)
        .run()
    )
    assert result.state.status == SuccessStatus.MAXEVAL_REACHED
    assert result.state.phase == Phase.EXHAUSTED
    assert result.state.counts["cost_count"] == 100
    assert np.allclose(result.state.best_param, [0.0, 0.0], atol=1e-2)


def test_scipy_disabled_tolerances_without_budget(paraboloid: Any) -> None:
    settings = EngineSettings(rhobeg=np.ones(2), constraint_count=1)
    result = SciPyEngine().minimize(paraboloid, np.array(initial_values), settings)
    assert result.status == RawStatus.ROUNDOFF_LIMITED
    assert np.allclose(result.x, [0.0, 0.0], atol=1e-2)


def test_scipy_stop_val(paraboloid: Any) -> None:
    solver = CobylaSolver(initial_values).with_stop_val(15.0)
    result = Executor(paraboloid, solver).configure(max_iters=100).run()
    assert result.state.status == SuccessStatus.STOPVAL_REACHED
    assert result.state.phase == Phase.CONVERGED
    assert result.state.best_cost <= 15.0


def test_scipy_ftol(paraboloid: Any) -> None:
    solver = CobylaSolver(initial_values, stop_tols=StopTols(ftol_rel=1e-4))
    result = Executor(paraboloid, solver).configure(max_iters=500).run()
    assert result.state.status == SuccessStatus.FTOL_REACHED
    assert result.state.best_cost == pytest.approx(10.0, abs=0.5)


def test_scipy_xtol(paraboloid: Any) -> None:
    solver = CobylaSolver(initial_values, stop_tols=StopTols(xtol_abs=[1e-4, 1e-4]))
    result = Executor(paraboloid, solver).configure(max_iters=500).run()
    assert result.state.status == SuccessStatus.XTOL_REACHED
    assert np.allclose(result.state.best_param, [0.0, 0.0], atol=1e-2)


def test_scipy_per_dimension_rhobeg(paraboloid: Any) -> None:
    solver = CobylaSolver(initial_values, rhobeg=RhoBeg.per_dimension([0.5, 2.0]))
    result = Executor(paraboloid, solver).configure(max_iters=200).run()
    assert result.success
    assert np.allclose(result.state.best_param, [0.0, 0.0], atol=1e-2)


def test_scipy_rhobeg_uniform_equals_per_dimension(
    recorder: Any, paraboloid: Any
) -> None:
    points = []
    for rhobeg in (RhoBeg.uniform(0.5), RhoBeg.per_dimension([0.5, 0.5])):
        function = recorder(paraboloid)
        solver = CobylaSolver(initial_values, rhobeg=rhobeg)
        Executor(function, solver).configure(max_iters=40).run()
        points.append(function.points)
    assert len(points[0]) == len(points[1])
    for point1, point2 in zip(*points, strict=True):
        assert np.array_equal(point1, point2)


def test_scipy_forced_stop(paraboloid: Any) -> None:
    count = 0

    def _function(x: Any) -> Any:
        nonlocal count
        count += 1
        if count > 5:
            msg = "stop"
            raise ForcedStop(msg)
        return paraboloid(x)

    result = Executor(_function, CobylaSolver(initial_values)).configure(max_iters=100).run()
    assert result.state.status == FailStatus.FORCED_STOP
    assert result.state.phase == Phase.FAILED
    assert not result.success
    assert result.state.has_best()


def test_scipy_user_exception(paraboloid: Any) -> None:
    count = 0

    def _function(x: Any) -> Any:
        nonlocal count
        count += 1
        if count > 3:
            msg = "evaluation failed"
            raise ValueError(msg)
        return paraboloid(x)

    with pytest.raises(ValueError, match="evaluation failed"):
        Executor(_function, CobylaSolver(initial_values)).configure(max_iters=100).run()


def test_scipy_max_time(paraboloid: Any) -> None:
    settings = EngineSettings(rhobeg=np.ones(2), constraint_count=1, max_time=1e-9)
    result = SciPyEngine().minimize(paraboloid, np.array(initial_values), settings)
    assert result.status == RawStatus.MAXTIME_REACHED
    assert result.evaluations == 1
    assert np.array_equal(result.x, initial_values)


def test_scipy_rhoend() -> None:
    x0 = np.array([1.0, 0.0])
    rhobeg = np.array([0.5, 2.0])
    settings = EngineSettings(rhobeg=rhobeg)
    assert _rhoend(x0, rhobeg, settings) == 1e-12

    settings = EngineSettings(rhobeg=rhobeg, stop_tols=StopTols(xtol_abs=[1e-3, 1e-2]))
    assert _rhoend(x0, rhobeg, settings) == pytest.approx(2e-3)

    settings = EngineSettings(rhobeg=rhobeg, stop_tols=StopTols(xtol_rel=1e-4))
    assert _rhoend(x0, rhobeg, settings) == pytest.approx(2e-4)

    settings = EngineSettings(rhobeg=rhobeg, stop_tols=StopTols(xtol_abs=[10.0, 10.0]))
    assert _rhoend(x0, rhobeg, settings) == 1.0


@pytest.mark.parametrize(
    ("success", "message", "stop_tols", "expected"),
    [
        (True, "Optimization terminated successfully.", StopTols(), RawStatus.SUCCESS),
        (
            True,
            "Optimization terminated successfully.",
            StopTols(xtol_rel=1e-6),
            RawStatus.XTOL_REACHED,
        ),
        (
            False,
            "Maximum number of function evaluations has been exceeded.",
            StopTols(),
            RawStatus.MAXEVAL_REACHED,
        ),
        (False, "Did not converge due to rounding errors.", StopTols(), RawStatus.ROUNDOFF_LIMITED),
        (False, "Something else.", StopTols(), RawStatus.FAILURE),
    ],
)
def test_scipy_raw_status(
    success: bool,  # noqa: FBT001
    message: str,
    stop_tols: StopTols,
    expected: RawStatus,
) -> None:
    settings = EngineSettings(rhobeg=np.ones(2), stop_tols=stop_tols)
    assert _raw_status(success, message, settings) == expected

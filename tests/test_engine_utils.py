from typing import Any

import numpy as np
import pytest

from cobyla_adapter.config import StopTols
from cobyla_adapter.enums import RawStatus
from cobyla_adapter.plugins.engine import EngineSettings
from cobyla_adapter.plugins.engine.utils import CostCache, EngineStop, EvaluationTracker


def _settings(**kwargs: Any) -> EngineSettings:
    return EngineSettings(rhobeg=np.ones(2), constraint_count=1, **kwargs)


def _function(x: Any) -> Any:
    return np.array([float(np.sum(x**2)), x[0]])


def test_tracker_best_and_last() -> None:
    tracker = EvaluationTracker(_function, _settings())
    tracker(np.array([1.0, 1.0]))
    tracker(np.array([0.5, 0.0]))
    tracker(np.array([-0.1, 0.0]))
    assert tracker.evaluations == 3
    result = tracker.result(RawStatus.SUCCESS, "done")
    assert np.array_equal(result.x, [0.5, 0.0])
    assert result.cost[0] == 0.25
    assert result.status == 1
    assert result.evaluations == 3
    assert result.message == "done"


def test_tracker_infeasible_falls_back_to_last() -> None:
    tracker = EvaluationTracker(_function, _settings())
    tracker(np.array([-1.0, 1.0]))
    tracker(np.array([-2.0, 1.0]))
    result = tracker.result(RawStatus.FAILURE)
    assert np.array_equal(result.x, [-2.0, 1.0])


def test_tracker_no_evaluation() -> None:
    tracker = EvaluationTracker(_function, _settings())
    result = tracker.result(RawStatus.FORCED_STOP)
    assert result.x is None
    assert result.cost is None
    assert result.evaluations == 0


def test_tracker_max_eval() -> None:
    tracker = EvaluationTracker(_function, _settings(max_eval=2), enforce=True)
    tracker(np.array([1.0, 1.0]))
    tracker(np.array([2.0, 1.0]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([3.0, 1.0]))
    assert exc.value.status == RawStatus.MAXEVAL_REACHED
    assert tracker.evaluations == 2


def test_tracker_max_time_evaluates_start() -> None:
    tracker = EvaluationTracker(_function, _settings(max_time=1e-12), enforce=True)
    tracker(np.array([1.0, 1.0]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([2.0, 1.0]))
    assert exc.value.status == RawStatus.MAXTIME_REACHED


def test_tracker_stop_val() -> None:
    tracker = EvaluationTracker(_function, _settings(stop_val=1.0), enforce=True)
    tracker(np.array([1.0, 1.0]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([0.5, 0.5]))
    assert exc.value.status == RawStatus.STOPVAL_REACHED


def test_tracker_ftol() -> None:
    settings = _settings(stop_tols=StopTols(ftol_abs=1e-3))
    tracker = EvaluationTracker(_function, settings, enforce=True)
    tracker(np.array([1.0, 1.0]))
    tracker(np.array([0.5, 1.0]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([0.5, 0.9999]))
    assert exc.value.status == RawStatus.FTOL_REACHED


def test_tracker_ftol_rel() -> None:
    settings = _settings(stop_tols=StopTols(ftol_rel=1e-2))
    tracker = EvaluationTracker(_function, settings, enforce=True)
    tracker(np.array([1.0, 1.0]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([1.0, 0.999]))
    assert exc.value.status == RawStatus.FTOL_REACHED


def test_tracker_xtol() -> None:
    settings = _settings(stop_tols=StopTols(xtol_abs=[1e-2, 1e-2]))
    tracker = EvaluationTracker(_function, settings, enforce=True)
    tracker(np.array([1.0, 1.0]))
    tracker(np.array([0.5, 0.5]))
    with pytest.raises(EngineStop) as exc:
        tracker(np.array([0.499, 0.499]))
    assert exc.value.status == RawStatus.XTOL_REACHED


def test_tracker_disabled_tolerances() -> None:
    tracker = EvaluationTracker(_function, _settings(), enforce=True)
    for _ in range(50):
        tracker(np.array([1.0, 1.0]))
    for scale in np.linspace(1.0, 0.999, 50):
        tracker(np.array([scale, scale]))
    assert tracker.evaluations == 100


def test_tracker_improvement_only() -> None:
    settings = _settings(stop_tols=StopTols(ftol_abs=1.0))
    tracker = EvaluationTracker(_function, settings, enforce=True)
    tracker(np.array([1.0, 1.0]))
    # Worse and infeasible points do not trigger tolerance checks:
    tracker(np.array([1.0, 1.1]))
    tracker(np.array([-0.1, 0.0]))
    assert tracker.evaluations == 3


def test_cost_cache() -> None:
    calls = []

    def _counting(x: Any) -> Any:
        calls.append(x)
        return _function(x)

    cache = CostCache(_counting)
    x = np.array([0.5, 1.0])
    assert cache.objective(x) == 1.25
    assert cache.constraint(0)(x) == 0.5
    assert len(calls) == 1
    cache.objective(np.array([0.0, 1.0]))
    assert len(calls) == 2

"""This module implements the NLopt COBYLA engine plugin.

The [NLopt](https://nlopt.readthedocs.io/) library is an optional dependency,
installed with the `nlopt` extra. The plugin reports that it does not support
any method if the library is not available.
"""

from __future__ import annotations

import importlib.util
import logging
from typing import TYPE_CHECKING, Any, Callable, Final

import numpy as np

from cobyla_adapter.enums import RawStatus
from cobyla_adapter.exceptions import ForcedStop

from .base import CobylaEngine, EngineResult, EnginePlugin, EngineSettings
from .utils import CostCache, EvaluationTracker

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

_SUPPORTED_METHODS: Final = {"cobyla"}


class NLoptEngine(CobylaEngine):
    """COBYLA engine based on NLopt's `LN_COBYLA` algorithm.

    NLopt supports all termination criteria natively: per-parameter initial
    steps, relative and absolute tolerances on the objective and on the
    parameters, a stop value, and evaluation and time budgets. Its return
    codes are the raw codes of
    [`RawStatus`][cobyla_adapter.enums.RawStatus].

    NLopt expects constraints of the form `c(x) <= 0`; the constraint values
    are passed negated, with the feasibility slack as constraint tolerance.
    """

    def __init__(self) -> None:
        """Initialize the engine."""
        self._error: Exception | None = None

    def minimize(
        self,
        function: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        x0: NDArray[np.float64],
        settings: EngineSettings,
    ) -> EngineResult:
        """Run the optimization.

        See the [cobyla_adapter.plugins.engine.base.CobylaEngine][] abstract
        base class.

        # noqa
        """
        import nlopt  # noqa: PLC0415

        self._error = None
        tracker = EvaluationTracker(function, settings)
        cache = CostCache(tracker)
        x0 = np.array(x0, dtype=np.float64)

        opt = nlopt.opt(nlopt.LN_COBYLA, x0.size)
        opt.set_min_objective(self._objective(opt, cache))
        if settings.constraint_count > 0:
            opt.add_inequality_mconstraint(
                self._constraints(opt, cache),
                np.full(settings.constraint_count, settings.constraint_tolerance),
            )
        self._configure(opt, settings)

        message = ""
        try:
            opt.optimize(x0)
            status = opt.last_optimize_result()
        except nlopt.RoundoffLimited as exc:
            status, message = RawStatus.ROUNDOFF_LIMITED, str(exc)
        except nlopt.ForcedStop as exc:
            status, message = RawStatus.FORCED_STOP, str(exc)
        except ValueError as exc:
            status, message = RawStatus.INVALID_ARGS, str(exc)
        except MemoryError as exc:
            status, message = RawStatus.OUT_OF_MEMORY, str(exc)
        except RuntimeError as exc:
            status, message = RawStatus.FAILURE, str(exc)

        if self._error is not None:
            if not isinstance(self._error, ForcedStop):
                raise self._error
            status, message = RawStatus.FORCED_STOP, str(self._error)
        logger.debug("NLopt COBYLA returned %s", status)
        return tracker.result(status, message)

    def _objective(
        self, opt: Any, cache: CostCache  # noqa: ANN401
    ) -> Callable[[NDArray[np.float64], NDArray[np.float64]], float]:
        def _function(x: NDArray[np.float64], _: NDArray[np.float64]) -> float:
            try:
                return cache.objective(x)
            except Exception as exc:
                self._stop(opt, exc)
                return float("nan")

        return _function

    def _constraints(
        self, opt: Any, cache: CostCache  # noqa: ANN401
    ) -> Callable[[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]], None]:
        def _function(
            result: NDArray[np.float64],
            x: NDArray[np.float64],
            _: NDArray[np.float64],
        ) -> None:
            try:
                result[:] = -cache(x)[1:]
            except Exception as exc:
                self._stop(opt, exc)
                result[:] = np.nan

        return _function

    def _stop(self, opt: Any, exc: Exception) -> None:  # noqa: ANN401
        # Exceptions cannot cross the NLopt library, they are raised again
        # after the run.
        if self._error is None:
            self._error = exc
        opt.force_stop()

    def _configure(self, opt: Any, settings: EngineSettings) -> None:  # noqa: ANN401
        tols = settings.stop_tols
        opt.set_initial_step(np.asarray(settings.rhobeg, dtype=np.float64))
        opt.set_ftol_rel(tols.ftol_rel)
        opt.set_ftol_abs(tols.ftol_abs)
        opt.set_xtol_rel(tols.xtol_rel)
        if tols.xtol_abs is not None:
            opt.set_xtol_abs(np.asarray(tols.xtol_abs, dtype=np.float64))
        if settings.stop_val is not None:
            opt.set_stopval(settings.stop_val)
        if settings.max_eval is not None:
            opt.set_maxeval(settings.max_eval)
        if settings.max_time is not None:
            opt.set_maxtime(settings.max_time)


class NLoptEnginePlugin(EnginePlugin):
    """The NLopt engine plugin class."""

    @classmethod
    def create(cls, method: str) -> NLoptEngine:  # noqa: ARG003
        """Initialize the engine plugin.

        See the [cobyla_adapter.plugins.engine.base.EnginePlugin][] abstract
        base class.

        # noqa
        """
        return NLoptEngine()

    @classmethod
    def allows_discovery(cls) -> bool:
        """Only select this plugin if it is named explicitly.

        See the [cobyla_adapter.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return False

    @classmethod
    def is_supported(cls, method: str) -> bool:
        """Check if a method is supported.

        Methods are only supported if the NLopt library is installed.

        See the [cobyla_adapter.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return (
            method.lower() in (_SUPPORTED_METHODS | {"default"})
            and importlib.util.find_spec("nlopt") is not None
        )

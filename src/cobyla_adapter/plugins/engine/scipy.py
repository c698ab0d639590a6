"""This module implements the SciPy COBYLA engine plugin."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Final

import numpy as np
from scipy.optimize import minimize

from cobyla_adapter.config.options import OptionsSchemaModel
from cobyla_adapter.enums import RawStatus
from cobyla_adapter.exceptions import ForcedStop

from .base import CobylaEngine, EngineResult, EnginePlugin, EngineSettings
from .utils import CostCache, EngineStop, EvaluationTracker

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from scipy.optimize import OptimizeResult

logger = logging.getLogger(__name__)

_SUPPORTED_METHODS: Final = {"cobyla"}

# Bounds on the final trust region radius, in scaled coordinates:
_MIN_RHOEND: Final = 1e-12
_MAX_RHOEND: Final = 1.0


class SciPyEngine(CobylaEngine):
    """COBYLA engine based on `scipy.optimize.minimize`.

    This engine runs the COBYLA method of SciPy's
    [`scipy.optimize`](https://docs.scipy.org/doc/scipy/reference/optimize.html)
    module. SciPy supports a single initial step and a single final trust
    region radius, hence the engine optimizes in scaled coordinates
    `x = x0 + rhobeg * y`, starting at `y = 0` with a unit step. The final
    radius is derived from the parameter tolerances.

    The termination criteria that SciPy does not support (stop value,
    objective tolerances, evaluation and time budgets) are enforced by an
    [`EvaluationTracker`][cobyla_adapter.plugins.engine.utils.EvaluationTracker]
    wrapped around the cost function.

    Without parameter tolerances, SciPy converging on its minimal final radius
    does not end the run: the optimization is restarted from the best point
    until a budget or another criterion stops it. If no budget is set, the run
    ends with the `ROUNDOFF_LIMITED` raw status instead.

    The `options` of the configuration may contain `catol` (SciPy's tolerance
    on constraint violations) and `disp` (print convergence messages). The
    `disp` option is switched on if the verbosity level is positive.
    """

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
        tracker = EvaluationTracker(function, settings, enforce=True)
        x0 = np.array(x0, dtype=np.float64)
        rhobeg = np.asarray(settings.rhobeg, dtype=np.float64)
        has_budget = settings.max_eval is not None or settings.max_time is not None

        start = x0
        while True:
            try:
                result = self._run(tracker, start, rhobeg, settings)
            except EngineStop as exc:
                logger.debug("SciPy COBYLA stopped: %s", exc.status.name)
                return tracker.result(exc.status, exc.status.name.lower())
            except ForcedStop as exc:
                logger.debug("SciPy COBYLA stopped by the cost function")
                return tracker.result(RawStatus.FORCED_STOP, str(exc))

            message = str(result.message)
            if not result.success or settings.stop_tols.has_xtol:
                return tracker.result(
                    _raw_status(result.success, message, settings), message
                )
            # SciPy converged on its own final radius, which is not a
            # configured criterion. Only a budget may end the run.
            if not has_budget:
                return tracker.result(RawStatus.ROUNDOFF_LIMITED, message)
            start = tracker.best_x if tracker.best_x is not None else tracker.last_x
            assert start is not None
            logger.debug(
                "SciPy COBYLA converged after %d evaluations, restarting",
                tracker.evaluations,
            )

    def _run(
        self,
        tracker: EvaluationTracker,
        x0: NDArray[np.float64],
        rhobeg: NDArray[np.float64],
        settings: EngineSettings,
    ) -> OptimizeResult:
        def _to_x(y: NDArray[np.float64]) -> NDArray[np.float64]:
            return x0 + rhobeg * np.asarray(y, dtype=np.float64)

        cache = CostCache(lambda y: tracker(_to_x(y)))
        return minimize(
            fun=cache.objective,
            x0=np.zeros_like(x0),
            method="COBYLA",
            constraints=[
                {"type": "ineq", "fun": cache.constraint(idx)}
                for idx in range(settings.constraint_count)
            ],
            tol=_rhoend(x0, rhobeg, settings),
            options=self._options(settings),
        )

    def _options(self, settings: EngineSettings) -> dict[str, Any]:
        options = dict(settings.options)
        options["rhobeg"] = 1.0
        # The budget is enforced by the tracker, SciPy must not stop first:
        if settings.max_eval is not None:
            options["maxiter"] = max(
                settings.max_eval + 1, settings.rhobeg.size + 3
            )
        if settings.iprint > 0:
            options["disp"] = True
        return options


def _rhoend(
    x0: NDArray[np.float64], rhobeg: NDArray[np.float64], settings: EngineSettings
) -> float:
    tols = settings.stop_tols
    candidates = []
    if tols.xtol_abs is not None:
        candidates.extend(tols.xtol_abs[tols.xtol_abs > 0] / rhobeg[tols.xtol_abs > 0])
    if tols.xtol_rel > 0:
        scaled = tols.xtol_rel * np.abs(x0) / rhobeg
        candidates.extend(scaled[scaled > 0])
    if not candidates:
        return _MIN_RHOEND
    return float(np.clip(min(candidates), _MIN_RHOEND, _MAX_RHOEND))


def _raw_status(success: bool, message: str, settings: EngineSettings) -> RawStatus:  # noqa: FBT001
    if success:
        return (
            RawStatus.XTOL_REACHED if settings.stop_tols.has_xtol else RawStatus.SUCCESS
        )
    if "round" in message.lower():
        return RawStatus.ROUNDOFF_LIMITED
    if "maximum number of function evaluations" in message.lower():
        return RawStatus.MAXEVAL_REACHED
    return RawStatus.FAILURE


class SciPyEnginePlugin(EnginePlugin):
    """The SciPy engine plugin class."""

    @classmethod
    def create(cls, method: str) -> SciPyEngine:  # noqa: ARG003
        """Initialize the engine plugin.

        See the [cobyla_adapter.plugins.engine.base.EnginePlugin][] abstract
        base class.

        # noqa
        """
        return SciPyEngine()

    @classmethod
    def is_supported(cls, method: str) -> bool:
        """Check if a method is supported.

        See the [cobyla_adapter.plugins.base.Plugin][] abstract base class.

        # noqa
        """
        return method.lower() in (_SUPPORTED_METHODS | {"default"})

    @classmethod
    def validate_options(cls, method: str, options: dict[str, Any] | None) -> None:
        """Validate the options of a given method.

        See the [cobyla_adapter.plugins.engine.base.EnginePlugin][] abstract
        base class.

        # noqa
        """
        if options is not None:
            if method.lower() == "default":
                method = "cobyla"
            OptionsSchemaModel.model_validate(_OPTIONS_SCHEMA).get_options_model(
                method
            ).model_validate(options)


_OPTIONS_SCHEMA: dict[str, Any] = {
    "methods": {
        "cobyla": {
            "options": {
                "disp": bool,
                "catol": float,
            },
            "url": "https://docs.scipy.org/doc/scipy/reference/optimize.minimize-cobyla.html",
        },
    },
}


if __name__ == "__main__":
    from cobyla_adapter.config.options import gen_options_table

    with Path("scipy.md").open("w", encoding="utf-8") as fp:
        fp.write(gen_options_table(_OPTIONS_SCHEMA))

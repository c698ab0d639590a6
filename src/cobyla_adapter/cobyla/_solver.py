"""The COBYLA solver."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any, Self

import numpy as np

from cobyla_adapter.config import CobylaConfig, RhoBeg, StopTols
from cobyla_adapter.config.utils import immutable_array
from cobyla_adapter.exceptions import ConfigurationError, EvaluationError
from cobyla_adapter.optimization import CobylaState, Solver
from cobyla_adapter.plugins import PluginManager
from cobyla_adapter.plugins.engine import EngineSettings

from ._status import translate_status

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from cobyla_adapter.optimization import Problem
    from cobyla_adapter.plugins.engine import CobylaEngine

logger = logging.getLogger(__name__)


class CobylaSolver(Solver):
    """Solver adapting a COBYLA engine to the executor.

    COBYLA (Constrained Optimization BY Linear Approximation) is a
    derivative-free method for problems with inequality constraints. The
    problem returns a cost vector: the objective value followed by the
    constraint values, which are satisfied if non-negative.

    The engine runs the algorithm to completion in a single call, hence one
    solve step consists of one engine run, after which the state is updated
    with the best result and finished with the translated engine status. The
    iteration budget of the executor is passed to the engine as its
    evaluation budget.

    All vector settings are checked against the initial parameters when the
    solver is created, before any evaluation:

    ```py
    solver = CobylaSolver(
        [1.0, 1.0],
        rhobeg=RhoBeg.per_dimension([0.5, 0.5]),
        stop_tols=StopTols(ftol_rel=1e-6),
    )
    ```

    Solvers are not modified after creation; the `with_*` methods return
    reconfigured copies.
    """

    name = "cobyla"

    def __init__(
        self,
        initial_params: ArrayLike,
        *,
        config: CobylaConfig | dict[str, Any] | None = None,
        engine: CobylaEngine | str | None = None,
        **kwargs: Any,  # noqa: ANN401
    ) -> None:
        """Initialize the solver.

        The keyword arguments are fields of
        [`CobylaConfig`][cobyla_adapter.config.CobylaConfig], overriding the
        values of `config`.

        The engine is normally created by the engine plugin named in the
        configuration, after validating the engine options. The `engine`
        argument may name another engine, or it may be an engine object, in
        which case the options are passed to it without validation.

        Args:
            initial_params: The initial parameter vector.
            config:         The solver configuration.
            engine:         The engine name or object (optional).
            kwargs:         Configuration fields.

        Raises:
            ConfigurationError: If the configuration is inconsistent with the
                                initial parameters, or the engine is unknown.
        """
        self._initial_params = immutable_array(initial_params, dtype=np.float64)
        if self._initial_params.ndim != 1:
            msg = "the initial parameters must be a vector"
            raise ConfigurationError(msg)
        _check_finite(self._initial_params)
        if isinstance(engine, str):
            kwargs["engine"], engine = engine, None
        if config is None:
            config = CobylaConfig.model_validate(kwargs)
        elif isinstance(config, CobylaConfig):
            if kwargs:
                config = CobylaConfig.model_validate(dict(config) | kwargs)
        else:
            config = CobylaConfig.model_validate(config | kwargs)
        config.check_dimensions(self._initial_params.size)
        self._config = config
        self._engine = self._create_engine(config) if engine is None else engine

        self._constraint_count = config.constraint_count
        self._problem: Problem | None = None
        self._cached_x: NDArray[np.float64] | None = None
        self._cached_cost: NDArray[np.float64] | None = None

    @property
    def config(self) -> CobylaConfig:
        """The solver configuration."""
        return self._config

    @property
    def engine(self) -> CobylaEngine:
        """The COBYLA engine."""
        return self._engine

    @property
    def initial_params(self) -> NDArray[np.float64]:
        """The initial parameter vector."""
        return self._initial_params

    @property
    def constraint_count(self) -> int | None:
        """The number of constraints, `None` until configured or detected."""
        return self._constraint_count

    def with_rhobeg(self, rhobeg: RhoBeg | float | ArrayLike) -> Self:
        """Return a copy of the solver with another initial step.

        Args:
            rhobeg: The initial step.

        Returns:
            The new solver.
        """
        return self._reconfigure(rhobeg=rhobeg)

    def with_stop_tols(self, stop_tols: StopTols) -> Self:
        """Return a copy of the solver with other tolerances.

        Args:
            stop_tols: The tolerances.

        Returns:
            The new solver.
        """
        return self._reconfigure(stop_tols=stop_tols)

    def with_stop_val(self, stop_val: float | None) -> Self:
        """Return a copy of the solver with another stop value.

        Args:
            stop_val: The stop value, or `None` to disable it.

        Returns:
            The new solver.
        """
        return self._reconfigure(stop_val=stop_val)

    def initial_state(self) -> CobylaState:
        """Create a state at the initial parameters.

        Returns:
            A new state.
        """
        return CobylaState(
            self._initial_params,
            constraint_tolerance=self._config.constraint_tolerance,
        )

    def cost(self, problem: Problem, x: ArrayLike) -> NDArray[np.float64]:
        """Evaluate the problem at a point.

        The cost of the last evaluated point is cached, a request for the same
        point of the same problem does not evaluate the problem again. The
        first evaluation determines the number of constraints, if it was not
        configured. Exceptions raised by the problem are propagated.

        Args:
            problem: The problem.
            x:       The parameter vector.

        Returns:
            The cost vector: the objective followed by the constraints.

        Raises:
            EvaluationError: If the problem returns a malformed cost vector.
        """
        x = np.asarray(x, dtype=np.float64)
        if (
            problem is self._problem
            and self._cached_x is not None
            and self._cached_cost is not None
            and np.array_equal(x, self._cached_x)
        ):
            return self._cached_cost
        if problem is not self._problem:
            self._reset(problem)

        cost = np.atleast_1d(problem.cost(x))
        if cost.ndim != 1 or cost.size == 0:
            msg = f"the cost must be a non-empty vector, got shape {cost.shape}"
            raise EvaluationError(msg)
        if self._constraint_count is None:
            self._constraint_count = cost.size - 1
            logger.debug("detected %d constraints", self._constraint_count)
        elif cost.size != self._constraint_count + 1:
            msg = (
                f"cost vector has length {cost.size}, "
                f"expected {self._constraint_count + 1}"
            )
            raise EvaluationError(msg)

        self._cached_x = immutable_array(x)
        self._cached_cost = immutable_array(cost)
        return self._cached_cost

    def init(
        self, problem: Problem, state: CobylaState
    ) -> tuple[CobylaState, dict[str, Any]]:
        """Prepare the run.

        Checks the dimension of the state. If the number of constraints is
        not configured, the problem is evaluated at the start point to detect
        it. Due to the cache, the engine does not evaluate that point again.

        Args:
            problem: The problem.
            state:   The initial state.

        Returns:
            The state and key/value pairs reported to the observers.

        Raises:
            ConfigurationError: If the state does not match the configuration,
                                or its start point is not finite.
        """
        self._config.check_dimensions(state.dimension)
        _check_finite(_start_point(state))
        self._reset(problem)
        if self._constraint_count is None:
            self.cost(problem, _start_point(state))
        return state, {
            "engine": self._config.engine,
            "constraints": self._constraint_count,
        }

    def solve_step(
        self, problem: Problem, state: CobylaState
    ) -> tuple[CobylaState, dict[str, Any]]:
        """Run the engine and finish the state.

        The engine starts from the best parameters of the state, or from the
        current parameters if there is no best result. After the run, the
        state is updated with the result of the engine, and finished with the
        translated engine status. Algorithmic failures are reported through
        the status; exceptions of the problem are propagated.

        Args:
            problem: The problem.
            state:   The state.

        Returns:
            The state and key/value pairs reported to the observers.

        Raises:
            ConfigurationError: If the state does not match the configuration,
                                or its start point is not finite;
                                the state is finished with the status of the
                                error and the engine is not called.
            StateFinishedError: If the state is already finished.
        """
        try:
            self._config.check_dimensions(state.dimension)
            _check_finite(_start_point(state))
        except ConfigurationError as exc:
            logger.debug("configuration error: %s", exc)
            if not state.terminated:
                state.finish(exc.status)
            raise
        state.begin()

        x0 = _start_point(state)
        if problem is not self._problem:
            self._reset(problem)
        if self._constraint_count is None:
            self.cost(problem, x0)
        assert self._constraint_count is not None

        settings = EngineSettings(
            rhobeg=self._config.rhobeg.expand(state.dimension),
            constraint_count=self._constraint_count,
            stop_tols=self._config.stop_tols,
            stop_val=self._config.stop_val,
            constraint_tolerance=self._config.constraint_tolerance,
            max_eval=state.max_iters,
            max_time=state.max_time,
            iprint=state.iprint,
            options=dict(self._config.options or {}),
        )
        logger.debug(
            "running %s: n=%d, m=%d, max_eval=%s, max_time=%s",
            type(self._engine).__name__,
            state.dimension,
            settings.constraint_count,
            settings.max_eval,
            settings.max_time,
        )
        result = self._engine.minimize(
            partial(self.cost, problem), np.array(x0), settings
        )
        logger.debug(
            "engine returned raw status %d after %d evaluations",
            result.status,
            result.evaluations,
        )

        status = translate_status(result.status)
        if result.x is not None and result.cost is not None:
            state.update(result.x, result.cost)
        state.finish(status)
        return state, {
            "status": status.name,
            "evaluations": result.evaluations,
        }

    def next_iter(
        self, problem: Problem, state: CobylaState
    ) -> tuple[CobylaState, dict[str, Any]]:
        """Advance the state by one solve step.

        See the [cobyla_adapter.optimization.Solver][] abstract base class.

        # noqa
        """
        return self.solve_step(problem, state)

    def _reconfigure(self, **kwargs: Any) -> Self:  # noqa: ANN401
        return type(self)(
            self._initial_params, config=self._config, engine=self._engine, **kwargs
        )

    def _reset(self, problem: Problem) -> None:
        self._problem = problem
        self._cached_x = None
        self._cached_cost = None
        self._constraint_count = self._config.constraint_count

    @staticmethod
    def _create_engine(config: CobylaConfig) -> CobylaEngine:
        try:
            plugin = PluginManager().get_plugin("engine", config.engine)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        method = config.engine.split("/", maxsplit=1)[-1]
        plugin.validate_options(method, config.options)
        return plugin.create(method)


def _start_point(state: CobylaState) -> NDArray[np.float64]:
    return state.best_param if state.has_best() else state.param


def _check_finite(x: NDArray[np.float64]) -> None:
    if not np.all(np.isfinite(x)):
        msg = f"the start point must be finite, got {x}"
        raise ConfigurationError(msg)

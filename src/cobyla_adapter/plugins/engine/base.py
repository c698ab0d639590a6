"""This module defines base classes for COBYLA engine plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from cobyla_adapter.config import StopTols
from cobyla_adapter.config.constants import DEFAULT_CONSTRAINT_TOLERANCE
from cobyla_adapter.plugins.base import Plugin

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """The settings of a single engine run.

    Attributes:
        rhobeg:               The initial step, one value per parameter.
        constraint_count:     The number of constraints.
        stop_tols:            Tolerance based termination criteria.
        stop_val:             Stop when a feasible objective below this value is found.
        constraint_tolerance: Slack used to test constraints for feasibility.
        max_eval:             Maximum number of function evaluations.
        max_time:             Maximum run time in seconds.
        iprint:               Verbosity level.
        options:              Engine specific options.
    """

    rhobeg: NDArray[np.float64]
    constraint_count: int = 0
    stop_tols: StopTols = field(default_factory=StopTols)
    stop_val: float | None = None
    constraint_tolerance: float = DEFAULT_CONSTRAINT_TOLERANCE
    max_eval: int | None = None
    max_time: float | None = None
    iprint: int = 0
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class EngineResult:
    """The outcome of an engine run.

    The raw status uses the numbering of
    [`RawStatus`][cobyla_adapter.enums.RawStatus], but engines may return any
    integer; unknown codes are classified by the solver.

    Attributes:
        x:           The best parameters found, the last ones evaluated if
                     no feasible point was found, or `None` if the function
                     was not evaluated.
        cost:        The cost vector at `x`, or `None`.
        status:      The raw status code.
        evaluations: The number of function evaluations.
        message:     A description of the outcome.
    """

    x: NDArray[np.float64] | None
    cost: NDArray[np.float64] | None
    status: int
    evaluations: int = 0
    message: str = ""


class CobylaEngine(ABC):
    """Abstract base class for COBYLA engines.

    An engine runs the COBYLA algorithm to completion in a single call of its
    `minimize` method. It is treated as an opaque capability: the solver only
    relies on the returned [`EngineResult`][cobyla_adapter.plugins.engine.EngineResult].

    The function passed to `minimize` returns a cost vector: the objective
    value followed by `settings.constraint_count` constraint values, which are
    satisfied if non-negative. Exceptions raised by the function must be
    propagated, except for
    [`ForcedStop`][cobyla_adapter.exceptions.ForcedStop], which terminates the
    run with the `FORCED_STOP` raw status.
    """

    @abstractmethod
    def minimize(
        self,
        function: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        x0: NDArray[np.float64],
        settings: EngineSettings,
    ) -> EngineResult:
        """Run the optimization.

        Args:
            function: The cost function.
            x0:       The start point.
            settings: The settings of the run.

        Returns:
            The result of the run.
        """


class EnginePlugin(Plugin):
    """Abstract base class for engine plugins (factories).

    The [`PluginManager`][cobyla_adapter.plugins.PluginManager] finds the
    plugin that supports the engine named in the configuration and uses its
    `create` class method to instantiate the engine.
    """

    @classmethod
    @abstractmethod
    def create(cls, method: str) -> CobylaEngine:
        """Create an engine.

        Args:
            method: The method name, without the plugin prefix.

        Returns:
            An initialized engine.
        """

    @classmethod
    def validate_options(cls, method: str, options: dict[str, Any] | None) -> None:
        """Validate the engine specific options of a method.

        This default implementation accepts no options.

        Args:
            method:  The method name.
            options: The options.

        Raises:
            ValueError: If the options are invalid.
        """
        if options:
            msg = f"engine method {method} does not accept options"
            raise ValueError(msg)

"""Observers reporting the progress of a run."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cobyla_adapter.enums import ObserverMode

if TYPE_CHECKING:
    from ._state import CobylaState


class Observer(ABC):
    """Abstract base class for observers.

    Observers are attached to an
    [`Executor`][cobyla_adapter.optimization.Executor] and are notified once
    when the run is initialized, and after iterations according to their
    [`ObserverMode`][cobyla_adapter.enums.ObserverMode].
    """

    def observe_init(self, name: str, kv: dict[str, Any]) -> None:  # noqa: B027
        """Called after the solver has been initialized.

        Args:
            name: The name of the solver.
            kv:   Key/value pairs reported by the solver.
        """

    @abstractmethod
    def observe_iter(self, state: CobylaState, kv: dict[str, Any]) -> None:
        """Called after an iteration.

        Args:
            state: The current state.
            kv:    Key/value pairs reported by the solver.
        """


@dataclass(frozen=True, slots=True)
class ObserverSchedule:
    """When to notify an observer.

    Attributes:
        mode:   The observer mode.
        period: The period for the `EVERY` mode.
    """

    mode: ObserverMode
    period: int = 1

    def __post_init__(self) -> None:
        """Check the period."""
        if self.period < 1:
            msg = "the observer period must be positive"
            raise ValueError(msg)

    def notify(self, state: CobylaState) -> bool:
        """Check if the observer must be notified.

        Args:
            state: The current state.

        Returns:
            `True` if the observer should be called.
        """
        match self.mode:
            case ObserverMode.ALWAYS:
                return True
            case ObserverMode.NEW_BEST:
                return state.is_best()
            case ObserverMode.EVERY:
                return state.iter % self.period == 0
        return False


def every(period: int) -> ObserverSchedule:
    """Notify an observer every `period` iterations.

    Args:
        period: The number of iterations between notifications.

    Returns:
        The schedule.
    """
    return ObserverSchedule(ObserverMode.EVERY, period)


class LoggingObserver(Observer):
    """An observer that reports progress via the `logging` module."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        """Initialize the observer.

        Args:
            logger: The logger to use, by default the logger of this module.
            level:  The level of the log records.
        """
        self._logger = logging.getLogger(__name__) if logger is None else logger
        self._level = level

    def observe_init(self, name: str, kv: dict[str, Any]) -> None:
        """Log the start of the run.

        Args:
            name: The name of the solver.
            kv:   Key/value pairs reported by the solver.
        """
        self._logger.log(self._level, "%s%s", name, _format_kv(kv))

    def observe_iter(self, state: CobylaState, kv: dict[str, Any]) -> None:
        """Log an iteration.

        Args:
            state: The current state.
            kv:    Key/value pairs reported by the solver.
        """
        best_cost = state.best_cost if state.has_best() else None
        cost = None if state.cost is None else float(state.cost[0])
        self._logger.log(
            self._level,
            "iter: %d, cost: %s, best_cost: %s, cost_count: %d%s",
            state.iter,
            cost,
            best_cost,
            state.counts.get("cost_count", 0),
            _format_kv(kv),
        )


def _format_kv(kv: dict[str, Any]) -> str:
    return "".join(f", {key}: {value}" for key, value in kv.items())

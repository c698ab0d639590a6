"""This module defines the base class for solvers driven by the executor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from ._problem import Problem
    from ._state import CobylaState


class Solver(ABC):
    """Abstract base class for solvers.

    A solver has two capabilities: evaluating the cost of the problem at a
    given point, and advancing the state by one step. The
    [`Executor`][cobyla_adapter.optimization.Executor] calls `init` once, and
    then `next_iter` until the state is terminated or the executor budget is
    exhausted.

    Subclasses must implement:
    - `cost`:      To evaluate the problem at a point.
    - `next_iter`: To advance the state by one step.

    Subclasses can optionally override:
    - `init`:      To prepare the run, for instance by checking the state.
    - `terminate`: To request termination after an iteration.
    """

    name: ClassVar[str] = "solver"

    def init(
        self,
        problem: Problem,  # noqa: ARG002
        state: CobylaState,
    ) -> tuple[CobylaState, dict[str, Any]]:
        """Prepare the run.

        The default implementation returns the state unchanged.

        Args:
            problem: The problem to solve.
            state:   The initial state.

        Returns:
            The state and key/value pairs reported to the observers.
        """
        return state, {}

    @abstractmethod
    def cost(self, problem: Problem, x: Any) -> Any:  # noqa: ANN401
        """Evaluate the problem at a point.

        Args:
            problem: The problem to evaluate.
            x:       The parameter vector.

        Returns:
            The cost of the problem at `x`.
        """

    @abstractmethod
    def next_iter(
        self, problem: Problem, state: CobylaState
    ) -> tuple[CobylaState, dict[str, Any]]:
        """Advance the state by one step.

        Args:
            problem: The problem to solve.
            state:   The current state.

        Returns:
            The updated state and key/value pairs reported to the observers.
        """

    def terminate(self, state: CobylaState) -> bool:  # noqa: ARG002
        """Check for solver specific termination criteria.

        Solvers that finish the state themselves do not need to override this.

        Args:
            state: The current state.

        Returns:
            `True` if the run should stop.
        """
        return False

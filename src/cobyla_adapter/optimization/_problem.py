"""Wrapper for user supplied cost functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


@runtime_checkable
class CostFunction(Protocol):
    """Protocol for objects that compute a cost vector.

    The `cost` method receives a parameter vector and returns a vector where
    the first element is the objective value and the remaining elements are
    constraint values. A constraint is satisfied if its value is non-negative.
    The function should be deterministic within a run.
    """

    def cost(self, x: NDArray[np.float64], /) -> ArrayLike:
        """Compute the objective and constraint values.

        Args:
            x: The parameter vector.

        Returns:
            The objective followed by the constraint values.
        """


class Problem:
    """A cost function, with evaluation counting.

    The wrapped function may be a plain callable or an object following the
    [`CostFunction`][cobyla_adapter.optimization.CostFunction] protocol. Each
    call receives its own copy of the parameter vector, so the function cannot
    modify the vectors held by the solver.
    """

    def __init__(
        self, function: CostFunction | Callable[[NDArray[np.float64]], ArrayLike]
    ) -> None:
        """Initialize the problem.

        Args:
            function: The cost function.
        """
        self._function: Callable[[NDArray[np.float64]], ArrayLike]
        if isinstance(function, CostFunction):
            self._function = function.cost
        elif callable(function):
            self._function = function
        else:
            msg = f"not a cost function: {function!r}"
            raise TypeError(msg)
        self.counts: dict[str, int] = {}

    def cost(self, x: NDArray[np.float64]) -> NDArray[np.float64]:
        """Evaluate the cost function.

        Exceptions raised by the function are propagated unchanged.

        Args:
            x: The parameter vector.

        Returns:
            The cost vector as a float array.
        """
        self.counts["cost_count"] = self.counts.get("cost_count", 0) + 1
        return np.asarray(
            self._function(np.array(x, dtype=np.float64)), dtype=np.float64
        )

    def take_counts(self) -> dict[str, Any]:
        """Return the evaluation counters and reset them.

        Returns:
            The counters accumulated since the last call.
        """
        counts, self.counts = self.counts, {}
        return counts

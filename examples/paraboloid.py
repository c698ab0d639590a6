"""Example of a constrained optimization of a paraboloid.

This example minimizes `10 * (x[0] + 1)^2 + x[1]^2` subject to `x[0] >= 0`,
starting from `[1, 1]`. The problem is defined as an object with a `cost`
method, returning the objective followed by the constraint value. Progress is
reported on the terminal by a logging observer.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from cobyla_adapter.cobyla import CobylaSolver
from cobyla_adapter.enums import ObserverMode
from cobyla_adapter.optimization import Executor, LoggingObserver, OptimizationResult

INITIAL_VALUES = [1.0, 1.0]


class ParaboloidProblem:
    """Minimize the paraboloid, subject to `x[0] >= 0`."""

    def cost(self, x: NDArray[np.float64]) -> NDArray[np.float64]:
        """Compute the objective and the constraint.

        Args:
            x: The parameters.

        Returns:
            The objective value and the constraint value.
        """
        return np.array([10.0 * (x[0] + 1.0) ** 2 + x[1] ** 2, x[0]])


def run_optimization() -> OptimizationResult:
    """Run the optimization.

    Returns:
        The result of the run.
    """
    return (
        Executor(ParaboloidProblem(), CobylaSolver(INITIAL_VALUES))
        .timer(True)
        .configure(max_iters=100, iprint=0)
        .add_observer(LoggingObserver(), ObserverMode.ALWAYS)
        .run()
    )


def main() -> None:
    """Run the example and check the result."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    result = run_optimization()
    print(f"Result:\n{result}")
    assert result.state.has_best()
    assert np.allclose(result.state.best_param, [0.0, 0.0], atol=1e-2)
    assert np.allclose(result.state.best_cost, 10.0, atol=1e-2)


if __name__ == "__main__":
    main()

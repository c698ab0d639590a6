"""The generic optimization framework.

This module provides the components shared by all solvers:

- [`Problem`][cobyla_adapter.optimization.Problem]: wraps the user cost
  function and counts evaluations.
- [`Solver`][cobyla_adapter.optimization.Solver]: the base class of solvers.
- [`CobylaState`][cobyla_adapter.optimization.CobylaState]: the iteration
  record.
- [`Executor`][cobyla_adapter.optimization.Executor]: runs a solver and
  returns an [`OptimizationResult`][cobyla_adapter.optimization.OptimizationResult].
- [`Observer`][cobyla_adapter.optimization.Observer]: the base class of
  progress observers, with a
  [`LoggingObserver`][cobyla_adapter.optimization.LoggingObserver]
  implementation.
"""

from ._executor import Executor, OptimizationResult
from ._observers import LoggingObserver, Observer, ObserverSchedule, every
from ._problem import CostFunction, Problem
from ._solver import Solver
from ._state import CobylaState

__all__ = [
    "CobylaState",
    "CostFunction",
    "Executor",
    "LoggingObserver",
    "Observer",
    "ObserverSchedule",
    "OptimizationResult",
    "Problem",
    "Solver",
    "every",
]

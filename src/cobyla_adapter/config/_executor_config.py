"""Configuration class for the executor."""

from __future__ import annotations

from pydantic import NonNegativeInt, PositiveFloat, PositiveInt

from .utils import ImmutableBaseModel


class ExecutorConfig(ImmutableBaseModel):
    """Configuration of an [`Executor`][cobyla_adapter.optimization.Executor] run.

    The settings are copied into the state before the run starts, where
    solvers can read them. Solvers that run an engine to completion in a
    single step, such as the COBYLA solver, forward `max_iters` and
    `max_time` to the engine as its evaluation and time budget.

    Attributes:
        max_iters: Maximum number of iterations (optional).
        max_time:  Maximum run time in seconds (optional).
        iprint:    Verbosity level forwarded to the solver (default: 0).
        timer:     Measure the elapsed time of the run (default: `False`).
    """

    max_iters: PositiveInt | None = None
    max_time: PositiveFloat | None = None
    iprint: NonNegativeInt = 0
    timer: bool = False

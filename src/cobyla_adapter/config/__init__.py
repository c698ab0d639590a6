"""Configuration classes for COBYLA runs.

The configuration classes are built using
[`pydantic`](https://docs.pydantic.dev/), which validates and converts the
input values. Vector values are stored as immutable NumPy arrays.

- [`CobylaConfig`][cobyla_adapter.config.CobylaConfig]: configures the solver:
  initial step, tolerances, stop value, constraints and engine.
- [`StopTols`][cobyla_adapter.config.StopTols]: tolerance based termination
  criteria.
- [`RhoBeg`][cobyla_adapter.config.RhoBeg]: the initial step.
- [`ExecutorConfig`][cobyla_adapter.config.ExecutorConfig]: configures the
  executor: iteration and time budgets, verbosity and timing.

Configuration objects can be created from dictionaries using the
[`model_validate`][pydantic.BaseModel.model_validate] class method.
"""

from ._cobyla_config import CobylaConfig, RhoBeg, StopTols
from ._executor_config import ExecutorConfig

__all__ = [
    "CobylaConfig",
    "ExecutorConfig",
    "RhoBeg",
    "StopTols",
]

"""The COBYLA solver and the translation of engine status codes.

The [`CobylaSolver`][cobyla_adapter.cobyla.CobylaSolver] adapts a COBYLA
engine to the [`Executor`][cobyla_adapter.optimization.Executor]. Engines
report their outcome with raw integer codes, which are translated by
[`translate_status`][cobyla_adapter.cobyla.translate_status] into a
[`SuccessStatus`][cobyla_adapter.enums.SuccessStatus] or a
[`FailStatus`][cobyla_adapter.enums.FailStatus].
"""

from ._solver import CobylaSolver
from ._status import STATUS_TABLE, translate_status

__all__ = [
    "STATUS_TABLE",
    "CobylaSolver",
    "translate_status",
]

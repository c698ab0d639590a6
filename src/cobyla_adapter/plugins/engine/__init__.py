"""Engine plugins running the COBYLA algorithm."""

from .base import CobylaEngine, EnginePlugin, EngineResult, EngineSettings

__all__ = [
    "CobylaEngine",
    "EnginePlugin",
    "EngineResult",
    "EngineSettings",
]

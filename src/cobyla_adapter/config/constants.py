"""Default values used by the configuration classes."""

from typing import Final

DEFAULT_RHOBEG: Final = 1.0
"""Default initial step, applied to all parameters."""

DEFAULT_CONSTRAINT_TOLERANCE: Final = 1e-8
"""Default slack used when testing constraint values for feasibility."""

DEFAULT_ENGINE: Final = "scipy/default"
"""Default COBYLA engine."""

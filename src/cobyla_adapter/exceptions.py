"""Exceptions raised within the `cobyla_adapter` library."""

from .enums import FailStatus


class ConfigurationError(ValueError):
    """Raised when the solver configuration is inconsistent.

    Dimension mismatches between the initial parameters, the initial step, and
    the absolute parameter tolerances are detected before any evaluation and
    reported with this exception. The `status` attribute holds the
    corresponding [`FailStatus`][cobyla_adapter.enums.FailStatus].
    """

    def __init__(self, msg: str, status: FailStatus = FailStatus.INVALID_ARGS) -> None:
        """Initialize the ConfigurationError exception.

        Args:
            msg:    The error message.
            status: The failure status describing the error.
        """
        self.status = status
        super().__init__(msg)


class EvaluationError(ValueError):
    """Raised when an objective function returns a malformed cost vector."""


class StateFinishedError(RuntimeError):
    """Raised when a finished state is finished or updated again."""


class NoEvaluationError(RuntimeError):
    """Raised when the best result is requested before a feasible evaluation."""


class ForcedStop(Exception):  # noqa: N818
    """Raised by an objective function to stop the optimization.

    The run terminates with
    [`FailStatus.FORCED_STOP`][cobyla_adapter.enums.FailStatus], and the best
    result found so far is kept in the state.
    """

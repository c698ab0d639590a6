"""Enumerations used within the `cobyla_adapter` library."""

from enum import IntEnum


class SuccessStatus(IntEnum):
    """Enumerates the successful termination reasons of an optimization.

    All members denote a normal end of the run from the point of view of the
    adapter. They are distinguished for diagnostic purposes only.
    """

    SUCCESS = 1
    "The optimizer converged normally."

    STOPVAL_REACHED = 2
    "A feasible objective value below the configured stop value was found."

    FTOL_REACHED = 3
    "The change of the objective value dropped below `ftol_rel` or `ftol_abs`."

    XTOL_REACHED = 4
    "The change of the parameters dropped below `xtol_rel` or `xtol_abs`."

    MAXEVAL_REACHED = 5
    "The evaluation or iteration budget was exhausted."

    MAXTIME_REACHED = 6
    "The time budget was exhausted."


class FailStatus(IntEnum):
    """Enumerates the failed termination reasons of an optimization.

    The values are the raw codes reported by the COBYLA engines, with the
    exception of `UNEXPECTED_ERROR`, which is used for any raw code that is not
    recognized. All values are negative, so a failure status never compares
    equal to a [`SuccessStatus`][cobyla_adapter.enums.SuccessStatus].
    """

    FAILURE = -1
    "Generic failure reported by the engine."

    INVALID_ARGS = -2
    "Invalid arguments, such as mismatching dimensions."

    OUT_OF_MEMORY = -3
    "The engine ran out of memory."

    ROUNDOFF_LIMITED = -4
    "Round-off errors prevented further progress."

    FORCED_STOP = -5
    "The run was stopped by the objective function."

    UNEXPECTED_ERROR = -6
    "The engine returned a status code that could not be classified."


class RawStatus(IntEnum):
    """Enumerates the raw status codes returned by COBYLA engines.

    The numbering follows the return codes of the NLopt library. Engines that
    do not produce these codes natively, such as the SciPy engine, translate
    their outcome to this numbering.
    """

    FAILURE = -1
    INVALID_ARGS = -2
    OUT_OF_MEMORY = -3
    ROUNDOFF_LIMITED = -4
    FORCED_STOP = -5
    SUCCESS = 1
    STOPVAL_REACHED = 2
    FTOL_REACHED = 3
    XTOL_REACHED = 4
    MAXEVAL_REACHED = 5
    MAXTIME_REACHED = 6


class Phase(IntEnum):
    """Enumerates the phases of a solve.

    A [`CobylaState`][cobyla_adapter.optimization.CobylaState] starts in the
    `UNINITIALIZED` phase, enters `RUNNING` once a solve step starts, and ends
    in exactly one of the terminal phases.
    """

    UNINITIALIZED = 0
    "No solve step has started yet."

    RUNNING = 1
    "A solve step is in progress."

    CONVERGED = 2
    "Terminated by convergence, stop value, or a tolerance criterion."

    EXHAUSTED = 3
    "Terminated because an evaluation or time budget was exhausted."

    FAILED = 4
    "Terminated with a failure status."


class ObserverMode(IntEnum):
    """Enumerates how often an observer is notified.

    Use [`every`][cobyla_adapter.optimization.every] to observe every n-th
    iteration.
    """

    NEVER = 0
    "The observer is never notified of iterations."

    ALWAYS = 1
    "The observer is notified after every iteration."

    NEW_BEST = 2
    "The observer is notified when an iteration produced a new best result."

    EVERY = 3
    "The observer is notified every n-th iteration."

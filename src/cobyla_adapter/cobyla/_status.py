"""Translation of raw engine status codes."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Final

from cobyla_adapter.enums import FailStatus, RawStatus, SuccessStatus

logger = logging.getLogger(__name__)

STATUS_TABLE: Final = MappingProxyType(
    {
        RawStatus.SUCCESS: SuccessStatus.SUCCESS,
        RawStatus.STOPVAL_REACHED: SuccessStatus.STOPVAL_REACHED,
        RawStatus.FTOL_REACHED: SuccessStatus.FTOL_REACHED,
        RawStatus.XTOL_REACHED: SuccessStatus.XTOL_REACHED,
        RawStatus.MAXEVAL_REACHED: SuccessStatus.MAXEVAL_REACHED,
        RawStatus.MAXTIME_REACHED: SuccessStatus.MAXTIME_REACHED,
        RawStatus.FAILURE: FailStatus.FAILURE,
        RawStatus.INVALID_ARGS: FailStatus.INVALID_ARGS,
        RawStatus.OUT_OF_MEMORY: FailStatus.OUT_OF_MEMORY,
        RawStatus.ROUNDOFF_LIMITED: FailStatus.ROUNDOFF_LIMITED,
        RawStatus.FORCED_STOP: FailStatus.FORCED_STOP,
    }
)
"""Maps the raw codes of the engines to termination statuses."""


def translate_status(raw: int) -> SuccessStatus | FailStatus:
    """Translate a raw engine status code.

    Every integer is accepted: codes that are not listed in
    [`STATUS_TABLE`][cobyla_adapter.cobyla.STATUS_TABLE] translate to
    `FailStatus.UNEXPECTED_ERROR`.

    Args:
        raw: The raw status code.

    Returns:
        The termination status.
    """
    status = STATUS_TABLE.get(int(raw))
    if status is None:
        logger.warning("unexpected raw status code from engine: %s", raw)
        return FailStatus.UNEXPECTED_ERROR
    logger.debug("raw status %d translated to %s", raw, status.name)
    return status

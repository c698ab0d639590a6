"""Configuration classes for the COBYLA solver."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Self

import numpy as np
from numpy.typing import NDArray  # noqa: TC002
from pydantic import (
    BeforeValidator,
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveFloat,
    model_validator,
)

from cobyla_adapter.exceptions import ConfigurationError

from .constants import DEFAULT_CONSTRAINT_TOLERANCE, DEFAULT_ENGINE, DEFAULT_RHOBEG
from .utils import ImmutableBaseModel, check_vector_size, immutable_array
from .validated_types import Array1D  # noqa: TC001


class StopTols(ImmutableBaseModel):
    """Tolerances used as termination criteria.

    Each criterion is disabled if its value is not strictly positive. The
    default object disables all of them, so tolerances must be switched on
    explicitly:

    ```py
    stop_tols = StopTols(ftol_rel=1e-4, xtol_abs=[1e-3] * 3)
    ```

    Attributes:
        ftol_rel: Stop when the objective changes by less than `ftol_rel`
                  times its magnitude.
        ftol_abs: Stop when the objective changes by less than `ftol_abs`.
        xtol_rel: Stop when every parameter `x[i]` changes by less than
                  `xtol_rel * |x[i]|`.
        xtol_abs: Stop when every parameter `x[i]` changes by less than
                  `xtol_abs[i]`. If set, the length must be equal to the
                  number of parameters.
    """

    ftol_rel: float = 0.0
    ftol_abs: float = 0.0
    xtol_rel: float = 0.0
    xtol_abs: Array1D | None = None

    @model_validator(mode="after")
    def _check_xtol_abs(self) -> Self:
        if self.xtol_abs is not None and self.xtol_abs.ndim != 1:
            msg = "xtol_abs must be a vector"
            raise ValueError(msg)
        return self

    @property
    def has_xtol(self) -> bool:
        """Whether any of the parameter tolerances is enabled.

        Returns:
            `True` if `xtol_rel` or any `xtol_abs` value is positive.
        """
        return self.xtol_rel > 0.0 or (
            self.xtol_abs is not None and bool(np.any(self.xtol_abs > 0.0))
        )

    def check_dimension(self, size: int) -> None:
        """Check the tolerances against the number of parameters.

        Args:
            size: The number of parameters.

        Raises:
            ConfigurationError: If `xtol_abs` is set with a different length.
        """
        if self.xtol_abs is not None:
            check_vector_size(self.xtol_abs, "xtol_abs", size)


class RhoBeg(ImmutableBaseModel):
    """The initial change of the parameters.

    This corresponds to the `rhobeg` argument of Powell's original algorithm:
    the initial radius of the trust region. It is given either as a single
    value used for all parameters, or as one value per parameter:

    ```py
    RhoBeg.uniform(0.5)
    RhoBeg.per_dimension([0.5, 1.0, 2.0])
    ```

    Exactly one of the two attributes is set.

    Attributes:
        step:  The step used for all parameters.
        steps: The steps for each parameter.
    """

    step: PositiveFloat | None = None
    steps: Array1D | None = None

    @model_validator(mode="after")
    def _check_steps(self) -> Self:
        if (self.step is None) == (self.steps is None):
            msg = "exactly one of step and steps must be given"
            raise ValueError(msg)
        if self.steps is not None and (
            self.steps.ndim != 1 or not np.all(self.steps > 0.0)
        ):
            msg = "steps must be a vector of positive values"
            raise ValueError(msg)
        return self

    @classmethod
    def uniform(cls, step: float) -> RhoBeg:
        """Create an initial step shared by all parameters.

        Args:
            step: The step value.

        Returns:
            The new object.
        """
        return cls(step=step)

    @classmethod
    def per_dimension(cls, steps: Any) -> RhoBeg:  # noqa: ANN401
        """Create initial steps for each parameter.

        Args:
            steps: The step values, one for each parameter.

        Returns:
            The new object.
        """
        return cls(steps=steps)

    def expand(self, size: int) -> NDArray[np.float64]:
        """Return the steps as a vector with one value per parameter.

        Args:
            size: The number of parameters.

        Returns:
            An immutable vector of length `size`.

        Raises:
            ConfigurationError: If per-dimension steps have a different length.
        """
        if self.steps is None:
            assert self.step is not None
            return immutable_array(np.full(size, self.step, dtype=np.float64))
        check_vector_size(self.steps, "rhobeg", size)
        return self.steps


def _convert_rhobeg(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, RhoBeg | Mapping):
        return value
    if np.ndim(value) == 0:
        return {"step": value}
    return {"steps": value}


class CobylaConfig(ImmutableBaseModel):
    """Configuration of the COBYLA solver.

    The initial step may be given as a [`RhoBeg`][cobyla_adapter.config.RhoBeg]
    object, a single number, or a sequence with one value per parameter.

    The `engine` field selects the COBYLA implementation in the form
    `plugin/method` (e.g. `nlopt/cobyla`), or `method`, in which case the
    first plugin supporting the method is used. Engine specific options can
    be passed via `options`; they are validated by the engine plugin.

    Attributes:
        rhobeg:               The initial step.
        stop_tols:            Tolerance based termination criteria.
        stop_val:             Stop when a feasible objective value below this
                              value is found (optional).
        constraint_count:     The number of constraints, detected from the
                              first evaluation if not given.
        constraint_tolerance: Slack used to test constraint values for
                              feasibility.
        engine:               The COBYLA engine.
        options:              Engine specific options (optional).
    """

    rhobeg: Annotated[RhoBeg, BeforeValidator(_convert_rhobeg)] = Field(
        default_factory=lambda: RhoBeg.uniform(DEFAULT_RHOBEG)
    )
    stop_tols: StopTols = Field(default_factory=StopTols)
    stop_val: float | None = None
    constraint_count: NonNegativeInt | None = None
    constraint_tolerance: NonNegativeFloat = DEFAULT_CONSTRAINT_TOLERANCE
    engine: str = DEFAULT_ENGINE
    options: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _engine(self) -> Self:
        plugin, sep, method = self.engine.strip().rpartition("/")
        if not method or (sep == "/" and not plugin):
            msg = f"malformed engine specification: `{self.engine}`"
            raise ValueError(msg)
        return self

    def check_dimensions(self, size: int) -> None:
        """Check that all vector settings match the number of parameters.

        Args:
            size: The number of parameters.

        Raises:
            ConfigurationError: If a vector setting has the wrong length.
        """
        if size == 0:
            msg = "the parameter vector is empty"
            raise ConfigurationError(msg)
        self.rhobeg.expand(size)
        self.stop_tols.check_dimension(size)

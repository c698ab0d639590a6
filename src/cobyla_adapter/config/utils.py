"""Utilities for checking and converting configuration values.

This module provides helper functions primarily designed for use within Pydantic
model validation logic. They convert configuration inputs into standardized,
immutable NumPy arrays and check their dimensions.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel, ConfigDict

from cobyla_adapter.exceptions import ConfigurationError


def immutable_array(
    array_like: ArrayLike,
    **kwargs: Any,  # noqa: ANN401
) -> NDArray[Any]:
    """Convert input to an immutable NumPy array.

    This function takes various array-like inputs (e.g., lists, tuples, other
    NumPy arrays) and converts them into a NumPy array. It then sets the
    `writeable` flag of the resulting array to `False`, making it immutable.

    Args:
        array_like: The input data to convert (e.g., list, tuple, NumPy array).
        kwargs:     Additional keyword arguments passed directly to `numpy.array`.

    Returns:
        A new NumPy array, with its `writeable` flag set to `False`.
    """
    array = np.array(array_like, **kwargs)
    array.setflags(write=False)
    return array


def check_vector_size(array: NDArray[Any], name: str, size: int) -> None:
    """Check that an array is a vector of the given size.

    Unlike broadcasting, this never pads or truncates: a vector of any other
    length is a configuration error.

    Args:
        array: The array to check.
        name:  A descriptive name for the array (used in error messages).
        size:  The required number of elements.

    Raises:
        ConfigurationError: If the array is not a vector of length `size`.
    """
    if array.ndim != 1 or array.size != size:
        msg = f"{name} has length {array.size}, expected {size}"
        raise ConfigurationError(msg)


def _convert_1d_array(array: ArrayLike | None) -> NDArray[np.float64] | None:
    if array is None:
        return array
    return immutable_array(array, dtype=np.float64, ndmin=1)


class ImmutableBaseModel(BaseModel):
    """Base model for immutable configuration objects.

    Immutability is enforced by overriding `__setattr__` to check an internal
    `_is_immutable` flag before allowing attribute modification.
    """

    _is_immutable: bool = True

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        validate_default=True,
    )

    def __setattr__(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Set an attribute's value, enforcing immutability.

        Args:
            name:  The name of the attribute to set.
            value: The value to assign to the attribute.

        Raises:
            AttributeError: If attempting to set an attribute on an immutable instance.
        """
        if name != "_is_immutable" and self._is_immutable:
            msg = f"{self.__class__.__name__} is immutable"
            raise AttributeError(msg)
        super().__setattr__(name, value)

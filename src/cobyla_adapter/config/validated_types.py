"""Annotated types for Pydantic models providing input conversion and validation.

- [`Array1D`][cobyla_adapter.config.validated_types.Array1D]: Converts input to
  an immutable 1D `np.float64` array.
"""

from typing import Annotated

import numpy as np
from numpy.typing import NDArray
from pydantic import BeforeValidator

from .utils import _convert_1d_array

Array1D = Annotated[NDArray[np.float64], BeforeValidator(_convert_1d_array)]
"""Convert to an immutable 1D numpy array of floating point values."""

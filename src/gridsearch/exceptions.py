"""Error taxonomy for lattice grid searches."""

from __future__ import annotations

from typing import Any


class GridSearchError(Exception):
    """Base class for errors raised by the grid search itself."""


class InvalidParameterError(GridSearchError, ValueError):
    """A search parameter lies outside its permitted domain."""

    def __init__(self, parameter: str, value: Any, requirement: str) -> None:
        super().__init__(f"{parameter} must be {requirement}, got {value!r}")
        self.parameter = parameter
        self.value = value


class DimensionMismatchError(GridSearchError, ValueError):
    """Lower and upper bounds describe boxes of different dimensionality."""

    def __init__(self, mins_length: int, maxes_length: int) -> None:
        super().__init__(
            f"mins and maxes must have the same length, got {mins_length} and {maxes_length}"
        )
        self.mins_length = mins_length
        self.maxes_length = maxes_length

"""Lattice construction: per-axis subdivision and the ordered cartesian product."""

from __future__ import annotations

from dataclasses import dataclass, field
from math import prod
from typing import Iterator, Sequence

import numpy as np

from .exceptions import DimensionMismatchError, InvalidParameterError

GridPoint = tuple[float, ...]


def subdivide_axis(lower: float, upper: float, subdivisions: int) -> tuple[float, ...]:
    """
    Produce ``subdivisions`` evenly spaced samples between two bounds.

    Sample ``i`` is ``lower + t * (upper - lower)`` with ``t = i / (subdivisions - 1)``.
    Bounds of opposite sign use ``(1 - t) * lower + t * upper`` instead, which stays
    finite when ``upper - lower`` would overflow. Both endpoints are returned exactly
    as given, so reversed bounds yield a descending axis.

    Raises:
        InvalidParameterError: if fewer than two subdivisions are requested.
    """
    if subdivisions < 2:
        raise InvalidParameterError("subdivisions", subdivisions, "at least 2")

    fractions = np.arange(subdivisions, dtype=float) / (subdivisions - 1)
    if lower <= 0 <= upper or upper <= 0 <= lower:
        values = (1.0 - fractions) * lower + fractions * upper
    else:
        values = lower + fractions * (upper - lower)
    values[0] = lower
    values[-1] = upper
    return tuple(values.tolist())


@dataclass
class Lattice:
    """Regular lattice ordered lexicographically, dimension 0 varying slowest."""

    axes: Sequence[Sequence[float]]
    _points: tuple[GridPoint, ...] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.axes = tuple(tuple(float(value) for value in axis) for axis in self.axes)
        if not self.axes:
            raise InvalidParameterError("dimensions", 0, "at least 1")
        for dimension, axis in enumerate(self.axes):
            if not axis:
                raise ValueError(f"Axis {dimension} must contain at least one sample")

    @property
    def dimensions(self) -> int:
        return len(self.axes)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(len(axis) for axis in self.axes)

    @property
    def size(self) -> int:
        return prod(self.shape)

    @property
    def spacing(self) -> tuple[float, ...]:
        """Signed distance between neighbouring samples on each axis."""
        return tuple(
            (axis[-1] - axis[0]) / (len(axis) - 1) if len(axis) > 1 else 0.0
            for axis in self.axes
        )

    def point_at(self, index: int) -> GridPoint:
        """Decode a single point from its position in generation order."""
        if index < 0 or index >= self.size:
            raise IndexError(f"Lattice index {index} out of range for {self.size} points")

        coordinates: list[float] = []
        remainder = index
        for axis in reversed(self.axes):
            remainder, digit = divmod(remainder, len(axis))
            coordinates.append(axis[digit])
        coordinates.reverse()
        return tuple(coordinates)

    def to_array(self) -> np.ndarray:
        """
        Materialise the lattice as a ``(size, dimensions)`` array.

        Row ``r`` holds the point whose mixed-radix digits (radix ``len(axis)`` per
        dimension, last dimension least significant) spell out ``r``.
        """
        buffer = np.empty((self.size, self.dimensions), dtype=float)
        digits = np.unravel_index(np.arange(self.size), self.shape)
        for dimension, axis in enumerate(self.axes):
            buffer[:, dimension] = np.asarray(axis, dtype=float)[digits[dimension]]
        return buffer

    def points(self) -> tuple[GridPoint, ...]:
        """Return every point in generation order."""
        if self._points is None:
            self._points = tuple(tuple(row) for row in self.to_array().tolist())
        return self._points

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[GridPoint]:
        return iter(self.points())


def build_lattice(
    mins: Sequence[float],
    maxes: Sequence[float],
    subdivisions: int,
) -> Lattice:
    """Subdivide every dimension of the box and combine the axes into a lattice."""
    if subdivisions < 2:
        raise InvalidParameterError("subdivisions", subdivisions, "at least 2")
    if len(mins) != len(maxes):
        raise DimensionMismatchError(len(mins), len(maxes))
    axes = [subdivide_axis(lower, upper, subdivisions) for lower, upper in zip(mins, maxes)]
    return Lattice(axes=axes)

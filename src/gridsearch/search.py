"""Search driver: validate inputs, build the lattice, evaluate it and pick the best point."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from .evaluator import LatticeEvaluator, Objective
from .exceptions import DimensionMismatchError, InvalidParameterError
from .lattice import Lattice, build_lattice
from .reporting import TrialReporter
from .trials import SearchResult, Trial, select_best


@dataclass
class SearchConfig:
    """Box, resolution and execution settings for one grid search."""

    mins: Sequence[float]
    maxes: Sequence[float]
    subdivisions: int
    concurrency: int | None = None
    schedule: str = "static"
    pool: str = "thread"
    unpack_arguments: bool = False
    names: Sequence[str] | None = None
    log_path: Path | None = None

    def __post_init__(self) -> None:
        self.mins = tuple(self.mins)
        self.maxes = tuple(self.maxes)
        if self.names is not None:
            self.names = tuple(self.names)
        if self.log_path is not None:
            self.log_path = Path(self.log_path)

    @property
    def dimensions(self) -> int:
        return len(self.mins)

    def resolved_concurrency(self) -> int:
        """Return the worker count, defaulting to the number of CPUs."""
        if self.concurrency is None:
            return os.cpu_count() or 1
        return self.concurrency

    def validate(self) -> None:
        """
        Check the configuration before any work starts.

        Raises:
            InvalidParameterError: when ``subdivisions < 2``, ``concurrency < 1`` or the box
                has no dimensions.
            DimensionMismatchError: when ``mins`` and ``maxes`` differ in length.
            ValueError: when ``names`` does not name every dimension exactly once.
        """
        if self.subdivisions < 2:
            raise InvalidParameterError("subdivisions", self.subdivisions, "at least 2")
        if self.concurrency is not None and self.concurrency < 1:
            raise InvalidParameterError("concurrency", self.concurrency, "at least 1")
        if len(self.mins) != len(self.maxes):
            raise DimensionMismatchError(len(self.mins), len(self.maxes))
        if not self.mins:
            raise InvalidParameterError("dimensions", 0, "at least 1")
        if self.names is not None:
            if len(self.names) != len(self.mins):
                raise ValueError(f"Expected {len(self.mins)} dimension names, got {len(self.names)}")
            if len(set(self.names)) != len(self.names):
                raise ValueError(f"Duplicate dimension names: {', '.join(self.names)}")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SearchConfig":
        """
        Load a search definition from a YAML/JSON style mapping.

        The box is given either as named ``dimensions`` with ``lower_bound`` and
        ``upper_bound`` per entry, or as parallel ``mins``/``maxes`` lists.
        """
        if not config:
            raise ValueError("Search configuration is empty")
        if "subdivisions" not in config:
            raise ValueError("Search configuration must define subdivisions")

        dimensions_config = config.get("dimensions")
        names: Sequence[str] | None = config.get("names")
        if dimensions_config is not None:
            if "mins" in config or "maxes" in config:
                raise ValueError("Define the box with either dimensions or mins/maxes, not both")
            names, mins, maxes = [], [], []
            for name, raw_definition in dimensions_config.items():
                if "lower_bound" not in raw_definition or "upper_bound" not in raw_definition:
                    raise ValueError(f"Dimension {name} must define lower_bound and upper_bound")
                names.append(name)
                mins.append(raw_definition["lower_bound"])
                maxes.append(raw_definition["upper_bound"])
        elif "mins" in config and "maxes" in config:
            mins = list(config["mins"])
            maxes = list(config["maxes"])
        else:
            raise ValueError("Search configuration must define dimensions or mins/maxes")

        return cls(
            mins=mins,
            maxes=maxes,
            subdivisions=int(config["subdivisions"]),
            concurrency=_optional_int(config.get("concurrency")),
            schedule=config.get("schedule", "static"),
            pool=config.get("pool", "thread"),
            unpack_arguments=bool(config.get("unpack_arguments", False)),
            names=names,
            log_path=config.get("log_path"),
        )

    def to_config(self) -> dict[str, Any]:
        """Serialise the search definition back into a configuration mapping."""
        config: dict[str, Any] = {"subdivisions": self.subdivisions}
        if self.names is not None:
            config["dimensions"] = {
                name: {"lower_bound": lower, "upper_bound": upper}
                for name, lower, upper in zip(self.names, self.mins, self.maxes)
            }
        else:
            config["mins"] = list(self.mins)
            config["maxes"] = list(self.maxes)
        if self.concurrency is not None:
            config["concurrency"] = self.concurrency
        if self.schedule != "static":
            config["schedule"] = self.schedule
        if self.pool != "thread":
            config["pool"] = self.pool
        if self.unpack_arguments:
            config["unpack_arguments"] = True
        if self.log_path is not None:
            config["log_path"] = str(self.log_path)
        return config


class GridSearch:
    """Exhaustive maximisation of an objective over the lattice defined by a config."""

    def __init__(self, config: SearchConfig) -> None:
        config.validate()
        self.config = config
        self.evaluator = LatticeEvaluator(
            concurrency=config.resolved_concurrency(),
            schedule=config.schedule,
            pool=config.pool,
            unpack_arguments=config.unpack_arguments,
            log_path=config.log_path,
        )

    def lattice(self) -> Lattice:
        """Build a fresh lattice for one search invocation."""
        return build_lattice(self.config.mins, self.config.maxes, self.config.subdivisions)

    def evaluate(self, objective: Objective) -> tuple[Trial, ...]:
        """Score every lattice point, in generation order."""
        return self.evaluator.evaluate(self.lattice(), objective)

    def run(self, objective: Objective) -> SearchResult:
        """Evaluate the whole lattice and return its best point."""
        trials = self.evaluate(objective)
        return SearchResult.from_trial(select_best(trials), evaluations=len(trials))

    def report(self, objective: Objective) -> TrialReporter:
        """Evaluate the whole lattice and wrap the trials for tabular inspection."""
        return TrialReporter(self.evaluate(objective), names=self.config.names)


def search(
    objective: Objective,
    mins: Sequence[float],
    maxes: Sequence[float],
    subdivisions: int,
    concurrency: int | None = None,
    *,
    schedule: str = "static",
    pool: str = "thread",
    unpack_arguments: bool = False,
) -> SearchResult:
    """
    Maximise ``objective`` over the box ``[mins[i], maxes[i]]`` on a regular lattice.

    Every axis is sampled at ``subdivisions`` evenly spaced points (endpoints included)
    and all ``subdivisions ** len(mins)`` points are scored by ``concurrency`` workers.
    The highest score wins; ties go to the point generated first.

    Raises:
        InvalidParameterError: when ``subdivisions < 2`` or ``concurrency < 1``.
        DimensionMismatchError: when ``mins`` and ``maxes`` differ in length.
        Exception: whatever ``objective`` raises, unchanged.
    """
    config = SearchConfig(
        mins=mins,
        maxes=maxes,
        subdivisions=subdivisions,
        concurrency=concurrency,
        schedule=schedule,
        pool=pool,
        unpack_arguments=unpack_arguments,
    )
    return GridSearch(config).run(objective)


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)

"""Evaluated lattice points and reduction to the best one."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from .lattice import GridPoint


@dataclass(frozen=True)
class Trial:
    """Score of a single lattice point, keyed by its position in generation order."""

    index: int
    point: GridPoint
    score: float

    def to_dict(self, names: Sequence[str] | None = None) -> dict[str, Any]:
        """Convert the trial into a JSON serialisable dictionary."""
        point: Any = list(self.point)
        if names is not None:
            point = dict(zip(names, self.point))
        return {"index": self.index, "point": point, "score": self.score}


@dataclass(frozen=True)
class SearchResult:
    """Best point found by a search together with its score."""

    point: GridPoint
    score: float
    index: int = 0
    evaluations: int = 0

    @classmethod
    def from_trial(cls, trial: Trial, *, evaluations: int) -> "SearchResult":
        return cls(point=trial.point, score=trial.score, index=trial.index, evaluations=evaluations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "point": list(self.point),
            "score": self.score,
            "index": self.index,
            "evaluations": self.evaluations,
        }


def select_best(trials: Sequence[Trial]) -> Trial:
    """
    Return the trial with the highest score.

    Ties go to the trial that comes first in the sequence. NaN scores never win
    against a number, unlike a plain ``<``-based first-max scan, which would keep a
    leading NaN as the maximum. When every score is NaN the first trial is returned.

    Raises:
        ValueError: if ``trials`` is empty.
    """
    if not trials:
        raise ValueError("Cannot select the best trial from an empty sequence")

    scores = np.fromiter((trial.score for trial in trials), dtype=float, count=len(trials))
    valid = ~np.isnan(scores)
    if not valid.any():
        return trials[0]
    best = scores[valid].max()
    position = int(np.flatnonzero(valid & (scores == best))[0])
    return trials[position]

"""Reporting utilities for evaluated lattices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd

from .trials import Trial, select_best


@dataclass
class TrialReporter:
    """Produce tabular and aggregated views of evaluated trials."""

    trials: Sequence[Trial]
    names: Sequence[str] | None = None

    def to_table(self) -> pd.DataFrame:
        """
        Return one row per trial in generation order.

        Columns are the dimension names (``x0``, ``x1``, ... when unnamed) followed by
        ``score``; the frame is indexed by the trial's lattice index.
        """
        columns = self._column_names()
        frame = pd.DataFrame([list(trial.point) for trial in self.trials], columns=columns)
        frame["score"] = [trial.score for trial in self.trials]
        frame.index = pd.Index([trial.index for trial in self.trials], name="index")
        return frame

    def best(self) -> Trial:
        return select_best(self.trials)

    def summary(self, *, top_n: int = 5) -> Dict[str, Any]:
        """Return the best trials and min/max/mean of the scores."""
        if top_n < 0:
            raise ValueError(f"top_n must be non-negative, got {top_n}")
        if not self.trials:
            return {"evaluations": 0, "best": None, "top_n": [], "scores": {}}

        names = self._column_names()
        scores = np.array([trial.score for trial in self.trials], dtype=float)
        # Stable sort keeps generation order among equal scores; NaN sorts last.
        order = np.argsort(-scores, kind="stable")[:top_n]
        score_series = self.to_table()["score"]

        return {
            "evaluations": len(self.trials),
            "best": self.best().to_dict(names),
            "top_n": [self.trials[int(position)].to_dict(names) for position in order],
            "scores": {
                "min": float(score_series.min()),
                "max": float(score_series.max()),
                "mean": float(score_series.mean()),
            },
        }

    def _column_names(self) -> list[str]:
        dimensions = len(self.trials[0].point) if self.trials else len(self.names or ())
        if self.names is None:
            return [f"x{dimension}" for dimension in range(dimensions)]
        if len(self.names) != dimensions:
            raise ValueError(f"Expected {dimensions} dimension names, got {len(self.names)}")
        return list(self.names)

"""Exhaustive grid search over an n-dimensional box."""

from .evaluator import LatticeEvaluator, partition_ranges
from .exceptions import DimensionMismatchError, GridSearchError, InvalidParameterError
from .lattice import GridPoint, Lattice, build_lattice, subdivide_axis
from .reporting import TrialReporter
from .search import GridSearch, SearchConfig, search
from .trials import SearchResult, Trial, select_best

__all__ = [
    "DimensionMismatchError",
    "GridPoint",
    "GridSearch",
    "GridSearchError",
    "InvalidParameterError",
    "Lattice",
    "LatticeEvaluator",
    "SearchConfig",
    "SearchResult",
    "Trial",
    "TrialReporter",
    "build_lattice",
    "partition_ranges",
    "search",
    "select_best",
    "subdivide_axis",
]

"""Evaluator applying an objective to every lattice point across a worker pool."""

from __future__ import annotations

from concurrent.futures import (
    FIRST_COMPLETED,
    FIRST_EXCEPTION,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from threading import Event, Lock
from typing import Callable, Sequence

import time

from .exceptions import InvalidParameterError
from .lattice import GridPoint, Lattice
from .trials import Trial

Objective = Callable[..., float]

SCHEDULES = ("static", "dynamic")
POOLS = ("thread", "process")


def partition_ranges(total: int, parts: int) -> list[range]:
    """
    Split ``range(total)`` into ``parts`` contiguous, disjoint ranges.

    Range sizes differ by at most one; the first ``total % parts`` ranges take the
    extra point. Ranges are empty when ``parts`` exceeds ``total``.
    """
    if parts < 1:
        raise InvalidParameterError("concurrency", parts, "at least 1")
    per_part, extras = divmod(total, parts)
    ranges: list[range] = []
    start = 0
    for position in range(parts):
        stop = start + per_part + (1 if position < extras else 0)
        ranges.append(range(start, stop))
        start = stop
    return ranges


@dataclass
class LatticeEvaluator:
    """Score every lattice point, keeping scores aligned with generation order."""

    concurrency: int = 1
    schedule: str = "static"
    pool: str = "thread"
    unpack_arguments: bool = False
    log_path: Path | None = None

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise InvalidParameterError("concurrency", self.concurrency, "at least 1")
        if self.schedule not in SCHEDULES:
            raise InvalidParameterError("schedule", self.schedule, f"one of {', '.join(SCHEDULES)}")
        if self.pool not in POOLS:
            raise InvalidParameterError("pool", self.pool, f"one of {', '.join(POOLS)}")
        if self.log_path is not None:
            self.log_path = Path(self.log_path)
        self._log_lock = Lock()

    def evaluate(self, points: Lattice | Sequence[GridPoint], objective: Objective) -> tuple[Trial, ...]:
        """
        Apply ``objective`` to every point.

        Args:
            points: Lattice or ordered sequence of points.
            objective: Callable returning a real score for one point.

        Returns:
            Trials in the same order as ``points``.

        Raises:
            Exception: the first error raised by ``objective``, unchanged. No trials are
                returned once any point fails.
        """
        ordered = points.points() if isinstance(points, Lattice) else tuple(tuple(point) for point in points)
        total = len(ordered)
        self._log(
            f"Starting evaluation of {total} points with concurrency={self.concurrency} "
            f"(schedule={self.schedule}, pool={self.pool})"
        )
        started = time.perf_counter()

        if self.concurrency == 1 or total <= 1:
            scores = _evaluate_range(objective, ordered, self.unpack_arguments)
        elif self.schedule == "static":
            scores = self._run_static(ordered, objective)
        else:
            scores = self._run_dynamic(ordered, objective)

        duration = time.perf_counter() - started
        self._log(f"Completed evaluation of {total} points in {duration:.2f} seconds")
        return tuple(
            Trial(index=index, point=point, score=score)
            for index, (point, score) in enumerate(zip(ordered, scores))
        )

    # Execution helpers -------------------------------------------------

    def _run_static(self, points: tuple[GridPoint, ...], objective: Objective) -> list[float]:
        spans = [span for span in partition_ranges(len(points), self.concurrency) if span]
        # Process workers cannot share an Event; they always finish their range.
        abort = Event() if self.pool == "thread" else None

        with self._make_executor() as executor:
            futures: dict[Future, range] = {
                executor.submit(
                    _evaluate_range,
                    objective,
                    points[span.start:span.stop],
                    self.unpack_arguments,
                    abort,
                ): span
                for span in spans
            }
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            if any(future.exception() is not None for future in done):
                if abort is not None:
                    abort.set()
                for future in futures:
                    future.cancel()

        failed = [
            span.start
            for future, span in futures.items()
            if not future.cancelled() and future.exception() is not None
        ]
        if failed:
            first = min(failed)
            next(future for future, span in futures.items() if span.start == first).result()

        scores: list[float] = [0.0] * len(points)
        for future, span in futures.items():
            scores[span.start:span.stop] = future.result()
        return scores

    def _run_dynamic(self, points: tuple[GridPoint, ...], objective: Objective) -> list[float]:
        scores: list[float] = [0.0] * len(points)
        indices = iter(range(len(points)))
        failures: dict[int, Future] = {}

        def submit_next(executor: Executor, in_flight: dict[Future, int]) -> bool:
            if failures:
                return False
            try:
                index = next(indices)
            except StopIteration:
                return False
            future = executor.submit(_score_point, objective, points[index], self.unpack_arguments)
            in_flight[future] = index
            return True

        with self._make_executor() as executor:
            in_flight: dict[Future, int] = {}
            for _ in range(self.concurrency):
                if not submit_next(executor, in_flight):
                    break

            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    index = in_flight.pop(future)
                    if future.exception() is not None:
                        failures[index] = future
                        continue
                    scores[index] = future.result()
                for _ in done:
                    submit_next(executor, in_flight)

        if failures:
            failures[min(failures)].result()
        return scores

    def _make_executor(self) -> Executor:
        if self.pool == "process":
            return ProcessPoolExecutor(max_workers=self.concurrency)
        return ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="gridsearch")

    def _log(self, message: str) -> None:
        if not self.log_path:
            return
        timestamp = datetime.now(UTC).isoformat()
        line = f"{timestamp} {message}\n"
        with self._log_lock:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as handle:
                handle.write(line)


# Worker functions --------------------------------------------------------------
# Module level so that process pools can pickle them.

def _score_point(objective: Objective, point: GridPoint, unpack_arguments: bool) -> float:
    if unpack_arguments:
        return float(objective(*point))
    return float(objective(point))


def _evaluate_range(
    objective: Objective,
    points: Sequence[GridPoint],
    unpack_arguments: bool,
    abort: Event | None = None,
) -> list[float]:
    scores: list[float] = []
    for point in points:
        if abort is not None and abort.is_set():
            break
        scores.append(_score_point(objective, point, unpack_arguments))
    return scores

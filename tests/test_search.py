import pytest

from gridsearch import (
    DimensionMismatchError,
    GridSearch,
    InvalidParameterError,
    SearchConfig,
    search,
)
from gridsearch.lattice import subdivide_axis


class ObjectiveError(RuntimeError):
    pass


def fails_at_midpoint(point):
    if point == (0.5,):
        raise ObjectiveError(f"cannot evaluate {point}")
    return -point[0]


def paraboloid(point):
    x, y = point
    return -((x - 1.2) ** 2 + (y + 0.3) ** 2)


def test_paraboloid_maximum_is_within_one_grid_step():
    result = search(paraboloid, [-2, -2], [2, 2], 10, 5)

    spacing = 4 / 9
    assert abs(result.point[0] - 1.2) <= spacing
    assert abs(result.point[1] + 0.3) <= spacing
    assert result.score == paraboloid(result.point)
    assert result.evaluations == 100


def test_constant_objective_returns_first_point():
    result = search(lambda point: 0.0, [-1, 3, 0.5], [1, 4, 2.5], 4, 3)

    assert result.score == 0
    assert result.point == (-1.0, 3.0, 0.5)
    assert result.index == 0


def test_single_dimension_uses_three_samples():
    result = search(lambda point: point[0], [0], [10], 3, 2)

    assert subdivide_axis(0, 10, 3) == (0.0, 5.0, 10.0)
    assert result.point == (10.0,)
    assert result.score == 10.0
    assert result.evaluations == 3


def test_objective_failure_aborts_search():
    def objective(point):
        if point == (0.0, 2.0):
            raise ObjectiveError(f"cannot evaluate {point}")
        return 1.0

    with pytest.raises(ObjectiveError, match="cannot evaluate"):
        search(objective, [-2, -2], [2, 2], 5, 4)


def plateau(point):
    # Coarse rounding creates many ties, so only tie-breaking decides the winner.
    return -round(abs(point[0] - 0.5) + abs(point[1]), 0)


@pytest.mark.parametrize("concurrency", [1, 2, 3, 4, 7, 16, 500])
@pytest.mark.parametrize("schedule", ["static", "dynamic"])
def test_result_does_not_depend_on_concurrency(concurrency, schedule):
    expected = search(plateau, [-3, -3], [3, 3], 13, 1)

    result = search(plateau, [-3, -3], [3, 3], 13, concurrency, schedule=schedule)

    assert result == expected


def test_unpacked_objective():
    result = search(lambda x, y: -(x**2) - y**2, [-1, -1], [1, 1], 3, 2, unpack_arguments=True)

    assert result.point == (0.0, 0.0)
    assert result.score == 0.0


def test_default_concurrency_uses_available_cpus():
    result = search(paraboloid, [-2, -2], [2, 2], 10)

    assert result == search(paraboloid, [-2, -2], [2, 2], 10, 1)


@pytest.mark.parametrize("subdivisions", [1, 0, -1])
def test_too_few_subdivisions_is_checked_first(subdivisions):
    with pytest.raises(InvalidParameterError) as excinfo:
        search(paraboloid, [0, 0], [1], subdivisions, 0)
    assert excinfo.value.parameter == "subdivisions"


@pytest.mark.parametrize("concurrency", [0, -2])
def test_concurrency_below_one_is_checked_before_dimensions(concurrency):
    with pytest.raises(InvalidParameterError) as excinfo:
        search(paraboloid, [0, 0], [1], 3, concurrency)
    assert excinfo.value.parameter == "concurrency"


def test_dimension_mismatch_reports_both_lengths():
    with pytest.raises(DimensionMismatchError) as excinfo:
        search(paraboloid, [0, 0], [1, 1, 1], 3, 1)

    assert excinfo.value.mins_length == 2
    assert excinfo.value.maxes_length == 3
    assert "2" in str(excinfo.value) and "3" in str(excinfo.value)


def test_empty_box_is_rejected():
    with pytest.raises(InvalidParameterError):
        search(paraboloid, [], [], 3, 1)


def test_validation_happens_before_any_evaluation():
    calls = []

    def objective(point):
        calls.append(point)
        return 0.0

    with pytest.raises(DimensionMismatchError):
        search(objective, [0], [1, 2], 3, 1)
    assert calls == []


def test_grid_search_builds_fresh_lattice_per_run():
    grid_search = GridSearch(SearchConfig(mins=[0, 0], maxes=[1, 1], subdivisions=3, concurrency=2))

    assert grid_search.lattice() is not grid_search.lattice()
    assert grid_search.run(sum) == grid_search.run(sum)
    assert grid_search.run(sum).point == (1.0, 1.0)


def test_grid_search_evaluate_returns_every_trial():
    grid_search = GridSearch(SearchConfig(mins=[0], maxes=[1], subdivisions=5, concurrency=2))

    trials = grid_search.evaluate(lambda point: -point[0])

    assert [trial.point for trial in trials] == [(0.0,), (0.25,), (0.5,), (0.75,), (1.0,)]


def test_huge_box_finds_midpoint():
    result = search(lambda point: -abs(point[0]), [-1e308], [1e308], 3, 1)

    assert result.point == (0.0,)
    assert result.score == 0.0


@pytest.mark.parametrize("schedule", ["static", "dynamic"])
def test_objective_failure_in_process_pool_reaches_caller(schedule):
    with pytest.raises(ObjectiveError, match="cannot evaluate"):
        search(fails_at_midpoint, [0], [1], 3, 2, schedule=schedule, pool="process")


@pytest.mark.parametrize("schedule", ["static", "dynamic"])
def test_process_pool_schedules_agree_with_threads(schedule):
    expected = search(plateau, [-3, -3], [3, 3], 7, 1)

    assert search(plateau, [-3, -3], [3, 3], 7, 3, schedule=schedule, pool="process") == expected

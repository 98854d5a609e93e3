import pytest

from bakeryops.services.production_planning import aggregate_product_demand, batch_count, plan_batches


@pytest.mark.parametrize(
    "total, capacity, expected",
    [
        (65, 20, [20, 20, 20, 5]),
        (40, 20, [20, 20]),
        (5, 20, [5]),
        (20, 20, [20]),
        (1, 1, [1]),
    ],
)
def test_plan_batches_splits_without_rounding_up(total, capacity, expected):
    assert plan_batches(total, capacity) == expected


@pytest.mark.parametrize("total, capacity", [(0, 20), (-5, 20), (10, 0), (10, -1)])
def test_plan_batches_rejects_non_positive_input(total, capacity):
    assert plan_batches(total, capacity) == []


def test_plan_batches_preserves_total():
    batches = plan_batches(1234, 48)
    assert sum(batches) == 1234
    assert all(0 < size <= 48 for size in batches)
    assert batches[:-1] == [48] * (len(batches) - 1)


def test_batch_count_matches_plan():
    assert batch_count(65, 20) == 4
    assert batch_count(40, 20) == 2
    assert batch_count(0, 20) == 0
    assert batch_count(10, 0) == 0


def test_aggregate_product_demand_sums_per_product_in_first_seen_order():
    demand = aggregate_product_demand([(2, 10), (1, 5), (2, 15), (3, 1), (1, 5)])
    assert list(demand.items()) == [(2, 25), (1, 10), (3, 1)]

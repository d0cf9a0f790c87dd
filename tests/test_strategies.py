import math
import random

import numpy as np
import pytest

from lagrangiandescriptors import (
    AugmentedStrategy,
    Branch,
    InitialConditionGrid,
    IntegrationError,
    PostprocessedStrategy,
    SubproblemKey,
    Trajectory,
    integrate,
    make_strategy,
    unit_descriptor,
)


def _grid(n=4):
    return InitialConditionGrid([[0.1 * i, -0.2 * i] for i in range(n)])


def test_make_strategy_picks_class():
    assert isinstance(make_strategy("augmented", _grid(), unit_descriptor, "both"), AugmentedStrategy)
    assert isinstance(make_strategy("postprocessed", _grid(), unit_descriptor, "both"), PostprocessedStrategy)


@pytest.mark.parametrize("direction, count", [("forward", 4), ("backward", 4), ("both", 4)])
def test_augmented_has_one_subproblem_per_entry(direction, count):
    strategy = AugmentedStrategy(_grid(), unit_descriptor, direction)
    keys = strategy.keys()
    assert len(keys) == count
    assert [k.index for k in keys] == list(range(4))
    assert all(k.branch is None for k in keys)
    assert strategy.reduce is None


@pytest.mark.parametrize("direction, count", [("forward", 4), ("backward", 4), ("both", 8)])
def test_postprocessed_subproblem_counts(direction, count):
    strategy = PostprocessedStrategy(_grid(), unit_descriptor, direction)
    assert len(strategy.keys()) == count


def test_postprocessed_both_generates_ordered_pairs():
    strategy = PostprocessedStrategy(_grid(3), unit_descriptor, "both")
    assert strategy.keys() == [
        SubproblemKey(0, Branch.FORWARD), SubproblemKey(0, Branch.BACKWARD),
        SubproblemKey(1, Branch.FORWARD), SubproblemKey(1, Branch.BACKWARD),
        SubproblemKey(2, Branch.FORWARD), SubproblemKey(2, Branch.BACKWARD),
    ]
    assert strategy.reduce is not None


def test_augmented_build_overrides_state_and_keeps_span(duffing_prob):
    grid = _grid()
    strategy = AugmentedStrategy(grid, unit_descriptor, "both")
    template = strategy.template(duffing_prob)

    sub = strategy.build(template, SubproblemKey(3))
    layout = strategy.layout
    np.testing.assert_array_equal(layout.get(sub.u0, "fwd"), grid[3])
    np.testing.assert_array_equal(layout.get(sub.u0, "bwd"), grid[3])
    assert layout.get(sub.u0, "lfwd") == 0.0
    assert layout.get(sub.u0, "lbwd") == 0.0
    assert sub.tspan == duffing_prob.tspan


def test_postprocessed_build_reverses_backward_span_and_sets_state(duffing_prob):
    grid = _grid()
    strategy = PostprocessedStrategy(grid, unit_descriptor, "both")

    fwd = strategy.build(duffing_prob, SubproblemKey(2, Branch.FORWARD))
    bwd = strategy.build(duffing_prob, SubproblemKey(2, Branch.BACKWARD))

    assert fwd.tspan == (0.0, 2.0)
    assert bwd.tspan == (2.0, 0.0)
    np.testing.assert_array_equal(fwd.u0, grid[2])
    # both halves of a pair start from the same grid entry
    np.testing.assert_array_equal(bwd.u0, grid[2])


def test_templates_order_a_decreasing_span(duffing_prob):
    prob = duffing_prob.reversed()
    for strategy in (AugmentedStrategy(_grid(), unit_descriptor, "both"),
                     PostprocessedStrategy(_grid(), unit_descriptor, "both")):
        assert strategy.template(prob).tspan == (0.0, 2.0)

    post = PostprocessedStrategy(_grid(), unit_descriptor, "both")
    assert post.build(prob, SubproblemKey(0, Branch.FORWARD)).tspan == (0.0, 2.0)
    assert post.build(prob, SubproblemKey(0, Branch.BACKWARD)).tspan == (2.0, 0.0)


def test_build_is_pure(duffing_prob):
    strategy = PostprocessedStrategy(_grid(), unit_descriptor, "backward")
    key = SubproblemKey(1, Branch.BACKWARD)
    a = strategy.build(duffing_prob, key)
    b = strategy.build(duffing_prob, key)
    assert a is not b
    assert a.tspan == b.tspan
    np.testing.assert_array_equal(a.u0, b.u0)


def test_extract_labels_follow_branch(duffing_prob):
    strategy = PostprocessedStrategy(_grid(), unit_descriptor, "both")
    key = SubproblemKey(0, Branch.BACKWARD)
    traj = integrate(strategy.build(duffing_prob, key), dense_output=True)
    record = strategy.extract(traj, key)
    assert list(record) == ["lbwd"]
    assert record["lbwd"] == pytest.approx(2.0)


def test_extract_of_failed_subproblem_is_nan(duffing_prob):
    strategy = AugmentedStrategy(_grid(), unit_descriptor, "both")
    key = SubproblemKey(0)
    record = strategy.extract(Trajectory.failed(duffing_prob, "boom"), key)
    assert set(record) == {"lfwd", "lbwd"}
    assert all(math.isnan(v) for v in record.values())


def test_reduce_keys_by_pair_index_not_arrival_order():
    n = 6
    strategy = PostprocessedStrategy(_grid(n), unit_descriptor, "both")
    keys = strategy.keys()
    random.Random(7).shuffle(keys)

    acc = {}
    for key in keys:
        value = key.index + (0.5 if key.branch is Branch.BACKWARD else 0.0)
        acc = strategy.reduce(acc, {key.branch.field: value}, key)

    records = strategy.finalize(acc)
    assert len(records) == n
    for k, rec in enumerate(records):
        assert rec == {"lfwd": k, "lbwd": k + 0.5}


def test_reduce_rejects_duplicate_half():
    strategy = PostprocessedStrategy(_grid(2), unit_descriptor, "both")
    key = SubproblemKey(1, Branch.FORWARD)
    acc = strategy.reduce({}, {"lfwd": 1.0}, key)
    with pytest.raises(IntegrationError):
        strategy.reduce(acc, {"lfwd": 2.0}, key)


def test_finalize_requires_complete_pairs():
    strategy = PostprocessedStrategy(_grid(2), unit_descriptor, "both")
    acc = strategy.reduce({}, {"lfwd": 1.0}, SubproblemKey(0, Branch.FORWARD))
    acc = strategy.reduce(acc, {"lbwd": 1.0}, SubproblemKey(0, Branch.BACKWARD))
    acc = strategy.reduce(acc, {"lfwd": 1.0}, SubproblemKey(1, Branch.FORWARD))
    with pytest.raises(IntegrationError, match="Pair 1"):
        strategy.finalize(acc)


def test_failed_half_invalidates_pair():
    strategy = PostprocessedStrategy(_grid(1), unit_descriptor, "both")
    acc = strategy.reduce({}, {"lfwd": 1.0}, SubproblemKey(0, Branch.FORWARD))
    acc = strategy.reduce(acc, {"lbwd": math.nan}, SubproblemKey(0, Branch.BACKWARD))
    (record,) = strategy.finalize(acc)
    assert math.isnan(record["lfwd"]) and math.isnan(record["lbwd"])

"""
Unit tests for stump fitting.

Tests cover:
- Stratified bootstrap index ranges
- Threshold grids and candidate order
- Candidate evaluation (branch means, empty branches)
- Best-split selection across rule families
- ET clamp on the paired rule
"""
import numpy as np
import pytest

from backend.etforecast import config
from backend.etforecast.tree import (
    MOISTURE,
    TEMPERATURE,
    PairedFeatureRule,
    SingleFeatureRule,
    evaluate,
    fit_tree,
    iter_candidates,
    stratified_bootstrap,
)
from backend.etforecast.utils import round_half_up


# ============================================================
# Stratified Bootstrap
# ============================================================

def test_bootstrap_single_sample_always_index_zero():
    rng = np.random.RandomState(0)
    for _ in range(20):
        assert stratified_bootstrap(1, rng).tolist() == [0]


def test_bootstrap_empty():
    assert stratified_bootstrap(0, np.random.RandomState(0)).size == 0


def test_bootstrap_draws_stay_inside_strata():
    rng = np.random.RandomState(1)
    for _ in range(50):
        idx = stratified_bootstrap(7, rng)
        # ceil(7 / 5) = 2 → strata [0,2) [2,4) [4,6) [6,7)
        assert len(idx) == 7
        assert all(0 <= i < 2 for i in idx[0:2])
        assert all(2 <= i < 4 for i in idx[2:4])
        assert all(4 <= i < 6 for i in idx[4:6])
        assert idx[6] == 6


def test_bootstrap_up_to_five_samples_is_identity():
    # one sample per stratum leaves no choice
    assert stratified_bootstrap(5, np.random.RandomState(2)).tolist() == [0, 1, 2, 3, 4]


def test_bootstrap_respects_num_strata():
    idx = stratified_bootstrap(4, np.random.RandomState(3), num_strata=2)
    assert len(idx) == 4
    assert set(idx[:2]) <= {0, 1}
    assert set(idx[2:]) <= {2, 3}


# ============================================================
# Threshold Grid / Candidates
# ============================================================

def test_round_half_up():
    assert round_half_up([2.5, -2.5, 2.4]).tolist() == [3.0, -2.0, 2.0]
    assert round_half_up([41, 52.5, 57.4], 5).tolist() == [40.0, 55.0, 55.0]


def test_candidate_order():
    X = np.array([[20.4, 41.0], [22.6, 53.0], [20.2, 40.0]])
    candidates = list(iter_candidates(X))

    assert candidates == [
        SingleFeatureRule(feature=TEMPERATURE, threshold=20.0),
        SingleFeatureRule(feature=TEMPERATURE, threshold=23.0),
        SingleFeatureRule(feature=MOISTURE, threshold=40.0),
        SingleFeatureRule(feature=MOISTURE, threshold=55.0),
        PairedFeatureRule(temperature_threshold=20.0, moisture_threshold=40.0),
        PairedFeatureRule(temperature_threshold=20.0, moisture_threshold=55.0),
        PairedFeatureRule(temperature_threshold=23.0, moisture_threshold=40.0),
        PairedFeatureRule(temperature_threshold=23.0, moisture_threshold=55.0),
    ]


# ============================================================
# Candidate Evaluation
# ============================================================

def test_evaluate_single_rule_uses_raw_targets():
    X = np.array([[10.0, 20.0], [30.0, 60.0]])
    y = np.array([100.0, -5.0])

    mse, rule = evaluate(SingleFeatureRule(feature=TEMPERATURE, threshold=10.0), X, y)

    assert mse == 0.0
    assert rule.left_mean == 100.0
    assert rule.right_mean == -5.0


def test_evaluate_weighted_mse():
    X = np.array([[10.0, 20.0], [10.0, 20.0], [30.0, 20.0]])
    y = np.array([1.0, 3.0, 7.0])

    mse, rule = evaluate(SingleFeatureRule(feature=TEMPERATURE, threshold=10.0), X, y)

    # left [1, 3] has variance 1, right [7] has 0 → (2·1 + 1·0) / 3
    assert mse == pytest.approx(2 / 3)
    assert rule.left_mean == pytest.approx(2.0)
    assert rule.right_mean == pytest.approx(7.0)


def test_evaluate_rejects_empty_branch():
    X = np.array([[10.0, 20.0], [30.0, 60.0]])
    y = np.array([1.0, 2.0])

    _, rule = evaluate(PairedFeatureRule(temperature_threshold=30.0,
                                         moisture_threshold=60.0), X, y)
    assert rule is None


def test_paired_rule_splits_clamped_proxy_et():
    X = np.array([[0.0, 0.0], [150.0, 100.0]])
    y = np.array([42.0, 42.0])
    rule = PairedFeatureRule(temperature_threshold=0.0, moisture_threshold=0.0)

    values = rule.split_values(X, y)
    assert values.tolist() == [config.ET_MIN, config.ET_MAX]

    _, fitted = evaluate(rule, X, y)
    assert fitted.left_mean == config.ET_MIN
    assert fitted.right_mean == config.ET_MAX


# ============================================================
# Best Split
# ============================================================

def test_fit_tree_single_sample_has_no_rule():
    assert fit_tree([[25.0, 50.0]], [3.5], random_state=0) is None


def test_fit_tree_empty():
    assert fit_tree(np.empty((0, 2)), np.empty(0), random_state=0) is None


def test_fit_tree_two_samples_first_perfect_split_wins():
    X = np.array([[10.0, 20.0], [30.0, 60.0]])
    y = np.array([1.4, 4.2])

    for seed in range(5):
        rule = fit_tree(X, y, random_state=seed)
        assert rule == SingleFeatureRule(feature=TEMPERATURE, threshold=10.0,
                                         left_mean=1.4, right_mean=4.2)


def test_fit_tree_prefers_paired_rule_when_strictly_better():
    # three samples, one per stratum: the bootstrap is the identity
    X = np.array([[10.0, 20.0], [10.0, 80.0], [30.0, 20.0]])
    y = np.array([1.0, 9.0, 9.0])

    rule = fit_tree(X, y, random_state=0)

    assert isinstance(rule, PairedFeatureRule)
    assert rule.temperature_threshold == 10.0
    assert rule.moisture_threshold == 20.0
    assert rule.left_mean == pytest.approx(1.4)
    assert rule.right_mean == pytest.approx(3.1)


def test_fit_tree_is_deterministic_for_seed():
    rng = np.random.RandomState(11)
    X = np.column_stack([rng.uniform(5, 35, 30), rng.uniform(10, 90, 30)])
    y = 0.08 * X[:, 0] + 0.03 * X[:, 1]

    assert fit_tree(X, y, random_state=4) == fit_tree(X, y, random_state=4)


def test_accepted_rules_have_two_nonempty_branches():
    rng = np.random.RandomState(5)
    X = np.column_stack([rng.uniform(0, 40, 12), rng.uniform(0, 100, 12)])
    y = rng.uniform(0, 10, 12)

    for seed in range(30):
        rule = fit_tree(X, y, random_state=seed)
        assert rule is not None
        left = rule.goes_left(X)
        # the rule separated its own bootstrap, which is a subset of X
        assert left.any() and (~left).any()


def test_paired_rule_means_stay_within_et_range():
    rng = np.random.RandomState(8)
    X = np.column_stack([rng.uniform(-20, 120, 25), rng.uniform(0, 100, 25)])
    y = rng.uniform(-50, 50, 25)

    paired = [r for r in (fit_tree(X, y, random_state=s) for s in range(40))
              if isinstance(r, PairedFeatureRule)]
    for rule in paired:
        assert config.ET_MIN <= rule.left_mean <= config.ET_MAX
        assert config.ET_MIN <= rule.right_mean <= config.ET_MAX

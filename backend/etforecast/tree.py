"""
tree.py — Decision Stump Fitting
=================================

Fits one depth-1 regression tree ("stump") on a stratified bootstrap of
the daily samples.

Rule families (searched in this order, first strictly-better MSE wins):
    1. Temperature      — temperature ≤ thr, thr on a 1 °C grid
    2. Moisture         — moisture ≤ thr, thr on a 5 % grid
    3. Temperature AND moisture — both thresholds, every grid combination

Single-feature rules split the raw daily targets.  The paired rule splits
the proxy ET recomputed from each sample's features and clamped to the
plausible range [ET_MIN, ET_MAX], so its leaf means always stay inside
that range.

A rule is only accepted when both branches receive at least one sample.
When no threshold separates the bootstrap (e.g. a single distinct day),
no stump is produced for the round.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterator, Optional

import numpy as np
from sklearn.utils import check_random_state

from . import config
from .utils import proxy_et, round_half_up, safe_mean, safe_mse

logger = logging.getLogger("etforecast.tree")

TEMPERATURE = 0
MOISTURE = 1


@dataclass(frozen=True)
class SplitRule:
    """
    Base class of the fitted stumps.

    Attributes:
        left_mean (float): Prediction when the rule's test holds.
        right_mean (float): Prediction otherwise.
    """

    left_mean: float = 0.0
    right_mean: float = 0.0

    def goes_left(self, X: np.ndarray) -> np.ndarray:
        """Boolean mask of the rows of X that satisfy the rule's test."""
        raise NotImplementedError

    def split_values(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Per-sample values whose branch means the rule learns."""
        return y

    def predict(self, X: np.ndarray) -> np.ndarray:
        return np.where(self.goes_left(X), self.left_mean, self.right_mean)


@dataclass(frozen=True)
class SingleFeatureRule(SplitRule):
    """feature ≤ threshold, on raw targets."""

    feature: int = TEMPERATURE
    threshold: float = 0.0

    def goes_left(self, X):
        return X[:, self.feature] <= self.threshold


@dataclass(frozen=True)
class PairedFeatureRule(SplitRule):
    """temperature ≤ t AND moisture ≤ m, on clamped proxy ET."""

    temperature_threshold: float = 0.0
    moisture_threshold: float = 0.0

    def goes_left(self, X):
        return ((X[:, TEMPERATURE] <= self.temperature_threshold)
                & (X[:, MOISTURE] <= self.moisture_threshold))

    def split_values(self, X, y):
        et = proxy_et(X[:, TEMPERATURE], X[:, MOISTURE])
        return np.clip(et, config.ET_MIN, config.ET_MAX)


def stratified_bootstrap(n_samples: int, rng,
                         num_strata: int = None) -> np.ndarray:
    """
    Draw bootstrap indices independently inside contiguous strata.

    The index range is cut into ``num_strata`` blocks of ceil(n / strata)
    (the last block may be shorter or absent).  Each block contributes as
    many draws, with replacement, as it has members.

    Args:
        n_samples: Number of samples to index.
        rng: numpy RandomState supplying the draws.
        num_strata: Number of strata.  Defaults to config.NUM_STRATA (5).

    Returns:
        1-D int array of length n_samples (may contain duplicates).
    """
    num_strata = num_strata or config.NUM_STRATA
    if n_samples <= 0:
        return np.empty(0, dtype=np.intp)

    stratum_size = math.ceil(n_samples / num_strata)
    draws = []
    for stratum in range(num_strata):
        start = stratum * stratum_size
        end = min(start + stratum_size, n_samples)
        if end <= start:
            continue
        draws.append(rng.randint(start, end, size=end - start))
    return np.concatenate(draws)


def _distinct(values) -> list:
    """Distinct values in order of first appearance."""
    return list(dict.fromkeys(float(v) for v in values))


def iter_candidates(X: np.ndarray,
                    temp_step: float = None,
                    moisture_step: float = None) -> Iterator[SplitRule]:
    """
    Yield unfitted candidate rules for a bootstrap sample, in search order.

    Thresholds are the distinct grid-rounded feature values in the order
    they appear in X.
    """
    temp_step = temp_step or config.TEMP_THRESHOLD_STEP
    moisture_step = moisture_step or config.MOISTURE_THRESHOLD_STEP

    temp_thresholds = _distinct(round_half_up(X[:, TEMPERATURE], temp_step))
    moisture_thresholds = _distinct(round_half_up(X[:, MOISTURE], moisture_step))

    for thr in temp_thresholds:
        yield SingleFeatureRule(feature=TEMPERATURE, threshold=thr)
    for thr in moisture_thresholds:
        yield SingleFeatureRule(feature=MOISTURE, threshold=thr)
    for t_thr in temp_thresholds:
        for m_thr in moisture_thresholds:
            yield PairedFeatureRule(temperature_threshold=t_thr,
                                    moisture_threshold=m_thr)


def evaluate(candidate: SplitRule, X: np.ndarray,
             y: np.ndarray) -> tuple:
    """
    Score a candidate split on (X, y).

    Returns:
        (weighted_mse, fitted_rule).  fitted_rule is the candidate with its
        branch means filled in, or None when either branch is empty.
    """
    values = candidate.split_values(X, y)
    mask = candidate.goes_left(X)
    left, right = values[mask], values[~mask]

    n_left, n_right = left.size, right.size
    total = n_left + n_right
    mse = (n_left * safe_mse(left) + n_right * safe_mse(right)) / total if total else 0.0

    if n_left == 0 or n_right == 0:
        return mse, None
    return mse, replace(candidate, left_mean=safe_mean(left),
                        right_mean=safe_mean(right))


def fit_tree(X: np.ndarray, y: np.ndarray, random_state=None,
             num_strata: int = None) -> Optional[SplitRule]:
    """
    Fit one stump on a stratified bootstrap of (X, y).

    Args:
        X: Array of shape (n_samples, 2) — temperature, moisture.
        y: Array of shape (n_samples,) — daily ET targets.
        random_state: None, int seed, or numpy RandomState.
        num_strata: Bootstrap strata.  Defaults to config.NUM_STRATA.

    Returns:
        The lowest-MSE rule with two non-empty branches, or None.
    """
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if X.shape[0] == 0:
        return None

    rng = check_random_state(random_state)
    idx = stratified_bootstrap(X.shape[0], rng, num_strata)
    Xb, yb = X[idx], y[idx]

    best, best_mse = None, np.inf
    for candidate in iter_candidates(Xb):
        mse, rule = evaluate(candidate, Xb, yb)
        if rule is not None and mse < best_mse:
            best, best_mse = rule, mse

    if best is None:
        logger.debug("No separating threshold in bootstrap — stump skipped")
    else:
        logger.debug(f"Stump fitted: {best} (mse={best_mse:.5f})")
    return best

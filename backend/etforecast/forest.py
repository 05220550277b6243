"""
forest.py — Stump Forest Regressor
===================================

Bags independently fitted decision stumps (see tree.py) and averages
their leaf means.  Exposed as a scikit-learn regressor so it plugs into
the usual fit / predict / score workflow.

Why not RandomForestRegressor?
    - The split search is restricted to the dashboard's agronomic
      threshold grids (1 °C, 5 % moisture) plus a joint
      temperature-and-moisture rule that learns clamped proxy ET.
    - Bootstrap draws are stratified over the day order so every part of
      a short history is represented.
    - Histories are tiny (a few dozen days), so depth-1 trees are enough.

Each tree receives its own seed drawn from the master random stream
before fitting starts, so the ensemble is identical whether the trees
are fitted sequentially or with joblib workers.
"""

import logging
import numpy as np
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils import check_random_state
from sklearn.utils.validation import check_is_fitted

from . import config
from .tree import fit_tree

logger = logging.getLogger("etforecast.forest")


def tree_count(n_samples: int, max_trees: int = None, min_trees: int = None,
               trees_per_sample: int = None) -> int:
    """min(max_trees, max(min_trees, trees_per_sample × n_samples))."""
    max_trees = max_trees or config.MAX_TREES
    min_trees = min_trees or config.MIN_TREES
    trees_per_sample = trees_per_sample or config.TREES_PER_SAMPLE
    return min(max_trees, max(min_trees, trees_per_sample * n_samples))


def predict_ensemble(rules: list, X: np.ndarray) -> np.ndarray:
    """
    Average the outputs of every rule for each row of X.

    An empty ensemble predicts 0 for every row.
    """
    X = np.asarray(X, dtype=np.float64)
    if not rules:
        return np.zeros(X.shape[0])
    return np.mean([rule.predict(X) for rule in rules], axis=0)


def _check_features(X) -> np.ndarray:
    X = np.asarray(X, dtype=np.float64)
    if X.size == 0:
        return X.reshape(0, len(config.FEATURE_NAMES))
    if X.ndim != 2 or X.shape[1] != len(config.FEATURE_NAMES):
        raise ValueError(
            f"Expected feature matrix of shape (n, {len(config.FEATURE_NAMES)}) "
            f"({', '.join(config.FEATURE_NAMES)}), got {X.shape}"
        )
    return X


class StumpForestRegressor(RegressorMixin, BaseEstimator):
    """
    Ensemble of bootstrap-fitted decision stumps for daily ET.

    Parameters:
        n_estimators: Trees to fit.  None sizes the forest from the
            number of samples with tree_count().
        num_strata: Bootstrap strata.  Defaults to config.NUM_STRATA.
        n_jobs: joblib workers.  Defaults to config.N_JOBS.
        random_state: None, int seed, or numpy RandomState.

    Attributes:
        estimators_ (list[SplitRule]): Accepted stumps, in fitting order.
            May be shorter than the requested tree count.
    """

    def __init__(self, n_estimators=None, num_strata=None, n_jobs=None,
                 random_state=None):
        self.n_estimators = n_estimators
        self.num_strata = num_strata
        self.n_jobs = n_jobs
        self.random_state = random_state

    def fit(self, X, y) -> "StumpForestRegressor":
        """
        Fit the ensemble on daily samples.

        Args:
            X: Array of shape (n_days, 2) — temperature, moisture.
            y: Array of shape (n_days,) — ET targets.

        Returns:
            self (for method chaining).
        """
        X = _check_features(X)
        y = np.asarray(y, dtype=np.float64).ravel()
        if X.shape[0] != y.shape[0]:
            raise ValueError(f"X has {X.shape[0]} rows but y has {y.shape[0]}")

        n_trees = self.n_estimators if self.n_estimators is not None else tree_count(X.shape[0])
        if n_trees < 1:
            raise ValueError(f"n_estimators must be >= 1, got {n_trees}")

        self.n_features_in_ = X.shape[1]
        if X.shape[0] == 0:
            self.estimators_ = []
            logger.info("No daily samples — forest left empty")
            return self

        rng = check_random_state(self.random_state)
        seeds = rng.randint(np.iinfo(np.int32).max, size=n_trees)

        logger.info(f"Training stump forest on {X.shape[0]} daily samples, "
                    f"{n_trees} trees …")
        n_jobs = self.n_jobs if self.n_jobs is not None else config.N_JOBS
        fitted = Parallel(n_jobs=n_jobs)(
            delayed(fit_tree)(X, y, int(seed), self.num_strata) for seed in seeds
        )
        self.estimators_ = [rule for rule in fitted if rule is not None]
        logger.info(f"Training complete: {len(self.estimators_)}/{n_trees} "
                    "stumps accepted")
        return self

    def predict(self, X) -> np.ndarray:
        """
        Predict ET for each row of X.

        Raises:
            NotFittedError: If fit() has not been called.
        """
        check_is_fitted(self, "estimators_")
        return predict_ensemble(self.estimators_, _check_features(X))

    def predict_one(self, temperature: float, moisture: float) -> float:
        """Predict ET for a single (temperature, moisture) vector."""
        return float(self.predict([[temperature, moisture]])[0])

"""
LightGBM model for claim counts.
"""

import logging

import numpy as np
import pandas as pd
from lightgbm import LGBMRegressor
from pydantic import BaseModel, ConfigDict

from ..config import get_settings
from ..data.schemas import CLAIM_FEATURES

logger = logging.getLogger(__name__)


class BoostingConfig(BaseModel):
    """Fixed LightGBM parameters."""

    model_config = ConfigDict(frozen=True)

    objective: str = "poisson"
    learning_rate: float = 0.05
    n_estimators: int = 300
    num_leaves: int = 7
    min_child_samples: int = 50
    reg_lambda: float = 10.0
    reg_alpha: float = 0.0
    colsample_bytree: float = 0.8
    subsample: float = 0.8
    subsample_freq: int = 1
    random_state: int = 8300


class BoostingModel:
    """Fitted gradient-boosted tree ensemble."""

    name = "lgb"

    def __init__(self, regressor: LGBMRegressor, config: BoostingConfig):
        self.regressor = regressor
        self.config = config

    @property
    def booster(self):
        """The underlying ``lightgbm.Booster`` (used by TreeSHAP)."""
        return self.regressor.booster_

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Expected claim count."""
        return self.regressor.predict(X[CLAIM_FEATURES])

    def predict_log(self, X: pd.DataFrame) -> np.ndarray:
        """Raw score, i.e. the log expected claim count."""
        return self.regressor.predict(X[CLAIM_FEATURES], raw_score=True)


def fit_boosting(
    X: pd.DataFrame,
    y: pd.Series | np.ndarray,
    config: BoostingConfig | None = None,
    n_threads: int | None = None,
) -> BoostingModel:
    """
    Fit the LightGBM model.

    Args:
        X: Claims features
        y: Claim counts
        config: LightGBM settings (defaults if None)
        n_threads: LightGBM thread count (default from settings)

    Returns:
        Fitted BoostingModel
    """
    config = config or BoostingConfig()
    n_threads = n_threads or get_settings().n_threads

    regressor = LGBMRegressor(
        **config.model_dump(),
        n_jobs=n_threads,
        deterministic=True,
        verbose=-1,
    )
    regressor.fit(X[CLAIM_FEATURES], np.asarray(y, dtype=float))

    logger.debug(
        f"LightGBM fitted with {regressor.booster_.num_trees()} trees",
        extra={"model": "lgb"},
    )
    return BoostingModel(regressor, config)

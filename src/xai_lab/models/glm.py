"""
Poisson GLM for claim counts.
"""

import logging

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict
from sklearn.compose import ColumnTransformer
from sklearn.linear_model import PoissonRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import FunctionTransformer

from ..data.schemas import CLAIM_FEATURES

logger = logging.getLogger(__name__)

# Features entering the linear predictor on the log scale
LOG_FEATURES = ["driver_age", "car_weight", "car_power"]
LINEAR_FEATURES = ["year", "town", "car_age"]


class GLMConfig(BaseModel):
    """Fixed GLM settings."""

    model_config = ConfigDict(frozen=True)

    alpha: float = 0.0
    max_iter: int = 1000
    solver: str = "newton-cholesky"


class GLMModel:
    """Fitted Poisson GLM with log-transformed continuous features."""

    name = "glm"

    def __init__(self, pipeline: Pipeline, config: GLMConfig):
        self.pipeline = pipeline
        self.config = config

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Expected claim count."""
        return self.pipeline.predict(X[CLAIM_FEATURES])

    def predict_log(self, X: pd.DataFrame) -> np.ndarray:
        """Linear predictor (log expected claim count)."""
        return np.log(self.predict(X))

    def coefficients(self) -> pd.Series:
        """Intercept followed by one coefficient per model term."""
        regressor: PoissonRegressor = self.pipeline[-1]
        terms = []
        for name in self.pipeline[0].get_feature_names_out():
            block, feature = name.split("__", 1)
            terms.append(f"log({feature})" if block == "log" else feature)
        return pd.Series(
            np.concatenate(([regressor.intercept_], regressor.coef_)),
            index=["intercept"] + terms,
            name="coefficient",
        )


def build_glm_pipeline(config: GLMConfig) -> Pipeline:
    """Unfitted preprocessing + PoissonRegressor pipeline."""
    design = ColumnTransformer(
        transformers=[
            (
                "log",
                FunctionTransformer(np.log, feature_names_out="one-to-one"),
                LOG_FEATURES,
            ),
            ("linear", "passthrough", LINEAR_FEATURES),
        ],
        remainder="drop",
    )
    return Pipeline([
        ("design", design),
        ("poisson", PoissonRegressor(
            alpha=config.alpha,
            max_iter=config.max_iter,
            solver=config.solver,
        )),
    ])


def fit_glm(
    X: pd.DataFrame,
    y: pd.Series | np.ndarray,
    config: GLMConfig | None = None,
) -> GLMModel:
    """
    Fit the Poisson GLM.

    Args:
        X: Claims features
        y: Claim counts
        config: GLM settings (defaults if None)

    Returns:
        Fitted GLMModel
    """
    config = config or GLMConfig()
    pipeline = build_glm_pipeline(config)
    pipeline.fit(X[CLAIM_FEATURES], np.asarray(y, dtype=float))

    model = GLMModel(pipeline, config)
    logger.debug(
        "GLM fitted",
        extra={"model": "glm", "data": model.coefficients().round(6).to_dict()},
    )
    return model

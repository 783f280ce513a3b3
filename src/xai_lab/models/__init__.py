"""Models module - claim-frequency trainers and the true data-generating model."""

from typing import Any, Callable

import numpy as np
import pandas as pd

from ..config import Settings, get_settings
from .boosting import BoostingConfig, BoostingModel, fit_boosting
from .glm import GLMConfig, GLMModel, fit_glm
from .neural_net import NeuralNetConfig, NeuralNetModel, fit_neural_net
from .true_model import TrueModel, true_log_lambda

MODEL_REGISTRY: dict[str, Callable[..., Any]] = {
    "glm": fit_glm,
    "nn": fit_neural_net,
    "lgb": fit_boosting,
}


def train_models(
    names: list[str],
    X: pd.DataFrame,
    y: pd.Series | np.ndarray,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """
    Fit the named models one after the other.

    Args:
        names: Keys of MODEL_REGISTRY
        X: Training features
        y: Training claim counts
        settings: Supplies the LightGBM thread count (cached defaults if None)

    Returns:
        Mapping of model name to fitted model
    """
    unknown = [name for name in names if name not in MODEL_REGISTRY]
    if unknown:
        raise ValueError(f"Unknown models: {unknown}. Choose from {list(MODEL_REGISTRY)}")

    settings = settings or get_settings()
    models = {}
    for name in names:
        if name == "lgb":
            models[name] = fit_boosting(X, y, n_threads=settings.n_threads)
        else:
            models[name] = MODEL_REGISTRY[name](X, y)
    return models


__all__ = [
    "MODEL_REGISTRY",
    "BoostingConfig",
    "BoostingModel",
    "GLMConfig",
    "GLMModel",
    "NeuralNetConfig",
    "NeuralNetModel",
    "TrueModel",
    "fit_boosting",
    "fit_glm",
    "fit_neural_net",
    "train_models",
    "true_log_lambda",
]

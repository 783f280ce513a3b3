"""
Feed-forward neural network for claim counts (Keras).

Two tanh hidden layers with an exponential output trained on the Poisson
deviance, so the network predicts on the same scale as the GLM.
"""

import logging

import keras
import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict

from ..data.schemas import CLAIM_FEATURES

logger = logging.getLogger(__name__)


class NeuralNetConfig(BaseModel):
    """Fixed network architecture and training settings."""

    model_config = ConfigDict(frozen=True)

    hidden_units: tuple[int, ...] = (30, 15)
    activation: str = "tanh"
    learning_rate: float = 0.002
    epochs: int = 50
    batch_size: int = 400
    validation_split: float = 0.1
    patience: int = 5
    seed: int = 8300


class NeuralNetModel:
    """Fitted Keras network."""

    name = "nn"

    def __init__(self, network: keras.Model, config: NeuralNetConfig, history: dict[str, list[float]]):
        self.network = network
        self.config = config
        self.history = history

    def _to_array(self, X: pd.DataFrame) -> np.ndarray:
        return X[CLAIM_FEATURES].to_numpy(dtype="float32")

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Expected claim count."""
        out = self.network.predict(
            self._to_array(X), batch_size=10_000, verbose=0
        )
        return np.asarray(out, dtype=float).ravel()

    def predict_log(self, X: pd.DataFrame) -> np.ndarray:
        """Log expected claim count."""
        return np.log(self.predict(X))


def build_network(X: np.ndarray, config: NeuralNetConfig) -> keras.Model:
    """
    Create the (unfitted) network.

    The normalization layer is adapted on ``X`` so raw features can be fed in.
    """
    normalizer = keras.layers.Normalization()
    normalizer.adapt(X)

    inputs = keras.Input(shape=(X.shape[1],))
    x = normalizer(inputs)
    for units in config.hidden_units:
        x = keras.layers.Dense(units, activation=config.activation)(x)
    outputs = keras.layers.Dense(1, activation="exponential")(x)

    network = keras.Model(inputs=inputs, outputs=outputs)
    network.compile(
        optimizer=keras.optimizers.Adam(learning_rate=config.learning_rate),
        loss="poisson",
    )
    return network


def fit_neural_net(
    X: pd.DataFrame,
    y: pd.Series | np.ndarray,
    config: NeuralNetConfig | None = None,
) -> NeuralNetModel:
    """
    Fit the network.

    Args:
        X: Claims features
        y: Claim counts
        config: Network settings (defaults if None)

    Returns:
        Fitted NeuralNetModel
    """
    config = config or NeuralNetConfig()
    keras.utils.set_random_seed(config.seed)

    X_arr = X[CLAIM_FEATURES].to_numpy(dtype="float32")
    y_arr = np.asarray(y, dtype="float32")

    network = build_network(X_arr, config)
    callbacks = [
        keras.callbacks.EarlyStopping(
            patience=config.patience, restore_best_weights=True
        ),
    ]
    history = network.fit(
        X_arr,
        y_arr,
        epochs=config.epochs,
        batch_size=config.batch_size,
        validation_split=config.validation_split,
        callbacks=callbacks,
        verbose=0,
    )

    logger.debug(
        f"Network stopped after {len(history.history['loss'])} epochs",
        extra={"model": "nn", "data": {"final_loss": history.history["loss"][-1]}},
    )
    return NeuralNetModel(network, config, history.history)

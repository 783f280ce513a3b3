"""
Offline generator for claims data drawn from the true model.

Produces frames with the same schema as the OpenML dataset so the
pipeline and its tests can run without network access.
"""

import numpy as np
import pandas as pd

from ..models.true_model import true_log_lambda
from .schemas import CLAIM_COLUMNS, TARGET


def simulate_claims(n: int = 10_000, seed: int = 42) -> pd.DataFrame:
    """
    Simulate policies and Poisson claim counts.

    Args:
        n: Number of policies
        seed: Random seed

    Returns:
        Claims frame in canonical column order
    """
    if n < 1:
        raise ValueError("n must be positive")

    rng = np.random.default_rng(seed)

    car_weight = np.clip(rng.normal(1650, 400, n), 950, 3120).round()
    # Heavier cars tend to be more powerful
    car_power = np.clip(0.065 * car_weight + rng.normal(0, 25, n), 50, 341).round()

    df = pd.DataFrame({
        "year": rng.integers(2018, 2022, n),
        "town": rng.binomial(1, 0.55, n),
        "driver_age": rng.integers(18, 89, n),
        "car_weight": car_weight,
        "car_power": car_power,
        "car_age": np.minimum(rng.geometric(0.12, n) - 1, 23),
    })
    df[TARGET] = rng.poisson(np.exp(true_log_lambda(df)))

    return df[CLAIM_COLUMNS].astype(float)

"""
Closed-form data-generating model for the simulated claims data.

Because the claims data is simulated, the true expected claim frequency
is known. Explaining it alongside the fitted models shows how close each
model's attributions get to the ground truth.

These constants are the generator of ``simulate_claims``, so on simulated
data the comparison is exact. OpenML 45106 was simulated by a process of
the same form (age peak, log weight, town x power interaction, year
trend), but its published generator is not bundled here. On that data the
"true" attributions are a structural reference, not a verified oracle.
"""

import numpy as np
import pandas as pd

from ..data.schemas import CLAIM_FEATURES

# Coefficients of the log-frequency
INTERCEPT = -5.5
TOWN = 0.15
DRIVER_AGE_LINEAR = -0.016
CAR_WEIGHT_LOG = 0.4
CAR_POWER = 0.003
CAR_AGE = -0.02
TOWN_X_POWER = 0.15
YEAR = 0.02
BASE_YEAR = 2018


def true_log_lambda(X: pd.DataFrame) -> np.ndarray:
    """
    Log of the true expected claim count.

    Driver age enters as ``log(age) - c * age`` (peak risk around 60),
    and town interacts with car power.

    Args:
        X: Frame with the claims feature columns

    Returns:
        Log expected claim counts, one per row
    """
    missing = [col for col in CLAIM_FEATURES if col not in X.columns]
    if missing:
        raise ValueError(f"Missing feature columns: {missing}")

    town = X["town"].to_numpy(dtype=float)
    driver_age = X["driver_age"].to_numpy(dtype=float)
    car_power = X["car_power"].to_numpy(dtype=float)

    return (
        INTERCEPT
        + TOWN * town
        + np.log(driver_age)
        + DRIVER_AGE_LINEAR * driver_age
        + CAR_WEIGHT_LOG * np.log(X["car_weight"].to_numpy(dtype=float) / 1000)
        + CAR_POWER * car_power
        + CAR_AGE * X["car_age"].to_numpy(dtype=float)
        + TOWN_X_POWER * town * car_power / 100
        + YEAR * (X["year"].to_numpy(dtype=float) - BASE_YEAR)
    )


class TrueModel:
    """The data-generating model, exposed with the fitted-model interface."""

    name = "true"

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Expected claim count."""
        return np.exp(true_log_lambda(X))

    def predict_log(self, X: pd.DataFrame) -> np.ndarray:
        """Log expected claim count."""
        return true_log_lambda(X)

"""
Pydantic schemas and column layout for the claims-frequency data.
"""

from dataclasses import dataclass

import pandas as pd
from pydantic import BaseModel, Field

CLAIM_FEATURES: list[str] = [
    "year",
    "town",
    "driver_age",
    "car_weight",
    "car_power",
    "car_age",
]
TARGET = "claim_nb"
CLAIM_COLUMNS: list[str] = CLAIM_FEATURES + [TARGET]


class ClaimRecord(BaseModel):
    """A single insurance policy with its observed claim count."""

    year: float
    town: int = Field(ge=0, le=1, description="1 if the policy holder lives in a town")
    driver_age: float = Field(gt=0, description="Age of the driver in years")
    car_weight: float = Field(gt=0, description="Vehicle weight in kg")
    car_power: float = Field(gt=0, description="Engine power in kW")
    car_age: float = Field(ge=0, description="Vehicle age in years")
    claim_nb: int = Field(default=0, ge=0, description="Number of claims")

    def features(self) -> dict[str, float]:
        """Feature values in model column order."""
        return {name: float(getattr(self, name)) for name in CLAIM_FEATURES}


@dataclass(frozen=True)
class ClaimsSplit:
    """Train/test partition of the claims data."""

    train: pd.DataFrame
    test: pd.DataFrame
    seed: int

    @property
    def X_train(self) -> pd.DataFrame:
        return self.train[CLAIM_FEATURES]

    @property
    def y_train(self) -> pd.Series:
        return self.train[TARGET]

    @property
    def X_test(self) -> pd.DataFrame:
        return self.test[CLAIM_FEATURES]

    @property
    def y_test(self) -> pd.Series:
        return self.test[TARGET]


@dataclass(frozen=True)
class ExplanationRequest:
    """Rows to explain plus the background set for Kernel SHAP."""

    X_explain: pd.DataFrame
    background: pd.DataFrame
    seed: int

    @property
    def n_explain(self) -> int:
        return len(self.X_explain)

    @property
    def n_background(self) -> int:
        return len(self.background)

"""
SHAP explainability engine for the claim-frequency models.

Two adapters produce the same attribution contract:
- TreeSHAP (exact, tree structure) for the LightGBM model
- Kernel SHAP (model-agnostic, background sampling) for everything else,
  including the true model

All models are explained on the log scale, where the LightGBM raw score
and the GLM linear predictor live. Attributions of a row add up to the
row's log prediction minus the baseline.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import numpy as np
import pandas as pd
import shap

from ..data.schemas import CLAIM_FEATURES, ExplanationRequest
from ..models.boosting import BoostingModel
from .feature_importance import FeatureImportance, rank_importances

logger = logging.getLogger(__name__)


@dataclass
class FeatureContribution:
    """A single feature's contribution to one prediction."""

    name: str
    value: float  # Original feature value
    contribution: float  # SHAP value on the log scale


@dataclass
class RowExplanation:
    """SHAP decomposition of one explained row."""

    row: int
    base_value: float
    final_value: float
    contributions: list[FeatureContribution]

    def get_top_contributors(self, n: int = 5) -> list[FeatureContribution]:
        """Get top N contributing features by absolute contribution."""
        sorted_contribs = sorted(
            self.contributions,
            key=lambda c: abs(c.contribution),
            reverse=True,
        )
        return sorted_contribs[:n]

    def get_narrative(self) -> str:
        """Generate a human-readable narrative of the explanation."""
        top = self.get_top_contributors(3)

        if not top:
            return "No significant contributing factors identified."

        parts = []
        for contrib in top:
            direction = "increased" if contrib.contribution > 0 else "decreased"
            parts.append(
                f"{contrib.name} ({contrib.value:.2f}) {direction} "
                f"the log frequency by {abs(contrib.contribution):.3f}"
            )

        return (
            f"The predicted log frequency of {self.final_value:.3f} "
            f"(baseline {self.base_value:.3f}) was primarily driven by: "
            + "; ".join(parts)
        )


@dataclass
class AttributionResult:
    """
    SHAP values of one model on one explanation set.

    Values are only comparable with results from the same model and
    background data.
    """

    model_name: str
    method: Literal["tree", "kernel"]
    values: np.ndarray
    base_value: float
    data: pd.DataFrame
    feature_names: list[str] = field(default_factory=lambda: list(CLAIM_FEATURES))

    def __post_init__(self) -> None:
        self.values = np.asarray(self.values, dtype=float)
        if self.values.shape != (len(self.data), len(self.feature_names)):
            raise ValueError(
                f"SHAP values have shape {self.values.shape}, expected "
                f"{(len(self.data), len(self.feature_names))}"
            )

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    def predictions(self) -> np.ndarray:
        """Baseline plus row sums, i.e. the explained log predictions."""
        return self.base_value + self.values.sum(axis=1)

    def to_frame(self) -> pd.DataFrame:
        """SHAP values as a frame with one column per feature."""
        return pd.DataFrame(self.values, columns=self.feature_names)

    def to_explanation(self) -> shap.Explanation:
        """Build a ``shap.Explanation`` for the plotting API."""
        return shap.Explanation(
            values=self.values,
            base_values=np.full(self.n_rows, self.base_value),
            data=self.data[self.feature_names].to_numpy(dtype=float),
            feature_names=self.feature_names,
        )

    def row(self, i: int) -> RowExplanation:
        """Decompose a single explained row."""
        values = self.values[i]
        data = self.data[self.feature_names].iloc[i]
        return RowExplanation(
            row=i,
            base_value=self.base_value,
            final_value=float(self.base_value + values.sum()),
            contributions=[
                FeatureContribution(name=name, value=float(data[name]), contribution=float(v))
                for name, v in zip(self.feature_names, values)
            ],
        )

    def importance(self) -> list[FeatureImportance]:
        """Features ranked by mean absolute SHAP value."""
        return rank_importances(
            self.feature_names,
            np.abs(self.values).mean(axis=0),
            method=self.model_name,
        )

    def top_features(self, n: int = 5) -> list[str]:
        """Names of the ``n`` most important features."""
        return [fi.name for fi in self.importance()[:n]]


def log_predictor(model: Any) -> Callable[[pd.DataFrame], np.ndarray]:
    """
    Log-scale prediction function of a fitted model.

    Models of this package expose ``predict_log``. Any other predictor only
    needs ``predict`` returning positive expected counts.
    """
    if hasattr(model, "predict_log"):
        return model.predict_log
    if not hasattr(model, "predict"):
        raise ValueError(f"{type(model).__name__} has no predict method")

    def predict_log(X: pd.DataFrame) -> np.ndarray:
        return np.log(np.asarray(model.predict(X), dtype=float).ravel())

    return predict_log


class SHAPEngine:
    """
    Compute SHAP values for fitted claim-frequency models.

    Usage:
        engine = SHAPEngine()
        result = engine.explain(model, request)
        result.top_features(5)
    """

    def __init__(self, nsamples: int | str = "auto"):
        """
        Initialize SHAP engine.

        Args:
            nsamples: Coalitions evaluated per row by Kernel SHAP. With few
                features "auto" enumerates every coalition.
        """
        self.nsamples = nsamples

    def explain_tree(
        self,
        model: Any,
        X: pd.DataFrame,
        background: pd.DataFrame | None = None,
    ) -> AttributionResult:
        """
        Exact TreeSHAP for the LightGBM model.

        Without background data the tree-path-dependent algorithm is used.
        With background data the interventional algorithm is used, which
        targets the same values as Kernel SHAP on that background.

        Args:
            model: Fitted BoostingModel
            X: Rows to explain
            background: Optional reference rows

        Returns:
            AttributionResult on the raw (log) score
        """
        if not isinstance(model, BoostingModel):
            raise ValueError(
                f"TreeSHAP needs a tree ensemble, got {type(model).__name__}"
            )

        X = X[CLAIM_FEATURES]
        if background is None:
            explainer = shap.TreeExplainer(model.booster)
        else:
            explainer = shap.TreeExplainer(
                model.booster,
                data=background[CLAIM_FEATURES],
                feature_perturbation="interventional",
                model_output="raw",
            )
        values = explainer.shap_values(X)
        base_value = float(np.ravel(explainer.expected_value)[0])

        return AttributionResult(
            model_name=model.name,
            method="tree",
            values=values,
            base_value=base_value,
            data=X.reset_index(drop=True),
        )

    def explain_kernel(
        self,
        model: Any,
        X: pd.DataFrame,
        background: pd.DataFrame,
    ) -> AttributionResult:
        """
        Model-agnostic Kernel SHAP on the log prediction.

        Args:
            model: Any object with ``predict(X)``; ``predict_log(X)`` is
                used instead when present
            X: Rows to explain
            background: Reference rows integrating out absent features

        Returns:
            AttributionResult on the log scale
        """
        if len(background) == 0:
            raise ValueError("Kernel SHAP needs a non-empty background set")

        X = X[CLAIM_FEATURES]
        predict_log = log_predictor(model)

        def predict_fn(data: np.ndarray) -> np.ndarray:
            return predict_log(pd.DataFrame(data, columns=CLAIM_FEATURES))

        explainer = shap.KernelExplainer(
            predict_fn,
            background[CLAIM_FEATURES].to_numpy(dtype=float),
        )
        values = explainer.shap_values(
            X.to_numpy(dtype=float),
            nsamples=self.nsamples,
            l1_reg=False,
            silent=True,
        )
        base_value = float(np.ravel(explainer.expected_value)[0])

        return AttributionResult(
            model_name=getattr(model, "name", type(model).__name__),
            method="kernel",
            values=np.asarray(values).reshape(len(X), len(CLAIM_FEATURES)),
            base_value=base_value,
            data=X.reset_index(drop=True),
        )

    def explain(self, model: Any, request: ExplanationRequest) -> AttributionResult:
        """
        Explain a model with the adapter that fits it.

        Tree ensembles get TreeSHAP, all other models Kernel SHAP.
        """
        logger.info(
            f"Explaining {getattr(model, 'name', model)} on {request.n_explain} rows",
            extra={"model": getattr(model, "name", None), "rows": request.n_explain},
        )
        if isinstance(model, BoostingModel):
            return self.explain_tree(model, request.X_explain)
        return self.explain_kernel(model, request.X_explain, request.background)


def compare_attributions(a: AttributionResult, b: AttributionResult) -> dict[str, Any]:
    """
    Compare two attribution results on the same rows.

    Args:
        a: Reference result (e.g. TreeSHAP)
        b: Result to compare (e.g. Kernel SHAP)

    Returns:
        Dictionary with max/mean absolute difference and per-feature correlation
    """
    if a.values.shape != b.values.shape or a.feature_names != b.feature_names:
        raise ValueError("Attribution results must cover the same rows and features")

    diff = np.abs(a.values - b.values)
    correlation = {}
    for j, name in enumerate(a.feature_names):
        if np.std(a.values[:, j]) == 0 or np.std(b.values[:, j]) == 0:
            correlation[name] = float("nan")
        else:
            correlation[name] = float(np.corrcoef(a.values[:, j], b.values[:, j])[0, 1])

    return {
        "max_abs_diff": float(diff.max()),
        "mean_abs_diff": float(diff.mean()),
        "correlation": correlation,
    }

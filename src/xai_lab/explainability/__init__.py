"""Explainability module - SHAP values, importance rankings and plots."""

from .feature_importance import FeatureImportance, FeatureImportanceAnalyzer
from .plots import PlotArtifact, dependence_grid, dependence_plot, importance_plot, waterfall_plot
from .shap_engine import (
    AttributionResult,
    RowExplanation,
    SHAPEngine,
    compare_attributions,
    log_predictor,
)

__all__ = [
    "AttributionResult",
    "FeatureImportance",
    "FeatureImportanceAnalyzer",
    "PlotArtifact",
    "RowExplanation",
    "SHAPEngine",
    "compare_attributions",
    "dependence_grid",
    "dependence_plot",
    "importance_plot",
    "log_predictor",
    "waterfall_plot",
]

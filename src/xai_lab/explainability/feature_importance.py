"""
Feature importance rankings derived from SHAP values.

Collects mean |SHAP| rankings from several models so they can be
compared side by side and merged into a consensus ranking.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd


@dataclass
class FeatureImportance:
    """Importance of a single feature."""

    name: str
    importance: float
    rank: int
    method: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "importance": self.importance,
            "rank": self.rank,
            "method": self.method,
        }


def rank_importances(
    feature_names: list[str],
    importances: np.ndarray,
    method: str,
) -> list[FeatureImportance]:
    """Sort features by importance and assign ranks starting at 1."""
    results = [
        FeatureImportance(name=name, importance=float(imp), rank=0, method=method)
        for name, imp in zip(feature_names, importances)
    ]

    # Stable sort keeps column order for ties
    results.sort(key=lambda x: x.importance, reverse=True)
    for rank, fi in enumerate(results, 1):
        fi.rank = rank

    return results


class FeatureImportanceAnalyzer:
    """
    Compare SHAP importance rankings across models.

    Usage:
        analyzer = FeatureImportanceAnalyzer(CLAIM_FEATURES)
        analyzer.add_result(glm_result)
        analyzer.add_result(lgb_result)
        analyzer.rank_table()
    """

    def __init__(self, feature_names: list[str]):
        """
        Initialize analyzer.

        Args:
            feature_names: Names of features
        """
        self.feature_names = feature_names
        self._importances: dict[str, list[FeatureImportance]] = {}

    def add_result(self, result: Any) -> list[FeatureImportance]:
        """
        Register the ranking of an AttributionResult.

        Args:
            result: AttributionResult of one model

        Returns:
            The model's ranking
        """
        if list(result.feature_names) != list(self.feature_names):
            raise ValueError("Result features do not match the analyzer's features")

        ranking = result.importance()
        self._importances[result.model_name] = ranking
        return ranking

    def importance_table(self) -> pd.DataFrame:
        """Mean |SHAP| per feature (rows) and model (columns)."""
        return pd.DataFrame({
            method: {fi.name: fi.importance for fi in importances}
            for method, importances in self._importances.items()
        }).reindex(self.feature_names)

    def rank_table(self) -> pd.DataFrame:
        """Rank per feature (rows) and model (columns)."""
        return pd.DataFrame({
            method: {fi.name: fi.rank for fi in importances}
            for method, importances in self._importances.items()
        }).reindex(self.feature_names)

    def get_consensus_ranking(self) -> list[FeatureImportance]:
        """
        Get consensus ranking across all models.

        Uses average rank across models weighted equally.

        Returns:
            List of FeatureImportance with consensus ranking
        """
        if not self._importances:
            raise RuntimeError("No importance analyses performed yet")

        avg_ranks = self.rank_table().mean(axis=1)
        return rank_importances(
            self.feature_names,
            # Higher importance = lower rank
            1.0 / avg_ranks.to_numpy(),
            method="consensus",
        )

    def generate_report(self) -> dict[str, Any]:
        """
        Generate comprehensive importance report.

        Returns:
            Dictionary with all analysis results
        """
        report = {
            "feature_count": len(self.feature_names),
            "methods_used": list(self._importances.keys()),
            "results": {},
        }

        for method, importances in self._importances.items():
            report["results"][method] = [fi.to_dict() for fi in importances]

        if len(self._importances) > 1:
            consensus = self.get_consensus_ranking()
            report["consensus"] = [fi.to_dict() for fi in consensus]

        return report

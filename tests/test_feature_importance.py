"""
Tests for SHAP importance rankings.
"""

import numpy as np
import pandas as pd
import pytest


def make_result(name: str, scale: list[float]):
    from xai_lab.data import CLAIM_FEATURES
    from xai_lab.explainability import AttributionResult

    data = pd.DataFrame(np.ones((10, 6)), columns=CLAIM_FEATURES)
    values = np.tile(scale, (10, 1)) * np.where(np.arange(10)[:, None] % 2, 1.0, -1.0)
    return AttributionResult(model_name=name, method="kernel", values=values, base_value=0.0, data=data)


class TestRankImportances:
    """Test the ranking helper."""

    def test_ranks_assigned(self):
        from xai_lab.explainability.feature_importance import rank_importances

        ranking = rank_importances(["a", "b", "c"], np.array([0.2, 0.5, 0.1]), method="demo")

        assert [fi.name for fi in ranking] == ["b", "a", "c"]
        assert [fi.rank for fi in ranking] == [1, 2, 3]
        assert all(fi.method == "demo" for fi in ranking)

    def test_ties_keep_column_order(self):
        from xai_lab.explainability.feature_importance import rank_importances

        ranking = rank_importances(["a", "b"], np.array([1.0, 1.0]), method="demo")
        assert [fi.name for fi in ranking] == ["a", "b"]


class TestFeatureImportanceAnalyzer:
    """Test comparison across models."""

    @pytest.fixture
    def analyzer(self):
        from xai_lab.data import CLAIM_FEATURES
        from xai_lab.explainability import FeatureImportanceAnalyzer

        analyzer = FeatureImportanceAnalyzer(CLAIM_FEATURES)
        analyzer.add_result(make_result("glm", [0.1, 0.2, 0.9, 0.3, 0.5, 0.4]))
        analyzer.add_result(make_result("lgb", [0.1, 0.3, 0.8, 0.2, 0.6, 0.4]))
        return analyzer

    def test_rank_table(self, analyzer):
        table = analyzer.rank_table()

        assert list(table.columns) == ["glm", "lgb"]
        assert table.loc["driver_age", "glm"] == 1
        assert table.loc["car_power", "lgb"] == 2

    def test_importance_table(self, analyzer):
        table = analyzer.importance_table()

        assert table.loc["driver_age", "glm"] == pytest.approx(0.9)

    def test_consensus(self, analyzer):
        consensus = analyzer.get_consensus_ranking()

        assert consensus[0].name == "driver_age"
        assert consensus[1].name == "car_power"
        assert consensus[-1].name == "year"

    def test_report(self, analyzer):
        report = analyzer.generate_report()

        assert report["methods_used"] == ["glm", "lgb"]
        assert "consensus" in report

    def test_consensus_requires_results(self):
        from xai_lab.data import CLAIM_FEATURES
        from xai_lab.explainability import FeatureImportanceAnalyzer

        with pytest.raises(RuntimeError):
            FeatureImportanceAnalyzer(CLAIM_FEATURES).get_consensus_ranking()

    def test_feature_mismatch(self):
        from xai_lab.explainability import FeatureImportanceAnalyzer

        analyzer = FeatureImportanceAnalyzer(["a", "b"])
        with pytest.raises(ValueError):
            analyzer.add_result(make_result("glm", [0.1] * 6))

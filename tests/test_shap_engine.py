"""
Tests for SHAP engine.
"""

import numpy as np
import pytest


class TestSHAPEngine:
    """Test SHAP explainability engine."""

    @pytest.fixture(scope="class")
    def trained_models_and_data(self):
        """Create trained models and data for testing."""
        from xai_lab.data import CLAIM_FEATURES, sample_explanation_request, simulate_claims
        from xai_lab.models import BoostingConfig, fit_boosting, fit_glm

        df = simulate_claims(4000, seed=21)
        X, y = df[CLAIM_FEATURES], df["claim_nb"]

        lgb = fit_boosting(X, y, BoostingConfig(n_estimators=40), n_threads=1)
        glm = fit_glm(X, y)
        request = sample_explanation_request(X, n_explain=30, n_background=50, seed=3948)

        return lgb, glm, X, request

    def test_shap_engine_init(self):
        from xai_lab.explainability import SHAPEngine

        engine = SHAPEngine()
        assert engine is not None

    def test_tree_shap_additivity(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        lgb, _, _, request = trained_models_and_data

        result = SHAPEngine().explain_tree(lgb, request.X_explain)

        assert result.method == "tree"
        assert result.values.shape == (30, 6)
        np.testing.assert_allclose(
            result.predictions(), lgb.predict_log(request.X_explain), atol=1e-5
        )

    def test_tree_shap_rejects_non_tree_model(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        _, glm, _, request = trained_models_and_data

        with pytest.raises(ValueError, match="tree ensemble"):
            SHAPEngine().explain_tree(glm, request.X_explain)

    def test_kernel_shap_additivity(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        _, glm, _, request = trained_models_and_data

        result = SHAPEngine().explain_kernel(glm, request.X_explain, request.background)

        assert result.method == "kernel"
        np.testing.assert_allclose(
            result.base_value, glm.predict_log(request.background).mean(), atol=1e-8
        )
        np.testing.assert_allclose(
            result.predictions(), glm.predict_log(request.X_explain), atol=1e-6
        )

    def test_kernel_shap_recovers_linear_terms(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        _, glm, _, request = trained_models_and_data

        result = SHAPEngine().explain_kernel(glm, request.X_explain, request.background)

        # For an additive model the SHAP value is coef * (x - mean background x)
        coef = glm.coefficients()["town"]
        expected = coef * (request.X_explain["town"] - request.background["town"].mean())
        np.testing.assert_allclose(result.to_frame()["town"], expected, atol=1e-6)

    def test_kernel_matches_interventional_tree_shap(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine, compare_attributions

        lgb, _, _, request = trained_models_and_data
        engine = SHAPEngine()

        tree = engine.explain_tree(lgb, request.X_explain, background=request.background)
        kernel = engine.explain_kernel(lgb, request.X_explain, request.background)

        assert compare_attributions(tree, kernel)["max_abs_diff"] < 1e-4

    def test_kernel_converges_with_background_size(self, trained_models_and_data):
        from xai_lab.data import sample_explanation_request
        from xai_lab.explainability import SHAPEngine, compare_attributions

        lgb, _, X, request = trained_models_and_data
        engine = SHAPEngine()

        # Exact reference against a large reference sample
        reference = sample_explanation_request(X, 30, 1000, seed=7).background
        exact = engine.explain_tree(lgb, request.X_explain, background=reference)

        errors = []
        for n_background in (5, 400):
            background = sample_explanation_request(X, 30, n_background, seed=99).background
            kernel = engine.explain_kernel(lgb, request.X_explain, background)
            errors.append(compare_attributions(exact, kernel)["mean_abs_diff"])

        assert errors[1] < errors[0]

    def test_explain_dispatch(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine
        from xai_lab.models import TrueModel

        lgb, glm, _, request = trained_models_and_data
        engine = SHAPEngine()

        assert engine.explain(lgb, request).method == "tree"
        assert engine.explain(glm, request).method == "kernel"

        truth = engine.explain(TrueModel(), request)
        assert truth.model_name == "true"
        np.testing.assert_allclose(
            truth.predictions(), TrueModel().predict_log(request.X_explain), atol=1e-6
        )

    def test_kernel_shap_on_predict_only_model(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        _, glm, _, request = trained_models_and_data

        class BlackBox:
            """Exposes nothing but predict."""

            def predict(self, X):
                return glm.predict(X)

        result = SHAPEngine().explain(BlackBox(), request)

        assert result.method == "kernel"
        assert result.model_name == "BlackBox"
        np.testing.assert_allclose(
            result.predictions(), np.log(glm.predict(request.X_explain)), atol=1e-6
        )

    def test_log_predictor_requires_predict(self):
        from xai_lab.explainability import log_predictor

        with pytest.raises(ValueError, match="no predict method"):
            log_predictor(object())

    def test_shap_top_contributors(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        lgb, _, _, request = trained_models_and_data

        result = SHAPEngine().explain_tree(lgb, request.X_explain)
        top = result.row(0).get_top_contributors(3)

        assert len(top) == 3
        # Top contributors should be sorted by absolute contribution
        assert abs(top[0].contribution) >= abs(top[1].contribution)

    def test_shap_narrative(self, trained_models_and_data):
        from xai_lab.explainability import SHAPEngine

        lgb, _, _, request = trained_models_and_data

        result = SHAPEngine().explain_tree(lgb, request.X_explain)
        narrative = result.row(0).get_narrative()

        assert isinstance(narrative, str)
        assert "log frequency" in narrative


class TestAttributionResult:
    """Test the attribution container."""

    @pytest.fixture
    def result(self):
        import pandas as pd

        from xai_lab.data import CLAIM_FEATURES
        from xai_lab.explainability import AttributionResult

        rng = np.random.default_rng(0)
        data = pd.DataFrame(rng.uniform(1, 2, size=(20, 6)), columns=CLAIM_FEATURES)
        # Random signs, fixed magnitudes: mean |SHAP| equals the scale
        values = rng.choice([-1.0, 1.0], size=(20, 6)) * np.array([0.1, 1.0, 3.0, 0.5, 2.0, 0.2])
        return AttributionResult(
            model_name="demo", method="kernel", values=values, base_value=-2.0, data=data
        )

    def test_shape_checked(self):
        import pandas as pd

        from xai_lab.data import CLAIM_FEATURES
        from xai_lab.explainability import AttributionResult

        with pytest.raises(ValueError):
            AttributionResult(
                model_name="bad",
                method="tree",
                values=np.zeros((3, 5)),
                base_value=0.0,
                data=pd.DataFrame(np.zeros((3, 6)), columns=CLAIM_FEATURES),
            )

    def test_importance_order(self, result):
        ranking = result.importance()

        assert [fi.rank for fi in ranking] == [1, 2, 3, 4, 5, 6]
        assert ranking[0].name == "driver_age"
        assert result.top_features(2) == ["driver_age", "car_power"]

    def test_row_sum(self, result):
        row = result.row(4)

        assert row.final_value == pytest.approx(-2.0 + result.values[4].sum())
        assert len(row.contributions) == 6

    def test_to_explanation(self, result):
        explanation = result.to_explanation()

        assert explanation.values.shape == (20, 6)
        assert list(explanation.feature_names) == result.feature_names

    def test_compare_mismatched(self, result):
        import pandas as pd

        from xai_lab.explainability import AttributionResult, compare_attributions

        other = AttributionResult(
            model_name="other",
            method="tree",
            values=result.values[:10],
            base_value=0.0,
            data=pd.DataFrame(result.data.iloc[:10]),
        )
        with pytest.raises(ValueError):
            compare_attributions(result, other)

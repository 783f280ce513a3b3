"""
End-to-end tests for the claims SHAP pipeline (simulated data, no network).
"""

import pandas as pd
import pytest


@pytest.fixture(scope="module")
def claims():
    from xai_lab.data import simulate_claims

    return simulate_claims(6000, seed=41)


@pytest.fixture
def settings(tmp_path):
    from xai_lab.config import get_settings

    return get_settings().model_copy(update={
        "n_explain": 100,
        "n_background": 40,
        "n_threads": 1,
        "output_dir": tmp_path / "figures",
        "reports_dir": tmp_path / "reports",
    })


class TestPipeline:
    """Test the full load -> train -> explain flow."""

    def test_rerun_reproduces_results(self, claims, settings):
        from xai_lab.pipeline import run_pipeline

        kwargs = dict(
            df=claims,
            settings=settings,
            model_names=["glm", "lgb"],
            make_plots=False,
            make_report=False,
        )
        first = run_pipeline(**kwargs)
        second = run_pipeline(**kwargs)

        pd.testing.assert_series_equal(first.glm_coefficients, second.glm_coefficients)
        assert first.top_features("lgb", 5) == second.top_features("lgb", 5)
        pd.testing.assert_frame_equal(first.request.X_explain, second.request.X_explain)

    def test_result_contents(self, claims, settings):
        from xai_lab.pipeline import run_pipeline

        result = run_pipeline(
            df=claims,
            settings=settings,
            model_names=["glm", "lgb"],
            make_plots=False,
            make_report=False,
        )

        assert set(result.attributions) == {"glm", "lgb", "true"}
        assert result.attributions["lgb"].method == "tree"
        assert result.attributions["glm"].method == "kernel"
        assert result.attributions["true"].n_rows == 100
        assert len(result.split.test) == 600
        for stage in ["load", "split", "train_glm", "train_lgb", "explain_lgb", "explain_true"]:
            assert stage in result.timings

    def test_report_written(self, claims, settings):
        from xai_lab.pipeline import run_pipeline

        settings = settings.model_copy(update={"n_explain": 30, "n_background": 20, "explain_true_model": False})
        result = run_pipeline(df=claims, settings=settings, model_names=["glm", "lgb"])

        assert result.report_path is not None
        assert result.report_path.exists()
        html = result.report_path.read_text(encoding="utf-8")
        assert "log(driver_age)" in html
        assert len(result.plots["lgb"]) == 4
        assert all(plot.plot_path.exists() for plot in result.plots["glm"])

    def test_unknown_model(self, claims, settings):
        from xai_lab.pipeline import run_pipeline

        with pytest.raises(ValueError):
            run_pipeline(df=claims, settings=settings, model_names=["svm"], make_report=False)


class TestTimed:
    """Test stage timing."""

    def test_records_duration(self):
        from xai_lab.pipeline import timed

        timings = {}
        with timed("demo", timings):
            pass

        assert timings["demo"] >= 0

    def test_exception_propagates(self):
        from xai_lab.pipeline import timed

        with pytest.raises(KeyError):
            with timed("failing"):
                raise KeyError("boom")

    def test_failed_stage_still_timed(self, caplog):
        import logging

        from xai_lab.pipeline import timed

        timings = {}
        with caplog.at_level(logging.INFO, logger="xai_lab.pipeline"):
            with pytest.raises(RuntimeError):
                with timed("fit", timings, model="glm"):
                    raise RuntimeError("did not converge")

        assert timings["fit"] >= 0
        failed = [r for r in caplog.records if getattr(r, "action", None) == "stage_failed"]
        assert len(failed) == 1
        assert failed[0].levelname == "ERROR"
        assert failed[0].model == "glm"
        assert failed[0].duration_ms >= 0


class TestMain:
    """Test the xai-lab entry point."""

    def test_prints_summary(self, claims, settings, monkeypatch, capsys):
        import logging

        from xai_lab import main as main_module
        from xai_lab.pipeline import run_pipeline

        def small_run(settings=None):
            return run_pipeline(
                df=claims,
                settings=small_settings,
                model_names=["glm"],
                make_plots=False,
                make_report=False,
            )

        small_settings = settings.model_copy(update={"n_explain": 20, "n_background": 10})
        monkeypatch.setattr(main_module, "setup_json_logging", lambda level=None: logging.getLogger("xai_lab"))
        monkeypatch.setattr(main_module, "run_pipeline", small_run)

        main_module.main()

        out = capsys.readouterr().out
        assert "GLM coefficients:" in out
        assert "log(driver_age)" in out
        assert "glm (kernel SHAP" in out
        assert "true (kernel SHAP" in out
        assert "Timings:" in out
        assert "Report:" not in out

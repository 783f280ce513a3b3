"""
Claims SHAP pipeline: load -> split -> train -> explain -> plot -> report.

Every stage runs to completion before the next one starts and is timed
on its own. Errors from the underlying libraries propagate unchanged.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator
from uuid import uuid4

import pandas as pd

from .config import Settings, get_settings
from .data import (
    CLAIM_FEATURES,
    ClaimsSplit,
    ExplanationRequest,
    load_claims,
    sample_explanation_request,
    split_claims,
)
from .explainability import (
    AttributionResult,
    FeatureImportanceAnalyzer,
    PlotArtifact,
    SHAPEngine,
    dependence_grid,
    importance_plot,
    waterfall_plot,
)
from .models import GLMModel, TrueModel, train_models
from .reporting import ExplanationReport, ModelSection, ReportGenerator

logger = logging.getLogger(__name__)


@contextmanager
def timed(stage: str, timings: dict[str, float] | None = None, **extra: Any) -> Iterator[None]:
    """
    Log the wall-clock duration of a pipeline stage.

    The duration is recorded even when the stage raises; the exception
    then propagates unchanged.
    """
    logger.info(f"Starting {stage}", extra={"stage": stage, "action": "stage_start", **extra})
    start = time.perf_counter()
    failed = False
    try:
        yield
    except BaseException:
        failed = True
        raise
    finally:
        elapsed = time.perf_counter() - start
        if timings is not None:
            timings[stage] = elapsed
        logger.log(
            logging.ERROR if failed else logging.INFO,
            f"{'Failed' if failed else 'Finished'} {stage} in {elapsed:.2f}s",
            extra={
                "stage": stage,
                "action": "stage_failed" if failed else "stage_end",
                "duration_ms": round(elapsed * 1000, 1),
                **extra,
            },
        )


@dataclass
class PipelineResult:
    """Everything a pipeline run produced."""

    split: ClaimsSplit
    request: ExplanationRequest
    models: dict[str, Any]
    attributions: dict[str, AttributionResult]
    timings: dict[str, float] = field(default_factory=dict)
    plots: dict[str, list[PlotArtifact]] = field(default_factory=dict)
    report_path: Path | None = None

    @property
    def glm_coefficients(self) -> pd.Series | None:
        glm = self.models.get("glm")
        return glm.coefficients() if isinstance(glm, GLMModel) else None

    def top_features(self, model_name: str, n: int = 5) -> list[str]:
        """Top ``n`` features of one model by mean |SHAP|."""
        return self.attributions[model_name].top_features(n)


def run_pipeline(
    df: pd.DataFrame | None = None,
    settings: Settings | None = None,
    model_names: list[str] | None = None,
    engine: SHAPEngine | None = None,
    make_plots: bool = True,
    make_report: bool = True,
) -> PipelineResult:
    """
    Run the claims SHAP walkthrough end to end.

    Args:
        df: Claims data; fetched from OpenML if None
        settings: Settings (cached defaults if None)
        model_names: Models to train (default from settings)
        engine: SHAP engine (default engine if None)
        make_plots: Render waterfall, importance and dependence plots
        make_report: Write an HTML report (implies plots)

    Returns:
        PipelineResult
    """
    settings = settings or get_settings()
    model_names = list(model_names or settings.models)
    engine = engine or SHAPEngine()
    timings: dict[str, float] = {}

    with timed("load", timings):
        if df is None:
            df = load_claims(settings.openml_data_id, settings.data_dir)

    with timed("split", timings, rows=len(df)):
        split = split_claims(df, settings.test_size, settings.split_seed)
        request = sample_explanation_request(
            split.X_train,
            settings.n_explain,
            settings.n_background,
            settings.explain_seed,
        )

    models: dict[str, Any] = {}
    for name in model_names:
        with timed(f"train_{name}", timings, model=name):
            models.update(train_models([name], split.X_train, split.y_train, settings))

    explained: dict[str, Any] = dict(models)
    if settings.explain_true_model:
        explained["true"] = TrueModel()

    attributions: dict[str, AttributionResult] = {}
    for name, model in explained.items():
        with timed(f"explain_{name}", timings, model=name, rows=request.n_explain):
            attributions[name] = engine.explain(model, request)

    result = PipelineResult(
        split=split,
        request=request,
        models=models,
        attributions=attributions,
        timings=timings,
    )

    if make_plots or make_report:
        with timed("plot", timings):
            for name, attribution in attributions.items():
                result.plots[name] = [
                    waterfall_plot(attribution, 0, settings.output_dir, settings.plot_format),
                    importance_plot(attribution, "bar", settings.output_dir, settings.plot_format),
                    importance_plot(attribution, "beeswarm", settings.output_dir, settings.plot_format),
                    dependence_grid(attribution, settings.output_dir, settings.plot_format),
                ]

    if make_report:
        with timed("report", timings):
            report = build_report(result, settings)
            result.report_path = ReportGenerator(output_dir=settings.reports_dir).save_html(report)

    return result


def build_report(result: PipelineResult, settings: Settings) -> ExplanationReport:
    """Assemble the HTML report data of a pipeline run."""
    analyzer = FeatureImportanceAnalyzer(CLAIM_FEATURES)
    sections = []
    for name, attribution in result.attributions.items():
        ranking = analyzer.add_result(attribution)
        sections.append(ModelSection(
            model_name=name,
            method=attribution.method,
            base_value=attribution.base_value,
            n_rows=attribution.n_rows,
            importance=[fi.to_dict() for fi in ranking],
            narrative=attribution.row(0).get_narrative(),
            plots=[
                {"title": plot.title, "base64": plot.plot_base64}
                for plot in result.plots.get(name, [])
                if plot.plot_base64
            ],
            timing_seconds=result.timings.get(f"explain_{name}"),
        ))

    rank_table = analyzer.rank_table().reset_index(names="feature")
    coefficients = result.glm_coefficients

    return ExplanationReport(
        report_id=uuid4().hex[:8],
        title="SHAP Analysis of Claim Frequency Models",
        generated_at=datetime.utcnow(),
        generated_by=settings.app_name,
        dataset={
            "OpenML id": settings.openml_data_id,
            "Training rows": len(result.split.train),
            "Test rows": len(result.split.test),
            "Split seed": settings.split_seed,
            "Explained rows": result.request.n_explain,
            "Background rows": result.request.n_background,
            "Sampling seed": settings.explain_seed,
        },
        glm_coefficients=coefficients.to_dict() if coefficients is not None else {},
        sections=sections,
        rank_table=rank_table.to_dict(orient="records"),
        consensus=(
            [fi.to_dict() for fi in analyzer.get_consensus_ranking()]
            if len(sections) > 1 else []
        ),
    )

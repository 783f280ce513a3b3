"""
SHAP plots: waterfall, importance and dependence.

Figures are rendered with the non-interactive Agg backend, optionally
saved to the output directory, and always returned as base64 PNG for
embedding in reports.
"""

import base64
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend, no display needed
import matplotlib.pyplot as plt
import shap

from .shap_engine import AttributionResult


@dataclass
class PlotArtifact:
    """A rendered figure."""

    name: str
    title: str
    plot_path: Path | None = None
    plot_base64: str | None = None


def _finish(
    name: str,
    title: str,
    output_dir: Path | None,
    plot_format: str,
) -> PlotArtifact:
    """Save the current figure to file and base64, then close it."""
    fig = plt.gcf()
    fig.suptitle(title)
    fig.tight_layout()

    plot_path = None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        plot_path = output_dir / f"{name}.{plot_format}"
        fig.savefig(plot_path, dpi=150, bbox_inches="tight")

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=150, bbox_inches="tight")
    buffer.seek(0)
    plot_base64 = base64.b64encode(buffer.read()).decode("utf-8")

    plt.close(fig)
    return PlotArtifact(name=name, title=title, plot_path=plot_path, plot_base64=plot_base64)


def waterfall_plot(
    result: AttributionResult,
    row: int = 0,
    output_dir: Path | None = None,
    plot_format: str = "png",
    max_display: int = 10,
) -> PlotArtifact:
    """Waterfall decomposition of a single explained row."""
    if not 0 <= row < result.n_rows:
        raise ValueError(f"Row {row} outside 0..{result.n_rows - 1}")

    plt.figure(figsize=(8, 5))
    shap.plots.waterfall(result.to_explanation()[row], max_display=max_display, show=False)
    return _finish(
        f"{result.model_name}_waterfall_{row}",
        f"{result.model_name}: SHAP waterfall for row {row}",
        output_dir,
        plot_format,
    )


def importance_plot(
    result: AttributionResult,
    kind: Literal["bar", "beeswarm"] = "bar",
    output_dir: Path | None = None,
    plot_format: str = "png",
) -> PlotArtifact:
    """Global importance as mean |SHAP| bars or a beeswarm."""
    explanation = result.to_explanation()

    plt.figure(figsize=(8, 5))
    if kind == "bar":
        shap.plots.bar(explanation, show=False)
    elif kind == "beeswarm":
        shap.plots.beeswarm(explanation, show=False)
    else:
        raise ValueError(f"Unknown importance plot kind: {kind}")

    return _finish(
        f"{result.model_name}_importance_{kind}",
        f"{result.model_name}: SHAP importance ({result.method})",
        output_dir,
        plot_format,
    )


def dependence_plot(
    result: AttributionResult,
    feature: str,
    color: str = "auto",
    output_dir: Path | None = None,
    plot_format: str = "png",
) -> PlotArtifact:
    """
    SHAP dependence scatter of one feature.

    Args:
        result: Attribution result
        feature: Feature on the x-axis
        color: Feature used for coloring; "auto" picks the strongest
            approximate interaction
    """
    if feature not in result.feature_names:
        raise ValueError(f"Unknown feature: {feature}")

    explanation = result.to_explanation()
    if color == "auto":
        color_values = explanation
    elif color in result.feature_names:
        color_values = explanation[:, color]
    else:
        raise ValueError(f"Unknown color feature: {color}")

    fig, ax = plt.subplots(figsize=(7, 5))
    shap.plots.scatter(explanation[:, feature], color=color_values, ax=ax, show=False)
    return _finish(
        f"{result.model_name}_dependence_{feature}",
        f"{result.model_name}: SHAP dependence of {feature}",
        output_dir,
        plot_format,
    )


def dependence_grid(
    result: AttributionResult,
    output_dir: Path | None = None,
    plot_format: str = "png",
    ncols: int = 3,
) -> PlotArtifact:
    """One dependence panel per feature on a shared y-axis."""
    explanation = result.to_explanation()
    n = len(result.feature_names)
    nrows = -(-n // ncols)

    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3.5 * nrows), sharey=True)
    axes = axes.ravel()
    for ax, feature in zip(axes, result.feature_names):
        shap.plots.scatter(explanation[:, feature], color=explanation, ax=ax, show=False)
    for ax in axes[n:]:
        ax.set_visible(False)

    return _finish(
        f"{result.model_name}_dependence_grid",
        f"{result.model_name}: SHAP dependence plots",
        output_dir,
        plot_format,
    )

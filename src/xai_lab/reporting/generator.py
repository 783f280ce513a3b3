"""
HTML report for a SHAP pipeline run.

Bundles the dataset summary, GLM coefficients, per-model importance
rankings and the rendered plots into a single self-contained HTML page
using Jinja2.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


@dataclass
class ModelSection:
    """Explanation summary of one model."""

    model_name: str
    method: str
    base_value: float
    n_rows: int
    importance: list[dict[str, Any]] = field(default_factory=list)
    narrative: str | None = None
    plots: list[dict[str, str]] = field(default_factory=list)  # {"title", "base64"}
    timing_seconds: float | None = None


@dataclass
class ExplanationReport:
    """Complete explanation report."""

    report_id: str
    title: str
    generated_at: datetime
    generated_by: str

    dataset: dict[str, Any] = field(default_factory=dict)
    glm_coefficients: dict[str, float] = field(default_factory=dict)
    sections: list[ModelSection] = field(default_factory=list)
    rank_table: list[dict[str, Any]] = field(default_factory=list)
    consensus: list[dict[str, Any]] = field(default_factory=list)


class ReportGenerator:
    """Render ExplanationReport objects to HTML."""

    # Default HTML template (embedded for portability)
    DEFAULT_TEMPLATE = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{{ report.title }}</title>
    <style>
        :root {
            --primary: #1a365d;
            --accent: #3182ce;
            --background: #f7fafc;
            --text: #2d3748;
        }
        body {
            font-family: 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: var(--text);
            background: var(--background);
            margin: 0;
        }
        .container { max-width: 960px; margin: 0 auto; padding: 2rem; background: white; }
        header { border-bottom: 3px solid var(--primary); margin-bottom: 2rem; }
        h1 { color: var(--primary); }
        section h2 { color: var(--primary); border-bottom: 2px solid var(--accent); }
        table { width: 100%; border-collapse: collapse; margin: 1rem 0; font-size: 0.9rem; }
        th, td { padding: 0.5rem; text-align: left; border-bottom: 1px solid #e2e8f0; }
        th { background: var(--primary); color: white; }
        tr:nth-child(even) { background: var(--background); }
        .shap-plot { text-align: center; margin: 1rem 0; }
        .shap-plot img { max-width: 100%; border: 1px solid #e2e8f0; border-radius: 8px; }
        .narrative { padding: 0.75rem 1rem; background: var(--background); border-left: 3px solid var(--accent); }
        footer { margin-top: 3rem; border-top: 2px solid var(--primary); font-size: 0.85rem; color: #718096; }
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>{{ report.title }}</h1>
            <p>Report {{ report.report_id }} | {{ report.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC') }} | {{ report.generated_by }}</p>
        </header>

        <section id="dataset">
            <h2>1. Data</h2>
            <table>
                {% for key, value in report.dataset.items() %}
                <tr><th>{{ key }}</th><td>{{ value }}</td></tr>
                {% endfor %}
            </table>
        </section>

        {% if report.glm_coefficients %}
        <section id="glm">
            <h2>2. GLM Coefficients</h2>
            <table>
                <thead><tr><th>Term</th><th>Coefficient</th></tr></thead>
                <tbody>
                {% for term, coef in report.glm_coefficients.items() %}
                <tr><td>{{ term }}</td><td>{{ "%+.5f"|format(coef) }}</td></tr>
                {% endfor %}
                </tbody>
            </table>
        </section>
        {% endif %}

        <section id="models">
            <h2>3. Model Explanations</h2>
            {% for section in report.sections %}
            <h3>{{ section.model_name }} ({{ section.method }} SHAP, {{ section.n_rows }} rows)</h3>
            <p><strong>Baseline (log scale):</strong> {{ "%.4f"|format(section.base_value) }}
            {% if section.timing_seconds is not none %}| <strong>Time:</strong> {{ "%.1f"|format(section.timing_seconds) }} s{% endif %}</p>
            <table>
                <thead><tr><th>Rank</th><th>Feature</th><th>Mean |SHAP|</th></tr></thead>
                <tbody>
                {% for fi in section.importance %}
                <tr><td>{{ fi.rank }}</td><td>{{ fi.name }}</td><td>{{ "%.4f"|format(fi.importance) }}</td></tr>
                {% endfor %}
                </tbody>
            </table>
            {% if section.narrative %}<p class="narrative">{{ section.narrative }}</p>{% endif %}
            {% for plot in section.plots %}
            <div class="shap-plot">
                <h4>{{ plot.title }}</h4>
                <img src="data:image/png;base64,{{ plot.base64 }}" alt="{{ plot.title }}">
            </div>
            {% endfor %}
            {% endfor %}
        </section>

        {% if report.rank_table %}
        <section id="ranking">
            <h2>4. Importance Ranks Across Models</h2>
            <table>
                <thead><tr>{% for key in report.rank_table[0].keys() %}<th>{{ key }}</th>{% endfor %}</tr></thead>
                <tbody>
                {% for row in report.rank_table %}
                <tr>{% for value in row.values() %}<td>{{ value }}</td>{% endfor %}</tr>
                {% endfor %}
                </tbody>
            </table>
            {% if report.consensus %}
            <p><strong>Consensus:</strong>
            {% for fi in report.consensus %}{{ fi.rank }}. {{ fi.name }}{% if not loop.last %}, {% endif %}{% endfor %}</p>
            {% endif %}
        </section>
        {% endif %}

        <footer>
            <p>Generated by {{ report.generated_by }}. SHAP values are on the log scale and only comparable within one model.</p>
        </footer>
    </div>
</body>
</html>'''

    def __init__(
        self,
        template_dir: Path | None = None,
        output_dir: Path | None = None,
    ):
        """
        Initialize report generator.

        Args:
            template_dir: Directory containing Jinja2 templates
            output_dir: Directory to save generated reports
        """
        self.template_dir = template_dir
        self.output_dir = output_dir or Path("./reports")
        self.output_dir.mkdir(parents=True, exist_ok=True)

        if template_dir and template_dir.exists():
            self.env = Environment(
                loader=FileSystemLoader(str(template_dir)),
                autoescape=select_autoescape(["html", "xml"]),
            )
        else:
            self.env = Environment(autoescape=select_autoescape(["html", "xml"]))

    def generate_html(self, report: ExplanationReport) -> str:
        """
        Generate HTML report.

        Args:
            report: ExplanationReport data

        Returns:
            HTML string
        """
        if self.template_dir and (self.template_dir / "shap_report.html").exists():
            template = self.env.get_template("shap_report.html")
        else:
            template = self.env.from_string(self.DEFAULT_TEMPLATE)

        return template.render(report=report)

    def save_html(self, report: ExplanationReport, filename: str | None = None) -> Path:
        """
        Save HTML report to file.

        Args:
            report: ExplanationReport data
            filename: Optional filename (without extension)

        Returns:
            Path to saved HTML file
        """
        html_content = self.generate_html(report)
        filename = filename or f"report_{report.report_id}"
        html_path = self.output_dir / f"{filename}.html"

        with open(html_path, "w", encoding="utf-8") as f:
            f.write(html_content)

        return html_path

"""Reporting module - HTML summaries of SHAP pipeline runs."""

from .generator import ExplanationReport, ModelSection, ReportGenerator

__all__ = ["ExplanationReport", "ModelSection", "ReportGenerator"]

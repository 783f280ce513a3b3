"""
XAI Lab - command-line entry point for the claims SHAP pipeline.

Settings come from XAI_* environment variables (see config.py).
"""

import json
import logging
import sys
from datetime import datetime

from .config import get_settings
from .pipeline import run_pipeline


# ============================================================================
# JSON LOGGING SETUP
# ============================================================================

class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        for key in ["stage", "model", "duration_ms", "rows", "action", "data", "error"]:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def setup_json_logging(level: str | None = None) -> logging.Logger:
    """Configure JSON logging for the package."""
    level = level or get_settings().log_level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    logging.getLogger("xai_lab").setLevel(level.upper())
    # TensorFlow and matplotlib are chatty at INFO
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("tensorflow").setLevel(logging.ERROR)

    return logging.getLogger("xai_lab")


def main():
    """Run the claims SHAP pipeline with the configured settings."""
    logger = setup_json_logging()
    settings = get_settings()

    print(f"{settings.app_name} - SHAP analysis of claim frequency models\n")
    result = run_pipeline(settings=settings)

    coefficients = result.glm_coefficients
    if coefficients is not None:
        print("GLM coefficients:")
        for term, coef in coefficients.items():
            print(f"  {term:<18} {coef:+.5f}")

    for name, attribution in result.attributions.items():
        print(f"\n{name} ({attribution.method} SHAP, baseline {attribution.base_value:.4f}):")
        for fi in attribution.importance()[:5]:
            print(f"  {fi.rank}. {fi.name}: {fi.importance:.4f}")
        print(f"  {attribution.row(0).get_narrative()}")

    print("\nTimings:")
    for stage, seconds in result.timings.items():
        print(f"  {stage:<14} {seconds:8.2f}s")

    if result.report_path:
        print(f"\nReport: {result.report_path}")
    logger.info("Pipeline complete", extra={"action": "pipeline_end", "data": result.timings})


if __name__ == "__main__":
    main()

"""
Configuration management using Pydantic Settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="XAI_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "XAI Lab"
    log_level: str = "INFO"

    # Claims dataset (simulated claims frequency on OpenML)
    openml_data_id: int = 45106
    data_dir: Path = Path("./data")

    # Sampling (fixed seeds keep every run reproducible)
    split_seed: int = 8300
    test_size: float = 0.1
    explain_seed: int = 3948
    n_explain: int = 1000
    n_background: int = 200

    # Training
    n_threads: int = 4
    models: list[Literal["glm", "nn", "lgb"]] = ["glm", "nn", "lgb"]
    explain_true_model: bool = True

    # Output
    output_dir: Path = Path("./figures")
    reports_dir: Path = Path("./reports")
    plot_format: Literal["png", "svg"] = "png"

    # Image classification
    image_model: Literal["resnet50", "mobilenet_v2", "efficientnet_b0"] = "resnet50"
    top_k: int = 5
    capture_interval_seconds: float = 2.0
    camera_device: int = 0

    def model_post_init(self, __context) -> None:
        """Ensure directories exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

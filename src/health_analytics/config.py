"""Configuration settings for the Health Analytics service."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


# __file__ = src/health_analytics/config.py
PACKAGE_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Performance predictor
    min_training_samples: int = 5
    high_confidence_samples: int = 20
    medium_confidence_samples: int = 15
    linear_rmse_tolerance: float = 0.6  # fraction of target stddev before trying the forest
    forest_estimators: int = 100
    random_seed: int = 42

    # Model cache
    retrain_interval_days: int = 7
    train_combined_model: bool = False
    training_workers: int = 1

    class Config:
        env_prefix = "HEALTH_ANALYTICS_"
        env_file = str(PACKAGE_ROOT / ".env")
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

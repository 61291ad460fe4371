"""Configuration management for SketchText.

Loads and validates YAML configuration with defaults matching the
reference drawing surface and Tesseract setup.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Error converting handwriting to text. Please try again."


class SurfaceConfig(BaseModel):
    """Configuration for the drawing surface and its stroke style."""

    padding: int = Field(default=40, ge=0)
    height: int = Field(default=600, gt=0)
    stroke_color: str = "#000000"
    stroke_width: int = Field(default=3, gt=0)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3


class PreprocessingConfig(BaseModel):
    """Configuration for snapshot preparation before recognition."""

    flatten_enabled: bool = True
    binarize_enabled: bool = True
    margin: int = Field(default=20, ge=0)


class PipelineConfig(BaseModel):
    """Configuration for the conversion pipeline state machine."""

    success_display_seconds: float = Field(default=3.0, ge=0.0)
    error_message: str = DEFAULT_ERROR_MESSAGE


class AppConfig(BaseModel):
    """Top-level application configuration."""

    surface: SurfaceConfig = Field(default_factory=SurfaceConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()

"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
Nested values use a double underscore, e.g. ORDERPRINT_ENGINE__PREFERENCE=native.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from orderprint.printing.layout import LayoutConfig
from orderprint.printing.receipt import DEFAULT_FOOTER


class LayoutSettings(BaseSettings):
    """Receipt layout tuning."""

    margin_ratio: float = Field(default=0.01, ge=0.0, le=0.2)
    margin_top_mm: float = Field(default=3.0, ge=0.0)
    margin_bottom_mm: float = Field(default=3.0, ge=0.0)
    line_height_mm: float = Field(default=4.0, gt=0.0)

    # Base font size (pt) for unknown paper widths
    default_font_size: int = Field(default=10, ge=6, le=32)

    footer_text: str = DEFAULT_FOOTER

    def to_config(self) -> LayoutConfig:
        """Layout resolver config with these overrides applied."""
        return LayoutConfig(
            margin_ratio=self.margin_ratio,
            margin_top_mm=self.margin_top_mm,
            margin_bottom_mm=self.margin_bottom_mm,
            line_height_mm=self.line_height_mm,
            default_font_size=self.default_font_size,
        )


class EngineSettings(BaseSettings):
    """Print engine selection and backend options."""

    # First engine tried; fallbacks follow from here
    preference: Literal["helper", "native", "page", "mock"] = "helper"

    # Compiled helper
    helper_path: Optional[str] = None
    helper_timeout: float = Field(default=10.0, gt=0.0)
    probe_timeout: float = Field(default=5.0, gt=0.0)

    # Upper bound for one printer's job, whatever the engine
    job_timeout: float = Field(default=30.0, gt=0.0)

    # Page-composition print service, checked before use if set
    page_service_url: Optional[str] = None

    # Limit for composing and submitting one page, counted once the control is free
    page_timeout: float = Field(default=10.0, gt=0.0)

    # ESC/POS output
    encoding: str = "gb18030"
    code_page: Optional[int] = None
    cjk_mode: bool = True
    feed_lines: int = Field(default=4, ge=0, le=255)
    partial_cut: bool = False


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ORDERPRINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = False

    # Paper width for CLI previews when none is given
    default_paper_width: int = Field(default=80, gt=0)

    # Select the first printer automatically when nothing is selected
    auto_select_printer: bool = True

    # Nested settings
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Configuration for orderprint."""

from orderprint.config.settings import EngineSettings, LayoutSettings, Settings, get_settings

__all__ = [
    "Settings",
    "LayoutSettings",
    "EngineSettings",
    "get_settings",
]

"""Tests for settings and the engine factory."""

import pytest

from orderprint.config.settings import Settings, get_settings
from orderprint.hardware.printer import (
    FALLBACK_CHAINS,
    HelperEngine,
    MockEngine,
    NativeEngine,
    PageEngine,
    build_engine_chain,
    create_engine,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "ORDERPRINT_ENGINE__PREFERENCE",
        "ORDERPRINT_ENGINE__PAGE_TIMEOUT",
        "ORDERPRINT_LAYOUT__FOOTER_TEXT",
        "ORDERPRINT_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.engine.preference == "helper"
        assert settings.engine.encoding == "gb18030"
        assert settings.default_paper_width == 80
        assert settings.layout.footer_text == "Thank you!"

    def test_nested_env(self, monkeypatch):
        monkeypatch.setenv("ORDERPRINT_ENGINE__PREFERENCE", "native")
        monkeypatch.setenv("ORDERPRINT_LAYOUT__FOOTER_TEXT", "See you soon")
        settings = Settings(_env_file=None)
        assert settings.engine.preference == "native"
        assert settings.layout.footer_text == "See you soon"

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_layout_config(self):
        config = Settings(_env_file=None).layout.to_config()
        assert config.margin_ratio == 0.01
        assert config.line_height_mm == 4.0


class TestEngineFactory:
    @pytest.mark.parametrize("preference,kinds", [
        ("helper", [HelperEngine, NativeEngine]),
        ("page", [PageEngine, NativeEngine]),
        ("native", [NativeEngine]),
        ("mock", [MockEngine]),
    ])
    def test_chains(self, preference, kinds):
        settings = Settings(_env_file=None)
        settings.engine.preference = preference
        chain = build_engine_chain(settings)
        assert [type(engine) for engine in chain] == kinds
        assert [engine.name for engine in chain] == list(FALLBACK_CHAINS[preference])

    def test_renderer_from_settings(self):
        settings = Settings(_env_file=None)
        settings.engine.partial_cut = True
        engine = create_engine("mock", settings)
        assert engine.renderer.partial_cut is True

    def test_unknown_engine(self):
        with pytest.raises(ValueError):
            create_engine("laser", Settings(_env_file=None))

    def test_page_timeout_from_settings(self, monkeypatch):
        monkeypatch.setenv("ORDERPRINT_ENGINE__PAGE_TIMEOUT", "3.5")
        engine = create_engine("page", Settings(_env_file=None))
        assert engine.call_timeout == 3.5
        assert engine.bounds_own_jobs is True

"""Print engines for orderprint."""

import logging
from typing import List, Optional

from orderprint.config.settings import Settings
from orderprint.hardware.base import PrintEngine, TextEngine, reset_probe_cache
from orderprint.hardware.printer.helper import HelperEngine, find_helper
from orderprint.hardware.printer.mock import MockEngine
from orderprint.hardware.printer.native import CupsRawPrinter, NativeEngine, RawPrinter
from orderprint.hardware.printer.page import PageEngine
from orderprint.printing.escpos import EscPosRenderer
from orderprint.printing.page import PageComposer

logger = logging.getLogger(__name__)

# Preferred engine -> candidates tried in order
FALLBACK_CHAINS = {
    "helper": ("helper", "native"),
    "native": ("native",),
    "page": ("page", "native"),
    "mock": ("mock",),
}


def create_renderer(settings: Settings) -> EscPosRenderer:
    """ESC/POS renderer configured from settings."""
    engine = settings.engine
    return EscPosRenderer(
        encoding=engine.encoding,
        code_page=engine.code_page,
        cjk_mode=engine.cjk_mode,
        feed_lines=engine.feed_lines,
        partial_cut=engine.partial_cut,
    )


def create_engine(
    kind: str,
    settings: Settings,
    page: Optional[PageComposer] = None,
    raw_printer: Optional[RawPrinter] = None,
) -> PrintEngine:
    """Factory function to create one engine.

    Args:
        kind: helper, native, page or mock
        settings: Application settings
        page: Page-composition capability handle, if the host has one
        raw_printer: Raw print capability; CUPS is used when None

    Returns:
        Engine instance
    """
    engine_settings = settings.engine
    if kind == "helper":
        return HelperEngine(
            helper_path=engine_settings.helper_path,
            call_timeout=engine_settings.helper_timeout,
            probe_timeout=engine_settings.probe_timeout,
            renderer=create_renderer(settings),
        )
    if kind == "native":
        return NativeEngine(
            raw_printer=raw_printer or CupsRawPrinter(timeout=engine_settings.helper_timeout),
            renderer=create_renderer(settings),
        )
    if kind == "page":
        return PageEngine(
            page=page,
            service_url=engine_settings.page_service_url,
            probe_timeout=engine_settings.probe_timeout,
            call_timeout=engine_settings.page_timeout,
        )
    if kind == "mock":
        return MockEngine(renderer=create_renderer(settings))
    raise ValueError(f"Unknown print engine: {kind}")


def build_engine_chain(
    settings: Settings,
    page: Optional[PageComposer] = None,
    raw_printer: Optional[RawPrinter] = None,
) -> List[PrintEngine]:
    """Candidate engines for the configured preference, best first."""
    kinds = FALLBACK_CHAINS[settings.engine.preference]
    logger.debug(f"Engine chain: {' -> '.join(kinds)}")
    return [create_engine(kind, settings, page=page, raw_printer=raw_printer) for kind in kinds]


__all__ = [
    "PrintEngine",
    "TextEngine",
    "HelperEngine",
    "NativeEngine",
    "CupsRawPrinter",
    "RawPrinter",
    "PageEngine",
    "MockEngine",
    "FALLBACK_CHAINS",
    "build_engine_chain",
    "create_engine",
    "create_renderer",
    "find_helper",
    "reset_probe_cache",
]

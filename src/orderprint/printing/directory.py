"""Printer directory.

Holds the printers enumerated from the active engine, classifies them
by paper width from their names and keeps the operator's selection
and per-printer settings across re-enumeration.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

THERMAL_KEYWORDS = ("热敏", "thermal", "receipt", "小票", "pos", "58mm", "80mm")

A4_WIDTH = 210
VIRTUAL_PRINTER_NAME = "Virtual Printer (no print service)"

STATUS_READY = "Ready"
STATUS_WARNING = "Warning"


def classify_printer(name: str) -> Tuple[int, bool]:
    """Guess paper width (mm) and thermal-ness from a printer name.

    Returns:
        (width, is_thermal)
    """
    lowered = name.lower()
    is_thermal = any(keyword in lowered for keyword in THERMAL_KEYWORDS)

    if "58" in lowered:
        return 58, is_thermal
    if "80" in lowered or is_thermal:
        return 80, is_thermal
    return A4_WIDTH, False


@dataclass
class PrinterInfo:
    """A print target as shown to the operator."""

    name: str
    width: int = 80
    is_thermal: bool = False
    status: str = STATUS_READY
    is_enabled: bool = False
    font_size: int = 0
    is_default: bool = False
    engine: str = ""
    is_virtual: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def virtual_printer() -> PrinterInfo:
    """Placeholder entry shown when no engine can enumerate printers."""
    return PrinterInfo(
        name=VIRTUAL_PRINTER_NAME,
        width=80,
        is_thermal=True,
        status=STATUS_WARNING,
        is_default=True,
        engine="virtual",
        is_virtual=True,
    )


class PrinterDirectory:
    """Enumerated printers plus the operator's selection."""

    def __init__(self, auto_select: bool = False) -> None:
        self._printers: List[PrinterInfo] = []
        self._selected: set[str] = set()
        self._overrides: Dict[str, Dict[str, int]] = {}
        self.auto_select = auto_select

    @property
    def printers(self) -> List[PrinterInfo]:
        return list(self._printers)

    @property
    def has_real_printers(self) -> bool:
        return any(not p.is_virtual for p in self._printers)

    def update(self, names: Iterable[str], engine: str = "") -> List[PrinterInfo]:
        """Rebuild the directory from freshly enumerated printer names.

        Selection and per-printer overrides carry over by name. An empty
        enumeration leaves a single placeholder printer.

        Args:
            names: Printer names reported by the engine, default first
            engine: Name of the engine that enumerated them

        Returns:
            The new printer list
        """
        printers: List[PrinterInfo] = []
        seen: set[str] = set()
        for name in names:
            name = name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            width, is_thermal = classify_printer(name)
            printers.append(PrinterInfo(
                name=name,
                width=width,
                is_thermal=is_thermal,
                is_default=not printers,
                engine=engine,
            ))

        if not printers:
            logger.warning("No printers enumerated, showing placeholder printer")
            printers = [virtual_printer()]

        for printer in printers:
            override = self._overrides.get(printer.name, {})
            printer.width = override.get("width", printer.width)
            printer.font_size = override.get("font_size", printer.font_size)

        self._printers = printers
        self.validate_selection()

        if self.auto_select and not self._selected:
            first = next((p for p in printers if not p.is_virtual), None)
            if first is not None:
                self._selected.add(first.name)
                logger.info(f"Auto-selected printer {first.name}")

        self._sync_enabled()
        logger.info(f"Printer directory updated: {len(printers)} printer(s) via {engine or 'none'}")
        return self.printers

    def validate_selection(self) -> List[str]:
        """Drop selected names that are no longer enumerated.

        Returns:
            Names that were dropped
        """
        present = {p.name for p in self._printers if not p.is_virtual}
        stale = sorted(self._selected - present)
        if stale:
            logger.info(f"Dropping stale printer selection: {', '.join(stale)}")
            self._selected -= set(stale)
            self._sync_enabled()
        return stale

    def get(self, name: str) -> Optional[PrinterInfo]:
        return next((p for p in self._printers if p.name == name), None)

    def select(self, names: Iterable[str]) -> None:
        """Replace the selection; unknown names are ignored."""
        known = {p.name for p in self._printers if not p.is_virtual}
        wanted = set(names)
        for name in sorted(wanted - known):
            logger.warning(f"Ignoring unknown printer {name}")
        self._selected = wanted & known
        self._sync_enabled()

    def set_enabled(self, name: str, enabled: bool) -> None:
        printer = self.get(name)
        if printer is None or printer.is_virtual:
            raise KeyError(f"Unknown printer: {name}")
        if enabled:
            self._selected.add(name)
        else:
            self._selected.discard(name)
        self._sync_enabled()

    def configure(self, name: str, width: Optional[int] = None, font_size: Optional[int] = None) -> None:
        """Override paper width and/or font tier for a printer."""
        override = self._overrides.setdefault(name, {})
        if width is not None:
            override["width"] = int(width)
        if font_size is not None:
            if font_size not in (0, 1, 2):
                raise ValueError(f"font_size must be 0, 1 or 2, got {font_size}")
            override["font_size"] = int(font_size)

        printer = self.get(name)
        if printer is not None:
            printer.width = override.get("width", printer.width)
            printer.font_size = override.get("font_size", printer.font_size)

    def selected(self) -> List[PrinterInfo]:
        """Selected printers in enumeration order."""
        self.validate_selection()
        return [p for p in self._printers if p.name in self._selected]

    def to_state(self) -> Dict[str, Any]:
        """Plain-data snapshot for the settings store."""
        return {
            "selected": sorted(self._selected),
            "overrides": {name: dict(values) for name, values in self._overrides.items()},
        }

    def load_state(self, state: Dict[str, Any]) -> None:
        """Restore a snapshot made by to_state; applied on next update."""
        self._selected = set(state.get("selected", []))
        self._overrides = {
            name: {k: int(v) for k, v in values.items() if k in ("width", "font_size")}
            for name, values in state.get("overrides", {}).items()
        }
        if self._printers:
            self.update([p.name for p in self._printers if not p.is_virtual],
                        engine=self._printers[0].engine)

    def _sync_enabled(self) -> None:
        for printer in self._printers:
            printer.is_enabled = printer.name in self._selected

"""
Abstract base classes for print engines.

Every backend (compiled helper, OS-native raw printing, page
composition, mock) implements PrintEngine so the dispatcher can treat
them as interchangeable candidates in one fallback chain.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from orderprint.printing.directory import PrinterInfo
from orderprint.printing.escpos import EscPosRenderer
from orderprint.printing.receipt import Receipt

logger = logging.getLogger(__name__)

# Probe results live for the whole process; only a restart re-probes.
_probe_cache: Dict[str, bool] = {}
_probe_locks: Dict[str, asyncio.Lock] = {}


def reset_probe_cache() -> None:
    """Forget all cached probe results (tests only)."""
    _probe_cache.clear()
    _probe_locks.clear()


class PrintEngine(ABC):
    """Abstract base class for a print backend."""

    #: Short engine identifier, also used in printer entries
    name: str = "engine"

    #: Shown to the operator when the engine is missing
    install_hint: str = ""

    #: Engine applies its own per-call timeout once a job reaches the printer
    bounds_own_jobs: bool = False

    @property
    def cache_key(self) -> str:
        """Key under which the probe result is cached."""
        return self.name

    async def probe(self) -> bool:
        """Check whether the backend is usable, once per process."""
        key = self.cache_key
        if key in _probe_cache:
            return _probe_cache[key]

        lock = _probe_locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key not in _probe_cache:
                try:
                    available = await self._probe()
                except Exception as e:
                    logger.warning(f"{self.name} engine probe failed: {e}")
                    available = False
                _probe_cache[key] = available
                logger.info(f"{self.name} engine {'available' if available else 'unavailable'}")
        return _probe_cache[key]

    @abstractmethod
    async def _probe(self) -> bool:
        """Uncached availability check."""
        ...

    @abstractmethod
    async def list_printers(self) -> List[str]:
        """Names of the printers this engine can reach, default first."""
        ...

    @abstractmethod
    async def print_receipt(self, printer: PrinterInfo, receipt: Receipt) -> None:
        """
        Print a composed receipt.

        Raises:
            PrintError: If the printer could not print the job
        """
        ...

    def describe(self) -> Dict[str, Any]:
        """Status dictionary for diagnostics."""
        return {
            "engine": self.name,
            "available": _probe_cache.get(self.cache_key),
        }


class TextEngine(PrintEngine):
    """Base for engines that send ESC/POS bytes to the printer."""

    def __init__(self, renderer: EscPosRenderer | None = None) -> None:
        self.renderer = renderer or EscPosRenderer()

    async def print_receipt(self, printer: PrinterInfo, receipt: Receipt) -> None:
        data = self.renderer.render(receipt)
        await self.send(printer.name, data)
        logger.info(f"Receipt {receipt.order_id} sent to {printer.name} via {self.name}")

    @abstractmethod
    async def send(self, printer_name: str, data: bytes) -> None:
        """Deliver raw command bytes to a printer."""
        ...

"""Mock print engine for the simulator and tests."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from orderprint.hardware.base import TextEngine
from orderprint.printing.directory import PrinterInfo
from orderprint.printing.errors import PrintError
from orderprint.printing.escpos import EscPosRenderer
from orderprint.printing.receipt import Receipt

logger = logging.getLogger(__name__)


@dataclass
class MockJob:
    printer: str
    order_id: str
    data: bytes
    preview: str


class MockEngine(TextEngine):
    """Records jobs instead of printing them."""

    name = "mock"

    def __init__(
        self,
        printers: Optional[Iterable[str]] = None,
        failing: Optional[Iterable[str]] = None,
        available: bool = True,
        delay: float = 0.0,
        renderer: Optional[EscPosRenderer] = None,
    ):
        """Initialize the mock engine.

        Args:
            printers: Printer names to report
            failing: Printer names whose jobs fail
            available: Probe result
            delay: Simulated print time in seconds
            renderer: ESC/POS renderer for recorded jobs
        """
        super().__init__(renderer)
        self.printers = list(printers) if printers is not None else ["POS-80 Receipt", "POS-58 Receipt"]
        self.failing = set(failing or ())
        self.available = available
        self.delay = delay
        self.jobs: List[MockJob] = []

    @property
    def cache_key(self) -> str:
        return f"{self.name}:{id(self)}"

    async def _probe(self) -> bool:
        return self.available

    async def list_printers(self) -> List[str]:
        return list(self.printers)

    async def print_receipt(self, printer: PrinterInfo, receipt: Receipt) -> None:
        data = self.renderer.render(receipt)
        await self.send(printer.name, data)

        preview = self.renderer.preview_text(receipt)
        logger.info(f"=== MOCK PRINT ({printer.name}) ===\n{preview}")
        self.jobs.append(MockJob(printer=printer.name, order_id=receipt.order_id,
                                 data=data, preview=preview))

    async def send(self, printer_name: str, data: bytes) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if printer_name in self.failing:
            raise PrintError(f"{printer_name} is offline")
        logger.debug(f"Mock send: {len(data)} bytes to {printer_name}")

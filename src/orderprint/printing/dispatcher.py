"""Print dispatcher.

Selects a print engine from an ordered candidate chain, fans one order
out to every target printer concurrently and aggregates the per-printer
outcomes into a single report.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from orderprint.core.events import Event, EventBus, EventType
from orderprint.hardware.base import PrintEngine
from orderprint.printing.directory import PrinterDirectory, PrinterInfo, classify_printer
from orderprint.printing.errors import (
    EngineUnavailableError,
    NoPrintersSelectedError,
    PrintError,
    PrintJobError,
)
from orderprint.printing.layout import LayoutConfig, LayoutResolver
from orderprint.printing.order import Order, demo_order
from orderprint.printing.receipt import DEFAULT_FOOTER, Receipt, ReceiptComposer

logger = logging.getLogger(__name__)

OrderLike = Union[Order, Dict[str, Any]]
PrinterLike = Union[PrinterInfo, str]


@dataclass(frozen=True)
class EngineSelection:
    """Outcome of engine selection.

    Attributes:
        requested: Name of the preferred engine
        available: Usable engines in fallback order, selected one first
    """

    requested: str
    available: Tuple[PrintEngine, ...] = ()
    hint: str = ""

    @property
    def engine(self) -> Optional[PrintEngine]:
        return self.available[0] if self.available else None

    @property
    def name(self) -> str:
        return self.engine.name if self.engine else "none"

    @property
    def fallback_occurred(self) -> bool:
        return self.engine is not None and self.engine.name != self.requested


@dataclass
class PrinterOutcome:
    """Result of one printer's share of a job."""

    printer: str
    success: bool
    engine: str = ""
    error: str = ""
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PrintReport:
    """Aggregate result of a fan-out print job."""

    order_id: str
    engine: str
    fallback_occurred: bool = False
    outcomes: List[PrinterOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def success(self) -> bool:
        """True when at least one printer printed the job."""
        return self.succeeded > 0

    @property
    def errors(self) -> List[str]:
        return [f"{o.printer}: {o.error}" for o in self.outcomes if not o.success]

    def summary(self) -> str:
        return f"{self.succeeded}/{self.total} printers succeeded"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "engine": self.engine,
            "fallback_occurred": self.fallback_occurred,
            "success": self.success,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": self.errors,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class PrintDispatcher:
    """Routes orders to printers through the best available engine."""

    def __init__(
        self,
        engines: Sequence[PrintEngine],
        directory: Optional[PrinterDirectory] = None,
        event_bus: Optional[EventBus] = None,
        layout_config: Optional[LayoutConfig] = None,
        footer_text: str = DEFAULT_FOOTER,
        job_timeout: float = 30.0,
    ):
        """Initialize the dispatcher.

        Args:
            engines: Candidate engines, preferred first
            directory: Printer directory to enumerate into and select from
            event_bus: Bus for job and engine events
            layout_config: Layout tuning shared by every printer
            footer_text: Receipt footer line
            job_timeout: Upper bound for one printer's job in seconds
        """
        if not engines:
            raise ValueError("At least one engine candidate is required")
        self.engines = list(engines)
        self.directory = directory or PrinterDirectory()
        self.footer_text = footer_text
        self.job_timeout = job_timeout
        self._event_bus = event_bus
        self._resolver = LayoutResolver(layout_config)
        self._selection: Optional[EngineSelection] = None
        self._selection_lock = asyncio.Lock()

    @property
    def requested_engine(self) -> str:
        return self.engines[0].name

    async def select_engine(self) -> EngineSelection:
        """Probe the candidate chain once and cache the result.

        Returns:
            Selection with the usable engines; never raises when none is
            available (the selection is simply empty)
        """
        if self._selection is not None:
            return self._selection

        async with self._selection_lock:
            if self._selection is None:
                available = []
                for engine in self.engines:
                    if await engine.probe():
                        available.append(engine)
                    else:
                        logger.warning(f"{engine.name} engine unavailable: {engine.install_hint}")

                hint = self.engines[0].install_hint
                selection = EngineSelection(self.requested_engine, tuple(available), hint)
                self._selection = selection

                if selection.engine is None:
                    logger.error(f"No print engine available. {hint}")
                    await self._emit(EventType.ENGINE_UNAVAILABLE, {
                        "requested": selection.requested,
                        "hint": hint,
                    })
                elif selection.fallback_occurred:
                    logger.warning(
                        f"Using {selection.name} engine instead of {selection.requested}"
                    )
                    await self._emit(EventType.ENGINE_FALLBACK, {
                        "requested": selection.requested,
                        "engine": selection.name,
                        "hint": hint,
                    })
                else:
                    logger.info(f"Using {selection.name} engine")

        return self._selection

    async def refresh_printers(self) -> List[PrinterInfo]:
        """Re-enumerate printers from the selected engine into the directory."""
        selection = await self.select_engine()
        names: List[str] = []
        if selection.engine is not None:
            try:
                names = await asyncio.wait_for(selection.engine.list_printers(), self.job_timeout)
            except (PrintError, asyncio.TimeoutError) as e:
                logger.error(f"Printer enumeration failed: {e}")

        printers = self.directory.update(names, engine=selection.name)
        await self._emit(EventType.PRINTERS_CHANGED, {
            "engine": selection.name,
            "printers": [p.to_dict() for p in printers],
        })
        return printers

    def compose(self, order: Order, printer: PrinterInfo) -> Receipt:
        """Compose the receipt for one printer's paper width and font tier."""
        params = self._resolver.resolve(printer.width, printer.font_size)
        return ReceiptComposer(params, footer_text=self.footer_text).compose(order)

    async def print_order(
        self,
        order: OrderLike,
        printers: Optional[Sequence[PrinterLike]] = None,
    ) -> PrintReport:
        """Print an order on every target printer concurrently.

        Args:
            order: Order record or raw order dict
            printers: Targets; the directory's selection if None

        Returns:
            Report for a job where at least one printer succeeded

        Raises:
            NoPrintersSelectedError: No target printers; nothing dispatched
            PrintJobError: Every printer failed (report attached)
        """
        if isinstance(order, dict):
            order = Order.from_dict(order)

        targets = self._resolve_targets(printers)
        if not targets:
            message = "No printers selected"
            logger.error(f"Order {order.order_id}: {message}")
            await self._emit(EventType.PRINT_ERROR, {"order_id": order.order_id, "error": message})
            raise NoPrintersSelectedError(message)

        selection = await self.select_engine()
        await self._emit(EventType.PRINT_START, {
            "order_id": order.order_id,
            "printers": [p.name for p in targets],
            "engine": selection.name,
        })
        logger.info(f"Printing order {order.order_id} on {len(targets)} printer(s) via {selection.name}")

        outcomes = await asyncio.gather(*(
            self._print_one(order, printer, selection) for printer in targets
        ))
        report = PrintReport(
            order_id=order.order_id,
            engine=selection.name,
            fallback_occurred=selection.fallback_occurred or any(o.fallback for o in outcomes),
            outcomes=list(outcomes),
        )

        if not report.success:
            message = "; ".join(report.errors)
            logger.error(f"Order {order.order_id} failed on all printers: {message}")
            await self._emit(EventType.PRINT_ERROR, {**report.to_dict(), "error": message})
            raise PrintJobError(f"Print failed: {message}", report)

        if report.failed:
            logger.warning(f"Order {order.order_id}: {report.summary()} ({'; '.join(report.errors)})")
            await self._emit(EventType.PRINT_PARTIAL, {**report.to_dict(), "summary": report.summary()})
        else:
            logger.info(f"Order {order.order_id}: {report.summary()}")
            await self._emit(EventType.PRINT_COMPLETE, {**report.to_dict(), "summary": report.summary()})
        return report

    async def test_print(self, printer: PrinterLike) -> PrinterOutcome:
        """Print the built-in sample order on one printer."""
        target = self._resolve_targets([printer])[0]
        selection = await self.select_engine()
        outcome = await self._print_one(demo_order(), target, selection)
        if outcome.success:
            logger.info(f"Test print on {target.name} succeeded")
        else:
            logger.error(f"Test print on {target.name} failed: {outcome.error}")
        return outcome

    async def _print_one(
        self,
        order: Order,
        printer: PrinterInfo,
        selection: EngineSelection,
    ) -> PrinterOutcome:
        """Print on one printer, trying the next engine only if one is missing."""
        if printer.is_virtual:
            return PrinterOutcome(printer.name, False, error=f"Placeholder printer. {selection.hint}")

        if not selection.available:
            return PrinterOutcome(printer.name, False, error=f"No print engine available. {selection.hint}")

        try:
            receipt = self.compose(order, printer)
        except Exception as e:
            logger.exception(f"Could not compose order {order.order_id} for {printer.name}")
            return PrinterOutcome(printer.name, False, error=f"layout failed: {str(e) or type(e).__name__}")

        last_error = ""
        for index, engine in enumerate(selection.available):
            fallback = index > 0 or selection.fallback_occurred
            try:
                job = engine.print_receipt(printer, receipt)
                if engine.bounds_own_jobs:
                    await job
                else:
                    await asyncio.wait_for(job, self.job_timeout)
                return PrinterOutcome(printer.name, True, engine=engine.name, fallback=fallback)
            except EngineUnavailableError as e:
                last_error = f"{e} {e.hint}".strip()
                logger.warning(f"{engine.name} engine unavailable for {printer.name}: {e}")
                continue
            except asyncio.TimeoutError:
                error = f"timed out after {self.job_timeout:.0f}s"
            except PrintError as e:
                error = str(e)
            except Exception as e:
                logger.exception(f"Unexpected error printing on {printer.name}")
                error = str(e) or type(e).__name__

            logger.error(f"Print on {printer.name} via {engine.name} failed: {error}")
            return PrinterOutcome(printer.name, False, engine=engine.name, error=error, fallback=fallback)

        return PrinterOutcome(printer.name, False, error=last_error or "No print engine available")

    def _resolve_targets(self, printers: Optional[Sequence[PrinterLike]]) -> List[PrinterInfo]:
        if printers is None:
            return self.directory.selected()

        targets = []
        for printer in printers:
            if isinstance(printer, PrinterInfo):
                targets.append(printer)
                continue
            known = self.directory.get(printer)
            if known is None:
                width, is_thermal = classify_printer(printer)
                known = PrinterInfo(name=printer, width=width, is_thermal=is_thermal)
            targets.append(known)
        return targets

    async def _emit(self, event_type: EventType, data: Dict[str, Any]) -> None:
        if self._event_bus is not None:
            await self._event_bus.emit_async(Event(event_type, data=data, source="dispatcher"))

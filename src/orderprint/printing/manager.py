"""Print manager for incoming orders."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from orderprint.core.events import Event, EventBus, EventType
from orderprint.printing.dispatcher import PrintDispatcher, PrintReport
from orderprint.printing.errors import PrintJobError
from orderprint.printing.order import Order

logger = logging.getLogger(__name__)

Job = Dict[str, Any]


class PrintManager:
    """Queue-based printing manager for incoming orders.

    Listens for ORDER_RECEIVED events and prints each order on the
    selected printers, one job at a time.
    """

    def __init__(self, event_bus: EventBus, dispatcher: PrintDispatcher) -> None:
        self._event_bus = event_bus
        self._dispatcher = dispatcher
        self._queue: asyncio.Queue[Job] = asyncio.Queue()
        self._task: Optional[asyncio.Task[None]] = None
        self._unsubscribe = None
        self._running = False
        self.reports: List[PrintReport] = []

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Select the engine, load printers and start consuming orders."""
        if self._running:
            return
        self._running = True
        await self._dispatcher.refresh_printers()
        self._unsubscribe = self._event_bus.subscribe(EventType.ORDER_RECEIVED, self.handle_order)
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the print manager."""
        self._running = False
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def handle_order(self, event: Event) -> None:
        """Queue a print job from an ORDER_RECEIVED event."""
        data = event.data if isinstance(event.data, dict) else {}
        order = data.get("order")
        if not isinstance(order, (dict, Order)):
            logger.error(f"Ignoring order event without order payload from {event.source}")
            return
        self.submit(order, printers=data.get("printers"))

    def submit(self, order: Union[Order, Dict[str, Any]], printers: Optional[List[str]] = None) -> None:
        """Queue an order for printing."""
        self._queue.put_nowait({"order": order, "printers": printers})
        order_id = order.order_id if isinstance(order, Order) else order.get("order_id")
        logger.info(f"Queued print job for order {order_id}")

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _run(self) -> None:
        """Process print jobs sequentially."""
        while self._running:
            job = await self._queue.get()
            try:
                report = await self._dispatcher.print_order(job["order"], job["printers"])
                self.reports.append(report)
            except PrintJobError as exc:
                # Already logged and emitted by the dispatcher
                if exc.report is not None:
                    self.reports.append(exc.report)
            except Exception as exc:
                logger.exception(f"Print job crashed: {exc}")
                await self._event_bus.emit_async(Event(
                    EventType.ERROR,
                    data={"error": str(exc)},
                    source="print_manager",
                ))
            finally:
                self._queue.task_done()

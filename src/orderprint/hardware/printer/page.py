"""Page-composition print engine.

Wraps a page-composition capability handle (the vendor print control's
binding) supplied by the host. When the control runs as a local print
service, its HTTP endpoint is checked before the engine is used.
"""

import asyncio
import logging
from typing import List, Optional

import aiohttp

from orderprint.hardware.base import PrintEngine
from orderprint.printing.directory import PrinterInfo
from orderprint.printing.errors import EngineUnavailableError, PrintError, PrintTimeoutError
from orderprint.printing.page import PageComposer, PageRenderer
from orderprint.printing.receipt import Receipt

logger = logging.getLogger(__name__)


class PageEngine(PrintEngine):
    """Print engine over a page-composition capability.

    The capability keeps one page in progress at a time, so jobs for
    different printers queue for it. The call timeout starts once a job
    holds the capability; time spent queued does not count.
    """

    name = "page"
    install_hint = "Install and start the print control service, then restart"
    bounds_own_jobs = True

    def __init__(
        self,
        page: Optional[PageComposer] = None,
        service_url: Optional[str] = None,
        probe_timeout: float = 5.0,
        call_timeout: float = 10.0,
    ):
        """Initialize the page engine.

        Args:
            page: Connected capability handle, None if the host has none
            service_url: Local print service URL to check, if any
            probe_timeout: Limit for the service check in seconds
            call_timeout: Limit for composing and submitting one page
        """
        self.page = page
        self.service_url = service_url
        self.probe_timeout = probe_timeout
        self.call_timeout = call_timeout
        self._renderer = PageRenderer()
        self._lock = asyncio.Lock()

    async def _probe(self) -> bool:
        if self.page is None:
            return False
        if not self.service_url:
            return True
        return await self._check_service()

    async def _check_service(self) -> bool:
        timeout = aiohttp.ClientTimeout(total=self.probe_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.service_url) as response:
                    if response.status >= 500:
                        logger.warning(f"Print service returned {response.status}")
                        return False
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Print service unreachable at {self.service_url}: {e}")
            return False

    async def list_printers(self) -> List[str]:
        page = self._require()
        names = await asyncio.to_thread(page.enumerate_printers)
        return [str(name) for name in names]

    async def print_receipt(self, printer: PrinterInfo, receipt: Receipt) -> None:
        page = self._require()
        await self._lock.acquire()
        work = asyncio.ensure_future(
            asyncio.to_thread(self._renderer.render, receipt, page, printer.name)
        )
        try:
            ok = await asyncio.wait_for(asyncio.shield(work), self.call_timeout)
        except asyncio.TimeoutError as e:
            raise PrintTimeoutError(
                f"Print control timed out after {self.call_timeout:.0f}s on {printer.name}"
            ) from e
        finally:
            # The handle stays locked until the worker thread is done with it
            work.add_done_callback(lambda _: self._lock.release())

        if not ok:
            raise PrintError(f"Print control rejected the job for {printer.name}")
        logger.info(f"Receipt {receipt.order_id} submitted to {printer.name} via page control")

    def _require(self) -> PageComposer:
        if self.page is None:
            raise EngineUnavailableError("No print control available", hint=self.install_hint)
        return self.page

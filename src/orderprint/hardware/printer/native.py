"""OS-native raw print engine.

Sends ESC/POS bytes through a raw print capability supplied by the
host. The default capability uses CUPS (`lp -o raw`, `lpstat`) and
writes straight to USB printer device files such as /dev/usb/lp0.
"""

import asyncio
import glob
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from orderprint.hardware.base import TextEngine
from orderprint.printing.errors import EngineUnavailableError, PrintError, PrintTimeoutError
from orderprint.printing.escpos import EscPosRenderer

logger = logging.getLogger(__name__)

DEVICE_PREFIX = "/dev/"


@runtime_checkable
class RawPrinter(Protocol):
    """Host capability for raw printing; methods may block."""

    def is_available(self) -> bool:
        ...

    def list_printers(self) -> List[str]:
        ...

    def print_raw(self, printer_name: str, data: bytes) -> None:
        ...


class CupsRawPrinter:
    """Raw printing through the CUPS command line tools."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which("lp") is not None or bool(self._device_files())

    def list_printers(self) -> List[str]:
        """Default CUPS destination first, then the rest, then device files."""
        names: List[str] = []
        if shutil.which("lpstat") is not None:
            default_name = ""
            try:
                result = subprocess.run(
                    ["lpstat", "-d"], capture_output=True, text=True, timeout=self.timeout,
                )
                # "system default destination: PrinterName"
                if result.returncode == 0 and ":" in result.stdout:
                    default_name = result.stdout.strip().split(":")[-1].strip()
            except (subprocess.TimeoutExpired, OSError) as e:
                logger.debug(f"lpstat -d failed: {e}")

            try:
                result = subprocess.run(
                    ["lpstat", "-p"], capture_output=True, text=True, timeout=self.timeout,
                )
                if result.returncode == 0:
                    for line in result.stdout.strip().splitlines():
                        # "printer PrinterName is idle." or similar
                        parts = line.split()
                        if len(parts) >= 2 and parts[0] == "printer":
                            names.append(parts[1])
            except (subprocess.TimeoutExpired, OSError) as e:
                logger.warning(f"lpstat -p failed: {e}")

            if default_name in names:
                names.remove(default_name)
                names.insert(0, default_name)

        return names + self._device_files()

    def print_raw(self, printer_name: str, data: bytes) -> None:
        """Print bytes unmodified on a CUPS queue or device file.

        Raises:
            PrintTimeoutError: lp did not finish in time
            PrintError: The job was rejected
        """
        if printer_name.startswith(DEVICE_PREFIX):
            try:
                with open(printer_name, "wb") as device:
                    device.write(data)
                    device.flush()
            except OSError as e:
                raise PrintError(f"Cannot write to {printer_name}: {e}") from e
            return

        if shutil.which("lp") is None:
            raise EngineUnavailableError(
                "lp command not found",
                hint="Install CUPS (Debian/Ubuntu: sudo apt install cups)",
            )

        with tempfile.TemporaryDirectory(prefix="orderprint-") as tmp:
            job_file = Path(tmp) / "job.bin"
            job_file.write_bytes(data)
            try:
                result = subprocess.run(
                    ["lp", "-d", printer_name, "-o", "raw", str(job_file)],
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise PrintTimeoutError(f"lp timed out after {self.timeout:.0f}s") from e

        if result.returncode != 0:
            raise PrintError(f"lp failed: {result.stderr.strip() or result.returncode}")

    @staticmethod
    def _device_files() -> List[str]:
        return sorted(glob.glob("/dev/usb/lp*"))


class NativeEngine(TextEngine):
    """Print engine over an injected raw print capability."""

    name = "native"
    install_hint = "Install CUPS or connect a USB receipt printer"

    def __init__(
        self,
        raw_printer: Optional[RawPrinter] = None,
        renderer: Optional[EscPosRenderer] = None,
    ):
        """Initialize the native engine.

        Args:
            raw_printer: Host raw print capability, None if the host has none
            renderer: ESC/POS renderer for outgoing jobs
        """
        super().__init__(renderer)
        self.raw_printer = raw_printer

    async def _probe(self) -> bool:
        if self.raw_printer is None:
            return False
        return await asyncio.to_thread(self.raw_printer.is_available)

    async def list_printers(self) -> List[str]:
        return await asyncio.to_thread(self._require().list_printers)

    async def send(self, printer_name: str, data: bytes) -> None:
        await asyncio.to_thread(self._require().print_raw, printer_name, data)

    def _require(self) -> RawPrinter:
        if self.raw_printer is None:
            raise EngineUnavailableError("No native print capability", hint=self.install_hint)
        return self.raw_printer

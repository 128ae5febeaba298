"""Compiled helper print engine.

Drives the native `printer-engine` helper executable over its command
line interface. The helper owns the OS printing APIs; this side only
sends it ready-rendered ESC/POS bytes.

Helper protocol:
- `printer-engine --version`                 -> version string, exit 0
- `printer-engine list-printers`             -> JSON array of printer names
- `printer-engine print-raw --printer NAME --file PATH`
                                             -> JSON {"success": bool, "message": str}

Override the helper location with ORDERPRINT_ENGINE__HELPER_PATH.
"""

import asyncio
import json
import logging
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

from orderprint.hardware.base import TextEngine
from orderprint.printing.errors import EngineUnavailableError, PrintError, PrintTimeoutError
from orderprint.printing.escpos import EscPosRenderer

logger = logging.getLogger(__name__)

HELPER_NAME = "printer-engine.exe" if sys.platform == "win32" else "printer-engine"


def find_helper(configured: Optional[str] = None) -> Optional[Path]:
    """Locate the helper executable.

    Checks in order:
    1. Configured path
    2. PATH
    3. Current working directory
    4. Next to the Python interpreter

    Returns:
        Path to the helper, or None if not found
    """
    if configured:
        path = Path(configured).expanduser()
        return path if path.is_file() else None

    on_path = shutil.which(HELPER_NAME)
    if on_path:
        return Path(on_path)

    for candidate in (Path.cwd() / HELPER_NAME, Path(sys.executable).parent / HELPER_NAME):
        if candidate.is_file():
            return candidate
    return None


class HelperEngine(TextEngine):
    """Print engine backed by the compiled helper process."""

    name = "helper"
    install_hint = "Install the printer-engine helper or set ORDERPRINT_ENGINE__HELPER_PATH"

    def __init__(
        self,
        helper_path: Optional[str] = None,
        call_timeout: float = 10.0,
        probe_timeout: float = 5.0,
        renderer: Optional[EscPosRenderer] = None,
    ):
        """Initialize the helper engine.

        Args:
            helper_path: Explicit helper location, searched for if None
            call_timeout: Limit for list/print calls in seconds
            probe_timeout: Limit for the availability probe in seconds
            renderer: ESC/POS renderer for outgoing jobs
        """
        super().__init__(renderer)
        self._configured_path = helper_path
        self._path: Optional[Path] = None
        self.call_timeout = call_timeout
        self.probe_timeout = probe_timeout

    @property
    def cache_key(self) -> str:
        return f"{self.name}:{self._configured_path or HELPER_NAME}"

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = find_helper(self._configured_path)
        if self._path is None:
            raise EngineUnavailableError("printer-engine helper not found", hint=self.install_hint)
        return self._path

    async def _probe(self) -> bool:
        try:
            result = await self._run(["--version"], timeout=self.probe_timeout)
        except PrintError as e:
            logger.info(f"Helper probe failed: {e}")
            return False
        logger.info(f"printer-engine helper: {result.stdout.strip() or 'unknown version'}")
        return True

    async def list_printers(self) -> List[str]:
        result = await self._run(["list-printers"], timeout=self.call_timeout)
        try:
            names = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise PrintError(f"Helper returned invalid printer list: {e}") from e
        if not isinstance(names, list):
            raise PrintError("Helper returned invalid printer list")
        return [str(name) for name in names]

    async def send(self, printer_name: str, data: bytes) -> None:
        """Write the job to a private temp file and hand it to the helper."""
        with tempfile.TemporaryDirectory(prefix="orderprint-") as tmp:
            job_file = Path(tmp) / "job.bin"
            job_file.write_bytes(data)
            result = await self._run(
                ["print-raw", "--printer", printer_name, "--file", str(job_file)],
                timeout=self.call_timeout,
            )

        response = self._parse_response(result.stdout)
        if not response.get("success"):
            raise PrintError(response.get("message") or "Helper rejected the job")
        logger.debug(f"Helper: {response.get('message', 'ok')}")

    async def _run(self, args: List[str], timeout: float) -> subprocess.CompletedProcess:
        """Run a helper command in a worker thread.

        Raises:
            EngineUnavailableError: Helper missing or not executable
            PrintTimeoutError: Command exceeded the timeout
            PrintError: Non-zero exit status
        """
        cmd = [str(self.path), *args]
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise PrintTimeoutError(f"printer-engine {args[0]} timed out after {timeout:.0f}s") from e
        except OSError as e:
            raise EngineUnavailableError(f"Cannot run printer-engine: {e}", hint=self.install_hint) from e

        if result.returncode != 0:
            message = (result.stderr or result.stdout).strip() or f"exit status {result.returncode}"
            raise PrintError(f"printer-engine {args[0]} failed: {message}")
        return result

    @staticmethod
    def _parse_response(stdout: str) -> dict:
        try:
            response = json.loads(stdout)
        except json.JSONDecodeError:
            # Older helpers answer in plain text
            return {"success": True, "message": stdout.strip()}
        return response if isinstance(response, dict) else {"success": bool(response)}

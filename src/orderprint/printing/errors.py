"""Printing errors."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orderprint.printing.dispatcher import PrintReport


class PrintError(RuntimeError):
    """A single printer could not print the job."""


class EngineUnavailableError(PrintError):
    """The print backend is not installed or not reachable."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


class PrintTimeoutError(PrintError):
    """A bounded backend call did not finish in time."""


class PrintJobError(RuntimeError):
    """The job failed on every target printer."""

    def __init__(self, message: str, report: "PrintReport | None" = None) -> None:
        super().__init__(message)
        self.report = report


class NoPrintersSelectedError(PrintJobError):
    """A job was started with no target printers."""

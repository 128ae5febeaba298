"""Receipt layout and rendering for orderprint.

The dispatcher and print manager live in their own modules
(orderprint.printing.dispatcher, orderprint.printing.manager) since
they depend on the engines in orderprint.hardware.
"""

from orderprint.printing.directory import PrinterDirectory, PrinterInfo, classify_printer
from orderprint.printing.errors import (
    EngineUnavailableError,
    NoPrintersSelectedError,
    PrintError,
    PrintJobError,
    PrintTimeoutError,
)
from orderprint.printing.escpos import EscPosRenderer
from orderprint.printing.layout import LayoutConfig, LayoutParameters, resolve_layout
from orderprint.printing.order import Dish, Order
from orderprint.printing.page import PageComposer, PageRenderer
from orderprint.printing.receipt import LineRole, Receipt, ReceiptComposer, ReceiptLine, compose_receipt

__all__ = [
    # Data
    "Order",
    "Dish",
    # Layout
    "LayoutConfig",
    "LayoutParameters",
    "resolve_layout",
    # Receipt
    "LineRole",
    "Receipt",
    "ReceiptLine",
    "ReceiptComposer",
    "compose_receipt",
    # Renderers
    "EscPosRenderer",
    "PageComposer",
    "PageRenderer",
    # Printers
    "PrinterDirectory",
    "PrinterInfo",
    "classify_printer",
    # Errors
    "PrintError",
    "EngineUnavailableError",
    "PrintTimeoutError",
    "PrintJobError",
    "NoPrintersSelectedError",
]

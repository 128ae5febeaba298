"""Page-composition renderer.

Places every receipt line as an absolutely positioned text item on a
page-composition capability (a vendor print control exposing
begin/place/style/submit calls). Positions are in millimetres.
"""

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence, Union, runtime_checkable

from orderprint.printing.receipt import Receipt
from orderprint.printing.styles import style_for

logger = logging.getLogger(__name__)

MIN_PAGE_HEIGHT_MM = 80.0

ALIGN_LEFT = 1

StyleValue = Union[int, str]


@runtime_checkable
class PageComposer(Protocol):
    """Capability handle for page-composition printing."""

    def enumerate_printers(self) -> List[str]:
        ...

    def begin_page(self, width: float, height: float, title: str) -> None:
        ...

    def select_printer(self, name: str) -> None:
        ...

    def place_text(self, top: float, left: float, width: float, height: float, text: str) -> None:
        ...

    def set_style(self, index: int, prop: str, value: StyleValue) -> None:
        ...

    def submit(self) -> bool:
        ...


@dataclass(frozen=True)
class TextPlacement:
    """One positioned text item on the page."""

    index: int
    top: float
    left: float
    width: float
    height: float
    text: str
    font_size: int
    bold: bool


class PageRenderer:
    """Lays out receipts as page placements."""

    def plan(self, receipt: Receipt) -> List[TextPlacement]:
        """Compute placements for a receipt without touching any capability.

        Non-blank lines advance the running offset by one line height,
        blank lines by half of it.
        """
        params = receipt.params
        y = params.margin_top
        placements: List[TextPlacement] = []

        for line in receipt.lines:
            if line.is_blank:
                y += params.line_height / 2
                continue

            style = style_for(line.role)
            placements.append(TextPlacement(
                index=len(placements) + 1,
                top=round(y, 2),
                left=params.margin_left,
                width=params.text_area_width,
                height=params.line_height,
                text=line.text,
                font_size=style.font_points(params),
                bold=style.bold,
            ))
            y += params.line_height

        return placements

    def page_height(self, receipt: Receipt) -> float:
        """Estimated page height in mm, never below the minimum page."""
        params = receipt.params
        blank = sum(1 for line in receipt.lines if line.is_blank)
        filled = len(receipt.lines) - blank
        height = (
            filled * params.line_height
            + blank * params.line_height / 2
            + params.margin_top
            + params.margin_bottom
        )
        return max(height, MIN_PAGE_HEIGHT_MM)

    def render(self, receipt: Receipt, page: PageComposer, printer_name: str) -> bool:
        """Compose the receipt on the page capability and submit it.

        Args:
            receipt: The composed receipt
            page: Page-composition capability
            printer_name: Target printer as enumerated by the capability

        Returns:
            Whatever the capability's submit reports
        """
        params = receipt.params
        placements = self.plan(receipt)

        page.begin_page(params.paper_width, self.page_height(receipt), f"Order-{receipt.order_id}")
        page.select_printer(printer_name)
        self.apply(placements, page)

        logger.debug(f"Submitting {len(placements)} placements to {printer_name}")
        return bool(page.submit())

    @staticmethod
    def apply(placements: Sequence[TextPlacement], page: PageComposer) -> None:
        for item in placements:
            page.place_text(item.top, item.left, item.width, item.height, item.text)
            page.set_style(item.index, "FontSize", item.font_size)
            page.set_style(item.index, "Bold", 1 if item.bold else 0)
            page.set_style(item.index, "Alignment", ALIGN_LEFT)

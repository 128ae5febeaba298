"""ESC/POS renderer for composed receipts.

Converts a Receipt into the byte stream sent to raw thermal printers:
initialize, character set selection, per-line size and emphasis
commands, text, feed and paper cut. Output depends only on the receipt
and the renderer settings.
"""

import logging
from typing import List, Optional, Tuple

from orderprint.printing.layout import FONT_LARGE, FONT_MEDIUM
from orderprint.printing.receipt import Receipt, ReceiptLine
from orderprint.printing.styles import FontTier, LineStyle, style_for
from orderprint.printing.width import pad

logger = logging.getLogger(__name__)


class EscPosRenderer:
    """Renders Receipt objects to ESC/POS command bytes.

    Text is encoded with a configurable codec (GB18030 by default so
    Chinese dish names print on CJK-firmware printers).
    """

    # ESC/POS command constants
    ESC = b'\x1b'
    GS = b'\x1d'
    FS = b'\x1c'
    LF = b'\x0a'

    def __init__(
        self,
        encoding: str = "gb18030",
        code_page: Optional[int] = None,
        cjk_mode: bool = True,
        line_spacing: int = 0x30,
        feed_lines: int = 4,
        partial_cut: bool = False,
    ):
        """Initialize the renderer.

        Args:
            encoding: Python codec used for line text
            code_page: ESC t code page number, or None to leave the default
            cjk_mode: Enable the printer's Chinese character mode (FS &)
            line_spacing: ESC 3 line spacing in dots
            feed_lines: Lines fed before the cut
            partial_cut: Partial instead of full paper cut
        """
        self.encoding = encoding
        self.code_page = code_page
        self.cjk_mode = cjk_mode
        self.line_spacing = line_spacing
        self.feed_lines = feed_lines
        self.partial_cut = partial_cut

    def render(self, receipt: Receipt) -> bytes:
        """Render a receipt to printer commands.

        Args:
            receipt: The composed receipt

        Returns:
            ESC/POS command bytes ready to send to printer
        """
        font_size = receipt.params.font_size
        commands = [self._cmd_init()]

        if self.code_page is not None:
            commands.append(self._cmd_code_page(self.code_page))
        if self.cjk_mode:
            commands.append(self._cmd_cjk_mode())
        commands.append(self._cmd_line_spacing(self.line_spacing))
        commands.append(self._cmd_align_left())

        current: Optional[Tuple[int, bool]] = None
        for line in receipt.lines:
            if line.is_blank:
                commands.append(self.LF)
                continue

            style = style_for(line.role)
            state = (self.size_byte(style, font_size), style.bold)
            if state != current:
                commands.append(self._cmd_text_size(state[0]))
                commands.append(self._cmd_bold(state[1]))
                current = state

            commands.append(self._encode(line.text))
            commands.append(self.LF)

        # Reset formatting before feeding
        commands.append(self._cmd_text_size(0))
        commands.append(self._cmd_bold(False))
        commands.append(self._cmd_feed(self.feed_lines))
        commands.append(self._cmd_cut())

        data = b''.join(commands)
        logger.debug(f"Rendered receipt {receipt.order_id}: {len(data)} bytes")
        return data

    @staticmethod
    def size_byte(style: LineStyle, font_size: int) -> int:
        """GS ! argument for a style at the printer's font tier.

        The printer tier sets the base magnification (small 1x1,
        medium 1x2, large 2x2); title lines get one extra step of
        height so they never change the column grid. GS ! only scales
        by whole multiples, so item lines print at the normal size;
        the item tier shows up as a larger point size on page output
        only.
        """
        width_mult, height_mult = 1, 1
        if font_size == FONT_MEDIUM:
            height_mult = 2
        elif font_size >= FONT_LARGE:
            width_mult, height_mult = 2, 2
        if style.tier == FontTier.TITLE:
            height_mult += 1
        return ((width_mult - 1) << 4) | (height_mult - 1)

    def _encode(self, text: str) -> bytes:
        return text.encode(self.encoding, errors="replace")

    def _cmd_init(self) -> bytes:
        """Initialize printer command."""
        return self.ESC + b'@'

    def _cmd_code_page(self, page: int) -> bytes:
        return self.ESC + b't' + bytes([page & 0xFF])

    def _cmd_cjk_mode(self) -> bytes:
        return self.FS + b'&'

    def _cmd_line_spacing(self, dots: int) -> bytes:
        return self.ESC + b'3' + bytes([dots & 0xFF])

    def _cmd_align_left(self) -> bytes:
        return self.ESC + b'a' + b'\x00'

    def _cmd_text_size(self, size: int) -> bytes:
        """GS ! n - Select character size."""
        return self.GS + b'!' + bytes([size & 0xFF])

    def _cmd_bold(self, enabled: bool) -> bytes:
        """Set bold mode."""
        return self.ESC + b'E' + (b'\x01' if enabled else b'\x00')

    def _cmd_feed(self, lines: int) -> bytes:
        """ESC d n - Feed n lines."""
        return self.ESC + b'd' + bytes([max(0, min(lines, 255))])

    def _cmd_cut(self) -> bytes:
        """GS V m - m = 0 full cut, m = 1 partial cut."""
        return self.GS + b'V' + (b'\x01' if self.partial_cut else b'\x00')

    def preview_text(self, receipt: Receipt) -> str:
        """Generate a text preview of the receipt.

        Args:
            receipt: The composed receipt

        Returns:
            Boxed plain-text rendering, one receipt line per row
        """
        width = receipt.params.total_columns
        lines: List[str] = ["+" + "-" * width + "+"]
        for line in receipt.lines:
            lines.append("|" + self._preview_line(line, width) + "|")
        lines.append("+" + "-" * width + "+")
        return "\n".join(lines)

    @staticmethod
    def _preview_line(line: ReceiptLine, width: int) -> str:
        return pad("" if line.is_blank else line.text, width)

"""Tests for the page-composition renderer."""

import pytest

from orderprint.printing.layout import resolve_layout
from orderprint.printing.page import MIN_PAGE_HEIGHT_MM, PageComposer, PageRenderer
from orderprint.printing.order import demo_order
from orderprint.printing.receipt import LineRole, Receipt, ReceiptLine, compose_receipt


def small_receipt():
    return Receipt(
        order_id="7",
        params=resolve_layout(80),
        lines=[
            ReceiptLine(LineRole.ORDER_ID, "#7"),
            ReceiptLine(LineRole.BLANK),
            ReceiptLine(LineRole.FEE, "Subtotal"),
        ],
    )


class TestPlan:
    def test_offsets(self):
        """Blank lines advance half a line height and get no placement."""
        placements = PageRenderer().plan(small_receipt())
        assert [p.top for p in placements] == [3.0, 9.0]
        assert [p.index for p in placements] == [1, 2]

    def test_fonts_and_bold(self):
        title, fee = PageRenderer().plan(small_receipt())
        assert (title.font_size, title.bold) == (14, True)
        assert (fee.font_size, fee.bold) == (12, False)

    def test_geometry(self):
        placement = PageRenderer().plan(small_receipt())[0]
        assert placement.left == pytest.approx(0.8)
        assert placement.width == pytest.approx(78.4)
        assert placement.height == 4.0


class TestPageHeight:
    def test_minimum(self):
        assert PageRenderer().page_height(small_receipt()) == MIN_PAGE_HEIGHT_MM

    def test_long_receipt(self):
        receipt = compose_receipt(demo_order(), resolve_layout(80))
        blank = sum(1 for line in receipt.lines if line.is_blank)
        filled = len(receipt.lines) - blank
        expected = filled * 4.0 + blank * 2.0 + 6.0
        assert expected > MIN_PAGE_HEIGHT_MM
        assert PageRenderer().page_height(receipt) == pytest.approx(expected)


class TestRender:
    def test_fake_page_satisfies_protocol(self, fake_page):
        assert isinstance(fake_page, PageComposer)

    def test_call_order(self, fake_page):
        """Page is begun and targeted before any text is placed."""
        assert PageRenderer().render(small_receipt(), fake_page, "Receipt-80") is True

        names = [call[0] for call in fake_page.calls]
        assert names[0] == "begin_page"
        assert names[1] == "select_printer"
        assert names[-1] == "submit"
        assert fake_page.calls[0] == ("begin_page", 80, MIN_PAGE_HEIGHT_MM, "Order-7")
        assert fake_page.calls[1] == ("select_printer", "Receipt-80")
        assert len(fake_page.calls_named("place_text")) == 2

    def test_styles_per_placement(self, fake_page):
        PageRenderer().render(small_receipt(), fake_page, "Receipt-80")
        styles = fake_page.calls_named("set_style")
        assert ("set_style", 1, "FontSize", 14) in styles
        assert ("set_style", 1, "Bold", 1) in styles
        assert ("set_style", 2, "Bold", 0) in styles
        assert all(value == 1 for _, _, prop, value in styles if prop == "Alignment")

    def test_submit_result(self, fake_page):
        fake_page.accept = False
        assert PageRenderer().render(small_receipt(), fake_page, "Receipt-80") is False

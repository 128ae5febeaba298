"""Tests for the receipt composer."""

from decimal import Decimal

import pytest

from orderprint.printing.layout import resolve_layout
from orderprint.printing.order import Order, demo_order
from orderprint.printing.receipt import (
    LineRole,
    ReceiptComposer,
    compose_receipt,
    format_money,
    format_rate,
    format_timestamp,
)
from orderprint.printing.width import display_width

FEE_ROLES = (LineRole.FEE, LineRole.TOTAL)


def fee_section(receipt):
    return [line for line in receipt.lines if line.role in FEE_ROLES]


class TestFormatting:
    @pytest.mark.parametrize("amount,expected", [
        (Decimal("18.99"), "$18.99"),
        (Decimal("5"), "$5.00"),
        (Decimal("1.005"), "$1.01"),
        (Decimal("-5.00"), "-$5.00"),
        (Decimal("-0.001"), "$0.00"),
        (Decimal("1234.5"), "$1234.50"),
        (Decimal("1.5E+30"), "$1500000000000000000000000000000.00"),
    ])
    def test_money(self, amount, expected):
        assert format_money(amount) == expected

    @pytest.mark.parametrize("rate,expected", [
        (Decimal("0.0825"), "8.3"),
        (Decimal("0.035"), "3.5"),
        (Decimal("0.1"), "10.0"),
        (Decimal("0.08875"), "8.9"),
    ])
    def test_rate(self, rate, expected):
        assert format_rate(rate) == expected

    @pytest.mark.parametrize("value,expected", [
        ("2025-01-15 18:30:00", "01/15/2025 06:30 PM"),
        ("2025-01-15T09:05:00Z", "01/15/2025 09:05 AM"),
        ("", "N/A"),
        ("ASAP", "ASAP"),
        ("²", "²"),
    ])
    def test_timestamp(self, value, expected):
        assert format_timestamp(value) == expected


class TestEndToEnd:
    def test_mapo_tofu_80mm(self, mapo_order):
        """Order id, item row, tax row and total on 80mm paper."""
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        texts = [line.text for line in receipt.lines]

        assert "#23410121749595834" in texts
        assert receipt.lines[0].role == LineRole.ORDER_ID

        items = receipt.lines_with_role(LineRole.ITEM)
        assert len(items) == 1
        assert items[0].text.startswith("Mapo Tofu")
        assert items[0].text.endswith("18.99")

        tax = [line for line in fee_section(receipt) if line.text.startswith("Tax (8.3%)")]
        assert len(tax) == 1
        assert tax[0].text.endswith("$1.57")

        total = receipt.lines_with_role(LineRole.TOTAL)
        assert len(total) == 1
        assert total[0].text.startswith("TOTAL")
        assert total[0].text.endswith("$20.56")

    def test_58_vs_80(self, mapo_order):
        """Different grids, same money and same line structure."""
        narrow = compose_receipt(mapo_order, resolve_layout(58))
        wide = compose_receipt(mapo_order, resolve_layout(80))

        assert narrow.params.total_columns == 24
        assert wide.params.total_columns == 34
        assert narrow.roles == wide.roles

        def amounts(receipt):
            return [line.text.split()[-1] for line in fee_section(receipt)]

        assert amounts(narrow) == amounts(wide) == ["$18.99", "$1.57", "$20.56"]

    def test_item_row_fills_line(self, mapo_order):
        """Item rows are exactly as wide as the paper grid."""
        for width in (58, 80):
            receipt = compose_receipt(mapo_order, resolve_layout(width))
            row = receipt.lines_with_role(LineRole.ITEM)[0]
            assert display_width(row.text) == receipt.params.total_columns


class TestSections:
    def test_section_order(self, mapo_order):
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        roles = receipt.roles
        assert roles[:3] == [LineRole.ORDER_ID, LineRole.HEADER, LineRole.SEPARATOR]
        assert roles.index(LineRole.TABLE_HEADER) < roles.index(LineRole.ITEM) < roles.index(LineRole.FEE)
        assert roles.index(LineRole.FEE) < roles.index(LineRole.TOTAL)
        assert receipt.lines[1].text == "PICKUP"

    def test_only_subtotal_and_total_when_fees_zero(self):
        """Zero fees produce exactly two fee-section lines."""
        order = Order.from_dict({
            "order_id": "1",
            "dishes_array": [{"name": "Tea", "price": "3.00"}],
            "sub_total": "3.00",
            "total": "3.00",
            "tax_rate": "0.0825",
            "convenience_rate": "0.03",
        })
        lines = fee_section(compose_receipt(order, resolve_layout(80)))
        assert len(lines) == 2
        assert lines[0].text.startswith("Subtotal")
        assert lines[1].text.startswith("TOTAL")

    def test_all_fees(self):
        order = demo_order()
        order.exemption = Decimal("1.00")
        order.retail_delivery_fee = Decimal("0.27")
        receipt = compose_receipt(order, resolve_layout(80))
        labels = [line.text.split("  ")[0].strip() for line in receipt.lines_with_role(LineRole.FEE)]
        assert labels == [
            "Subtotal",
            "Discount",
            "Exemption",
            "Tax (8.3%)",
            "Delivery Fee",
            "Retail Delivery Fee",
            "Service Fee (3.5%)",
            "Tip",
        ]

    def test_discount_is_negated(self):
        receipt = compose_receipt(demo_order(), resolve_layout(80))
        discount = [line for line in receipt.lines if line.text.startswith("Discount")]
        assert discount[0].text.endswith("-$5.00")

    def test_plain_tax_label_without_rate(self):
        order = Order.from_dict({"order_id": "1", "tax_fee": "1.00"})
        receipt = compose_receipt(order, resolve_layout(80))
        assert any(line.text.startswith("Tax ") and "(" not in line.text
                   for line in receipt.lines_with_role(LineRole.FEE))

    def test_notes_section(self):
        receipt = compose_receipt(demo_order(), resolve_layout(58))
        notes = receipt.lines_with_role(LineRole.NOTE)
        assert notes[0].text == "Notes:"
        assert all(line.text.startswith("  ") for line in notes[1:])
        assert all(display_width(line.text) <= 24 for line in notes)

    def test_no_notes_section_when_empty(self, mapo_order):
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        assert receipt.lines_with_role(LineRole.NOTE) == []

    def test_footer(self, mapo_order):
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        footer = receipt.lines_with_role(LineRole.FOOTER)
        assert [line.text.strip() for line in footer] == ["Thank you!"]
        assert receipt.lines[-1].role == LineRole.BLANK

    def test_custom_footer(self, mapo_order):
        receipt = ReceiptComposer(resolve_layout(80), footer_text="").compose(mapo_order)
        assert receipt.lines_with_role(LineRole.FOOTER) == []


class TestFields:
    def test_pickup_hides_address(self):
        order = Order.from_dict({"order_id": "1", "delivery_style": 0, "recipient_address": "1 Main St"})
        text = compose_receipt(order, resolve_layout(80)).text
        assert "Pickup Time:" in text
        assert "Address:" not in text

    def test_delivery_shows_address_and_distance(self):
        order = Order.from_dict({
            "order_id": "1",
            "delivery_style": 1,
            "recipient_address": "1 Main St",
            "recipient_distance": "2.5",
        })
        text = compose_receipt(order, resolve_layout(80)).text
        assert "DELIVERY" in text
        assert "Delivery Time:" in text
        assert "2.5 miles" in text
        assert "1 Main St" in text

    def test_long_address_wraps_under_label(self):
        """A value that does not fit moves below its label, indented."""
        order = demo_order()
        order.delivery_style = "delivery"
        receipt = compose_receipt(order, resolve_layout(58))
        fields = receipt.lines_with_role(LineRole.FIELD)
        index = next(i for i, line in enumerate(fields) if line.text == "Address:")
        continuation = fields[index + 1:]
        assert continuation[0].text.startswith("  ")
        joined = "".join(line.text[2:] for line in continuation
                         if line.text.startswith("  ") and not line.text.startswith("Email"))
        assert joined.startswith("北京市朝阳区望京街道 123号")

    def test_inline_field_is_right_aligned(self, mapo_order):
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        payment = next(line for line in receipt.lines if line.text.startswith("Payment:"))
        assert payment.text.endswith("Other")
        assert display_width(payment.text) == 34

    @pytest.mark.parametrize("paystyle,text", [(0, "Pay at store"), (1, "Online payment"), (5, "Other")])
    def test_payment_text(self, paystyle, text):
        order = Order.from_dict({"order_id": "1", "paystyle": paystyle})
        assert text in compose_receipt(order, resolve_layout(80)).text

    def test_missing_customer_is_na(self, mapo_order):
        text = compose_receipt(mapo_order, resolve_layout(80)).text
        customer = next(line for line in text.splitlines() if line.startswith("Customer:"))
        assert customer.endswith("N/A")

    def test_serial_number(self):
        text = compose_receipt(demo_order(), resolve_layout(80)).text
        assert "Serial: #042" in text


class TestDishes:
    def test_long_name_wraps_with_blank_columns(self):
        order = Order.from_dict({
            "order_id": "1",
            "dishes_array": [{"dishes_name": "宫保鸡丁 (Kung Pao Chicken) Family Size", "amount": 2, "price": "23.98"}],
        })
        receipt = compose_receipt(order, resolve_layout(58))
        item = receipt.lines_with_role(LineRole.ITEM)[0]
        continuation = receipt.lines_with_role(LineRole.ITEM_CONTINUATION)
        assert item.text.endswith("$23.98")
        assert continuation
        for line in continuation:
            assert display_width(line.text) == 24
            assert line.text[-10:].strip() == ""

    def test_description_and_remark(self):
        receipt = compose_receipt(demo_order(), resolve_layout(80))
        details = [line.text for line in receipt.lines_with_role(LineRole.ITEM_DETAIL)]
        assert any(text.startswith("  + ") for text in details)
        assert any(text.startswith("  Note: ") for text in details)
        assert all(display_width(text) <= 2 + receipt.params.name_width - 2 for text in details)

    def test_blank_line_after_each_dish(self):
        order = demo_order()
        receipt = compose_receipt(order, resolve_layout(80))
        roles = receipt.roles
        first_fee = roles.index(LineRole.FEE)
        dish_blanks = [r for r in roles[:first_fee] if r == LineRole.BLANK]
        assert len(dish_blanks) == len(order.dishes)

    def test_large_price_is_not_truncated(self):
        order = Order.from_dict({
            "order_id": "1",
            "dishes_array": [{"name": "Catering Tray", "amount": 1, "price": "12345.67"}],
        })
        receipt = compose_receipt(order, resolve_layout(58))
        item = receipt.lines_with_role(LineRole.ITEM)[0]
        assert item.text.endswith("$12345.67")
        assert display_width(item.text) == 24

    def test_no_dishes_still_composes(self):
        receipt = compose_receipt(Order(order_id="X"), resolve_layout(80))
        assert receipt.lines_with_role(LineRole.ITEM) == []
        assert receipt.lines_with_role(LineRole.TOTAL)


class TestMalformedOrders:
    def test_non_ascii_digit_timestamp(self, mapo_order):
        """Digit-like characters that are not numbers are shown as given."""
        mapo_order.create_time = "²"
        receipt = compose_receipt(mapo_order, resolve_layout(80))
        assert receipt.lines_with_role(LineRole.TOTAL)

    def test_huge_amount_composes(self):
        order = Order.from_dict({"order_id": "1", "sub_total": "1e30", "total": "1e30"})
        receipt = compose_receipt(order, resolve_layout(80))
        subtotal = next(line for line in fee_section(receipt) if line.text.startswith("Subtotal"))
        assert subtotal.text.endswith("$0.00")

    def test_huge_quantity_composes(self):
        order = Order.from_dict({
            "order_id": "1",
            "dishes_array": [{"name": "Tea", "amount": 10 ** 20, "unit_price": "999999999999.99"}],
        })
        receipt = compose_receipt(order, resolve_layout(80))
        assert receipt.lines_with_role(LineRole.ITEM)[0].text.endswith(".00")

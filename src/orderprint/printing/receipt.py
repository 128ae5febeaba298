"""Receipt composer for restaurant orders.

Turns an Order plus resolved LayoutParameters into an ordered list of
typed receipt lines:
- Order number and fulfillment type
- Order details (times, payment, customer)
- Item table
- Payment summary and total
- Notes and footer

Every line is already padded/wrapped to the paper's character grid;
the role tag tells the render backends which font and emphasis to use.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import List, Optional

from orderprint.printing.layout import LayoutParameters
from orderprint.printing.order import ZERO, Dish, Order, parse_money
from orderprint.printing.width import Align, center, display_width, pad, sanitize, wrap

logger = logging.getLogger(__name__)

DEFAULT_FOOTER = "Thank you!"

PAYMENT_METHODS = {
    0: "Pay at store",
    1: "Online payment",
}

CENTS = Decimal("0.01")
TENTH = Decimal("0.1")


class LineRole(Enum):
    """Semantic role of a receipt line."""

    ORDER_ID = "order_id"
    HEADER = "header"
    FIELD = "field"
    SEPARATOR = "separator"
    SECTION = "section"
    TABLE_HEADER = "table_header"
    ITEM = "item"
    ITEM_CONTINUATION = "item_continuation"
    ITEM_DETAIL = "item_detail"
    FEE = "fee"
    TOTAL = "total"
    NOTE = "note"
    FOOTER = "footer"
    BLANK = "blank"


@dataclass(frozen=True)
class ReceiptLine:
    role: LineRole
    text: str = ""

    @property
    def is_blank(self) -> bool:
        return self.role == LineRole.BLANK or not self.text.strip()


@dataclass
class Receipt:
    """A composed receipt ready for any render backend."""

    order_id: str
    params: LayoutParameters
    lines: List[ReceiptLine] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)

    @property
    def roles(self) -> List[LineRole]:
        return [line.role for line in self.lines]

    def lines_with_role(self, role: LineRole) -> List[ReceiptLine]:
        return [line for line in self.lines if line.role == role]


def format_money(amount: Decimal) -> str:
    """Format an amount as $X.XX, negatives as -$X.XX."""
    with localcontext() as ctx:
        # Line totals (unit price x quantity) may exceed the default 28 digits
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        value = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${value.copy_abs()}"


def format_rate(rate: Decimal) -> str:
    """Format a fractional rate as a percentage with one decimal (0.0825 -> 8.3)."""
    return str((rate * 100).quantize(TENTH, rounding=ROUND_HALF_UP))


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse the timestamp formats seen in order payloads."""
    text = value.strip()
    if not text:
        return None

    if text.isascii() and text.replace(".", "", 1).isdigit():
        try:
            seconds = float(text)
            if seconds > 1e11:
                seconds /= 1000.0  # epoch milliseconds
            return datetime.fromtimestamp(seconds)
        except (OverflowError, OSError, ValueError):
            return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y/%m/%d %H:%M:%S", "%m/%d/%Y %H:%M"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_timestamp(value: str) -> str:
    """Render a timestamp as MM/DD/YYYY HH:MM AM.

    Unparsable values are shown as given, missing ones as N/A.
    """
    if not value or not value.strip():
        return "N/A"
    parsed = parse_timestamp(value)
    if parsed is None:
        return sanitize(value)
    return parsed.strftime("%m/%d/%Y %I:%M %p")


def payment_text(order: Order) -> str:
    if order.payment_method:
        return order.payment_method
    return PAYMENT_METHODS.get(order.paystyle, "Other")


class ReceiptComposer:
    """Composes typed receipt lines for one layout."""

    def __init__(self, params: LayoutParameters, footer_text: str = DEFAULT_FOOTER) -> None:
        self.params = params
        self.footer_text = footer_text

    @property
    def columns(self) -> int:
        return self.params.total_columns

    def compose(self, order: Order) -> Receipt:
        """Compose the full receipt for an order.

        Args:
            order: Parsed order record

        Returns:
            Receipt with lines in print order
        """
        lines: List[ReceiptLine] = []
        lines += self._header(order)
        lines += self._details(order)
        lines += self._items(order)
        lines += self._payment(order)
        lines += self._notes(order)
        lines += self._footer()

        if not order.dishes:
            logger.warning(f"Order {order.order_id} has no dishes")

        return Receipt(order_id=order.order_id, params=self.params, lines=lines)

    # --- sections -------------------------------------------------------

    def _header(self, order: Order) -> List[ReceiptLine]:
        lines = [ReceiptLine(LineRole.ORDER_ID, chunk)
                 for chunk in wrap(f"#{sanitize(order.order_id)}", self.columns)]
        lines.append(ReceiptLine(LineRole.HEADER, "DELIVERY" if order.is_delivery else "PICKUP"))
        if order.serial_num > 0:
            lines.append(ReceiptLine(LineRole.HEADER, f"Serial: #{order.serial_num:03d}"))
        lines.append(self._separator())
        return lines

    def _details(self, order: Order) -> List[ReceiptLine]:
        lines = self._field("Order Date:", format_timestamp(order.create_time))
        if order.is_delivery:
            lines += self._field("Delivery Time:", format_timestamp(order.delivery_time))
            if parse_money(order.recipient_distance) > 0:
                lines += self._field("Distance:", f"{order.recipient_distance} miles")
        else:
            lines += self._field("Pickup Time:", format_timestamp(order.delivery_time))

        lines += self._field("Payment:", payment_text(order))
        lines += self._field("Customer:", order.recipient_name)
        lines += self._field("Phone:", order.recipient_phone)
        if order.is_delivery:
            lines += self._field("Address:", order.recipient_address)
        if order.user_email:
            lines += self._field("Email:", order.user_email)
        return lines

    def _items(self, order: Order) -> List[ReceiptLine]:
        p = self.params
        header = (
            pad("Item", p.name_width)
            + pad("Qty", p.qty_width, Align.CENTER)
            + pad("Price", p.price_width, Align.RIGHT)
        )
        lines = [
            self._separator(),
            self._section("ORDER ITEMS"),
            self._separator(),
            ReceiptLine(LineRole.TABLE_HEADER, header),
            self._separator(),
        ]
        for dish in order.dishes:
            lines += self._dish(dish)
        return lines

    def _payment(self, order: Order) -> List[ReceiptLine]:
        lines = [
            self._separator(),
            self._section("PAYMENT SUMMARY"),
            self._separator(),
        ]
        lines += self._fee("Subtotal", order.sub_total)

        if abs(order.discount_total) > 0:
            lines += self._fee("Discount", -abs(order.discount_total))
        if abs(order.exemption) > 0:
            lines += self._fee("Exemption", -abs(order.exemption))
        if order.tax_fee > 0:
            lines += self._fee(self._rate_label("Tax", order.tax_rate), order.tax_fee)
        if order.delivery_fee > 0:
            lines += self._fee("Delivery Fee", order.delivery_fee)
        if order.retail_delivery_fee > 0:
            lines += self._fee("Retail Delivery Fee", order.retail_delivery_fee)
        if order.convenience_fee > 0:
            lines += self._fee(self._rate_label("Service Fee", order.convenience_rate),
                               order.convenience_fee)
        if order.tip_fee > 0:
            lines += self._fee("Tip", order.tip_fee)

        lines.append(self._separator("="))
        lines += self._fee("TOTAL", order.total, role=LineRole.TOTAL)
        return lines

    def _notes(self, order: Order) -> List[ReceiptLine]:
        notes = sanitize(order.order_notes)
        if not notes:
            return []
        lines = [self._separator(), ReceiptLine(LineRole.NOTE, "Notes:")]
        lines += [ReceiptLine(LineRole.NOTE, "  " + chunk)
                  for chunk in wrap(notes, max(self.columns - 2, 1))]
        return lines

    def _footer(self) -> List[ReceiptLine]:
        lines = [self._separator("=")]
        lines += [ReceiptLine(LineRole.FOOTER, center(chunk, self.columns))
                  for chunk in wrap(sanitize(self.footer_text), self.columns)]
        lines += [ReceiptLine(LineRole.BLANK), ReceiptLine(LineRole.BLANK)]
        return lines

    # --- rows -----------------------------------------------------------

    def _separator(self, char: str = "-") -> ReceiptLine:
        return ReceiptLine(LineRole.SEPARATOR, char * self.columns)

    def _section(self, title: str) -> ReceiptLine:
        return ReceiptLine(LineRole.SECTION, center(title, self.columns))

    def _field(self, label: str, value: str) -> List[ReceiptLine]:
        """Label on the left, value flush right; wraps when they don't fit."""
        value = sanitize(value) or "N/A"
        label_w = display_width(label)
        value_w = display_width(value)

        if label_w + value_w + self.params.min_gap <= self.columns:
            gap = self.columns - label_w - value_w
            return [ReceiptLine(LineRole.FIELD, label + " " * gap + value)]

        lines = [ReceiptLine(LineRole.FIELD, label)]
        lines += [ReceiptLine(LineRole.FIELD, "  " + chunk)
                  for chunk in wrap(value, max(self.columns - 2, 1))]
        return lines

    def _dish(self, dish: Dish) -> List[ReceiptLine]:
        p = self.params
        qty_text = str(dish.amount)
        price_text = format_money(dish.price)

        # Amounts are never truncated; oversized ones borrow from the name column
        qty_w = max(p.qty_width, display_width(qty_text))
        price_w = max(p.price_width, display_width(price_text))
        name_w = max(p.total_columns - qty_w - price_w, 1)

        name_lines = wrap(sanitize(dish.name), name_w) or [""]
        lines = [ReceiptLine(
            LineRole.ITEM,
            pad(name_lines[0], name_w) + pad(qty_text, qty_w, Align.CENTER)
            + pad(price_text, price_w, Align.RIGHT),
        )]
        blank_tail = " " * (qty_w + price_w)
        for chunk in name_lines[1:]:
            lines.append(ReceiptLine(LineRole.ITEM_CONTINUATION, pad(chunk, name_w) + blank_tail))

        detail_w = max(p.name_width - 2, 1)
        for prefix, text in (("+ ", dish.describe), ("Note: ", dish.remark)):
            text = sanitize(text)
            if text:
                lines += [ReceiptLine(LineRole.ITEM_DETAIL, "  " + chunk)
                          for chunk in wrap(prefix + text, detail_w)]

        lines.append(ReceiptLine(LineRole.BLANK))
        return lines

    def _fee(self, label: str, amount: Decimal, role: LineRole = LineRole.FEE) -> List[ReceiptLine]:
        """Fee label left, amount right; amount drops to its own line if needed."""
        amount_text = format_money(amount)
        amount_w = max(self.params.fee_amount_width, display_width(amount_text))
        label_w = self.columns - amount_w

        if display_width(label) <= label_w:
            return [ReceiptLine(role, pad(label, label_w) + pad(amount_text, amount_w, Align.RIGHT))]
        return [
            ReceiptLine(role, label),
            ReceiptLine(role, pad(amount_text, self.columns, Align.RIGHT)),
        ]

    @staticmethod
    def _rate_label(name: str, rate: Decimal) -> str:
        if rate > ZERO:
            return f"{name} ({format_rate(rate)}%)"
        return name


def compose_receipt(
    order: Order,
    params: LayoutParameters,
    footer_text: str = DEFAULT_FOOTER,
) -> Receipt:
    """Compose a receipt for one order and layout."""
    return ReceiptComposer(params, footer_text=footer_text).compose(order)

"""Order records handed to the printing core.

Orders arrive as loosely-typed dicts from the ingestion side. Parsing
here never raises on bad input: unparsable money becomes 0.00 and
missing text becomes an empty string, so a malformed field can only
ever produce an odd-looking receipt, not a lost one.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Integer digits allowed in a money or rate value
MAX_MONEY_DIGITS = 12

PICKUP = "pickup"
DELIVERY = "delivery"


def parse_money(value: Any) -> Decimal:
    """Parse a money or rate value, defaulting to 0.00.

    Accepts numbers and strings such as "18.99", " $1,234.50 ".
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip().replace("$", "").replace(",", "")
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            logger.debug(f"Unparsable amount {value!r}, using 0.00")
            return ZERO

    if not amount.is_finite() or amount.adjusted() >= MAX_MONEY_DIGITS:
        logger.debug(f"Out-of-range amount {value!r}, using 0.00")
        return ZERO
    return amount


def parse_int(value: Any, default: int = 0) -> int:
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, TypeError, OverflowError):
        return default


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _first(data: Dict[str, Any], *keys: str) -> Any:
    """First non-empty value among aliased keys."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def parse_fulfillment(data: Dict[str, Any]) -> str:
    """Map delivery_style (1 = delivery) or a textual type to pickup/delivery."""
    value = _first(data, "delivery_style", "fulfillment")
    if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
        return DELIVERY if value.strip().lower() == DELIVERY else PICKUP
    return DELIVERY if parse_int(value) == 1 else PICKUP


@dataclass
class Dish:
    """One line item of an order."""

    name: str
    amount: int = 1
    price: Decimal = ZERO
    unit_price: Decimal = ZERO
    remark: str = ""
    describe: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dish":
        """Build a dish from a dishes_array entry or a frontend item."""
        amount = parse_int(_first(data, "amount", "quantity"), default=1)
        unit_price = parse_money(_first(data, "unit_price", "price"))
        price = _first(data, "total_price", "price")
        return cls(
            name=_text(_first(data, "dishes_name", "name")) or "Item",
            amount=max(amount, 1),
            price=parse_money(price) if price is not None else unit_price * max(amount, 1),
            unit_price=unit_price,
            remark=_text(_first(data, "remark", "note", "notes")),
            describe=_text(_first(data, "dishes_describe", "description")),
        )


@dataclass
class Order:
    """A fully-populated order ready for layout."""

    order_id: str
    delivery_style: str = PICKUP
    create_time: str = ""
    delivery_time: str = ""
    recipient_name: str = ""
    recipient_phone: str = ""
    recipient_address: str = ""
    recipient_distance: str = ""
    user_email: str = ""
    rd_name: str = ""
    paystyle: Optional[int] = None
    payment_method: str = ""
    serial_num: int = 0
    dishes: List[Dish] = field(default_factory=list)
    sub_total: Decimal = ZERO
    discount_total: Decimal = ZERO
    exemption: Decimal = ZERO
    tax_fee: Decimal = ZERO
    tax_rate: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    retail_delivery_fee: Decimal = ZERO
    convenience_fee: Decimal = ZERO
    convenience_rate: Decimal = ZERO
    tip_fee: Decimal = ZERO
    total: Decimal = ZERO
    order_notes: str = ""

    @property
    def is_delivery(self) -> bool:
        return self.delivery_style == DELIVERY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """Build an order from an API payload.

        Understands both the backend field names (sub_total, tip_fee,
        dishes_array, ...) and the short aliases used by the frontend
        (subtotal, tip, items, ...).

        Args:
            data: Raw order dict

        Returns:
            Parsed order; never raises on malformed values
        """
        raw_dishes = _first(data, "dishes_array", "items") or []
        if not isinstance(raw_dishes, list):
            logger.warning(f"Ignoring non-list dishes for order {data.get('order_id')}")
            raw_dishes = []
        dishes = [Dish.from_dict(d) for d in raw_dishes if isinstance(d, dict)]

        paystyle = _first(data, "paystyle")
        return cls(
            order_id=_text(data.get("order_id")) or "UNKNOWN",
            delivery_style=parse_fulfillment(data),
            create_time=_text(_first(data, "create_time", "created_at")),
            delivery_time=_text(_first(data, "delivery_time", "delivery_date")),
            recipient_name=_text(_first(data, "recipient_name", "customer_name")),
            recipient_phone=_text(_first(data, "recipient_phone", "phone")),
            recipient_address=_text(_first(data, "recipient_address", "address")),
            recipient_distance=_text(_first(data, "recipient_distance", "distance")),
            user_email=_text(_first(data, "user_email", "email")),
            rd_name=_text(_first(data, "rd_name", "restaurant_name")),
            paystyle=parse_int(paystyle, default=-1) if paystyle is not None else None,
            payment_method=_text(data.get("payment_method")),
            serial_num=parse_int(data.get("serial_num")),
            dishes=dishes,
            sub_total=parse_money(_first(data, "sub_total", "subtotal")),
            discount_total=parse_money(_first(data, "discount_total", "discount")),
            exemption=parse_money(data.get("exemption")),
            tax_fee=parse_money(_first(data, "tax_fee", "tax")),
            tax_rate=parse_money(data.get("tax_rate")),
            delivery_fee=parse_money(_first(data, "delivery_fee", "delivery_cost")),
            retail_delivery_fee=parse_money(data.get("retail_delivery_fee")),
            convenience_fee=parse_money(data.get("convenience_fee")),
            convenience_rate=parse_money(data.get("convenience_rate")),
            tip_fee=parse_money(_first(data, "tip_fee", "tip")),
            total=parse_money(_first(data, "total", "total_amount")),
            order_notes=_text(_first(data, "order_notes", "notes")),
        )


def demo_order() -> Order:
    """Bilingual sample order used for test prints."""
    return Order.from_dict({
        "order_id": "23410121749595834",
        "paystyle": 0,
        "delivery_style": 0,
        "recipient_name": "张三 (Zhang San)",
        "recipient_address": "北京市朝阳区望京街道 123号 2B室 (123 Wangjing St, Apt 2B, Beijing)",
        "recipient_phone": "(555) 123-4567",
        "recipient_distance": "2.5",
        "rd_name": "老王川菜馆 (Lao Wang Sichuan Restaurant)",
        "dishes_array": [
            {
                "dishes_name": "麻婆豆腐 (Mapo Tofu)",
                "amount": 1,
                "price": "18.99",
                "unit_price": "18.99",
                "remark": "不要太辣 (Not too spicy)",
                "dishes_describe": "嫩豆腐配麻辣汤汁 (Soft tofu with spicy sauce)",
            },
            {
                "dishes_name": "宫保鸡丁 (Kung Pao Chicken)",
                "amount": 2,
                "price": "23.98",
                "unit_price": "11.99",
                "remark": "多放花生米 (Extra peanuts)",
                "dishes_describe": "鸡肉丁配花生米和青椒 (Diced chicken with peanuts and peppers)",
            },
            {
                "dishes_name": "白米饭 (Steamed Rice)",
                "amount": 1,
                "price": "6.99",
                "unit_price": "6.99",
                "dishes_describe": "香喷喷的白米饭 (Fragrant steamed white rice)",
            },
        ],
        "discount_total": "5.00",
        "sub_total": "49.96",
        "tax_rate": "0.0825",
        "tax_fee": "4.37",
        "delivery_fee": "3.99",
        "convenience_rate": "0.035",
        "convenience_fee": "1.75",
        "tip_fee": "7.50",
        "total": "65.82",
        "order_notes": "请按门铃两次。如无人应答请放在门口。(Please ring doorbell twice. Leave at front door if no answer.)",
        "serial_num": 42,
        "user_email": "john.smith@email.com",
        "create_time": "2025-01-15 18:30:00",
        "delivery_time": "2025-01-15 19:15:00",
    })

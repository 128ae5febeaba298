"""Shared fixtures for orderprint tests."""

from typing import List, Tuple

import pytest

from orderprint.hardware.base import reset_probe_cache
from orderprint.printing.order import Order


@pytest.fixture(autouse=True)
def _fresh_probe_cache():
    """Engine probes are cached per process; isolate each test."""
    reset_probe_cache()
    yield
    reset_probe_cache()


@pytest.fixture
def mapo_order() -> Order:
    """Single-dish pickup order with tax."""
    return Order.from_dict({
        "order_id": "23410121749595834",
        "dishes_array": [{"dishes_name": "Mapo Tofu", "amount": 1, "price": "18.99"}],
        "sub_total": "18.99",
        "tax_fee": "1.57",
        "tax_rate": "0.0825",
        "total": "20.56",
    })


class FakePage:
    """Records calls made against a page-composition capability."""

    def __init__(self, printers=None, accept: bool = True):
        self.printers = printers if printers is not None else ["Receipt-80", "Office A4"]
        self.accept = accept
        self.calls: List[Tuple] = []

    def enumerate_printers(self):
        return list(self.printers)

    def begin_page(self, width, height, title):
        self.calls.append(("begin_page", width, height, title))

    def select_printer(self, name):
        self.calls.append(("select_printer", name))

    def place_text(self, top, left, width, height, text):
        self.calls.append(("place_text", top, left, width, height, text))

    def set_style(self, index, prop, value):
        self.calls.append(("set_style", index, prop, value))

    def submit(self):
        self.calls.append(("submit",))
        return self.accept

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()

"""orderprint - receipt layout and multi-printer dispatch for POS orders."""

__version__ = "0.1.0"

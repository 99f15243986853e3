"""Utility modules for the workshop backend."""

from .numbers import generate_invoice_number, generate_order_number
from .retry import with_retry

__all__ = [
    "generate_order_number",
    "generate_invoice_number",
    "with_retry",
]

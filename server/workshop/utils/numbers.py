"""Generators for human-facing document numbers.

Numbers are timestamp based with a random suffix. They are not guaranteed
unique; the store checks and retries on collision.
"""

import random
import time
from typing import Optional

from workshop.config import settings


def _stamp(prefix: str, now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = f"{random.randint(0, 999):03d}"
    return f"{prefix}-{now_ms}-{suffix}"


def generate_order_number(now_ms: Optional[int] = None) -> str:
    """Service order number, e.g. ``SO-1718000000000-042``."""
    return _stamp(settings.ORDER_NUMBER_PREFIX, now_ms)


def generate_invoice_number(now_ms: Optional[int] = None) -> str:
    """Invoice number, e.g. ``INV-1718000000000-917``."""
    return _stamp(settings.INVOICE_NUMBER_PREFIX, now_ms)

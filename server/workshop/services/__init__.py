"""
Services package for the workshop backend.
"""

from .notifications import (
    MockWhatsappGateway,
    Notifier,
    WhatsappNotifier,
    dispatch_notification,
)

__all__ = [
    "Notifier",
    "WhatsappNotifier",
    "MockWhatsappGateway",
    "dispatch_notification",
]

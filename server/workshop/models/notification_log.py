"""Notification log model."""

import enum

from sqlalchemy import Column
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, String, Text

from workshop.models.base import Base, TimestampMixin


class NotificationStatus(str, enum.Enum):
    """Outcome of a notification attempt."""

    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class NotificationLog(Base, TimestampMixin):
    """One row per customer notification attempt."""

    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, index=True)
    service_order_id = Column(Integer, ForeignKey("service_orders.id"), nullable=False, index=True)

    event_kind = Column(String(40), nullable=False, index=True)
    channel = Column(String(20), nullable=False, default="whatsapp")
    recipient = Column(String(20))
    message = Column(Text)

    status = Column(SQLEnum(NotificationStatus), nullable=False)
    provider_message_id = Column(String(100))
    error = Column(String(2000))

    def __repr__(self):
        return (
            f"<NotificationLog(id={self.id}, order={self.service_order_id}, "
            f"kind='{self.event_kind}', status='{self.status}')>"
        )

"""Reference data: analysis templates, estimation library and WhatsApp templates.

None of these take part in the order workflow; they are soft-deleted by
clearing ``is_active``.
"""

from sqlalchemy import Boolean, Column
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text

from workshop.models.base import Base, TimestampMixin
from workshop.models.service_order import ServiceType


class AnalysisTemplate(Base, TimestampMixin):
    """Boilerplate diagnosis text per service type."""

    __tablename__ = "analysis_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    service_type = Column(SQLEnum(ServiceType), nullable=False, index=True)
    template_content = Column(Text, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<AnalysisTemplate(id={self.id}, name='{self.name}')>"


class EstimationLibraryItem(Base, TimestampMixin):
    """Catalogue part or service with its three tier prices."""

    __tablename__ = "estimation_library"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    economic_price = Column(Numeric(10, 2), nullable=False)
    standard_price = Column(Numeric(10, 2), nullable=False)
    premium_price = Column(Numeric(10, 2), nullable=False)
    is_service = Column(Boolean, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<EstimationLibraryItem(id={self.id}, name='{self.name}')>"


class WhatsappTemplate(Base, TimestampMixin):
    """Message template for a notification kind.

    ``content`` may reference ``{customer_name}``, ``{order_number}``,
    ``{vehicle}``, ``{workshop_name}`` and ``{amount}``.
    """

    __tablename__ = "whatsapp_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    event_kind = Column(String(40), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<WhatsappTemplate(id={self.id}, name='{self.name}', kind='{self.event_kind}')>"

"""
Inventory Server - Invoice Models
Planos de assinatura e faturas de clientes
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Boolean, Date, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from inventory_server.database import Base


class InvoiceStatus(str, Enum):
    """Status da fatura"""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    VOID = "void"


# Status que contam como receita nos relatorios
REVENUE_STATUSES = (
    InvoiceStatus.PAID.value,
    InvoiceStatus.SENT.value,
    InvoiceStatus.OVERDUE.value,
)


class SubscriptionPlan(Base):
    """Plano de assinatura"""
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(100), nullable=False)
    description = Column(Text)
    billing_cycle = Column(String(20), default="monthly")  # monthly, quarterly, yearly, one_time
    amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3))
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "billing_cycle": self.billing_cycle,
        }


class ClientInvoice(Base):
    """Fatura emitida para um cliente (somente leitura neste servico)"""
    __tablename__ = "client_invoices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    client = relationship("Client", lazy="selectin")

    plan_id = Column(String(36), ForeignKey("subscription_plans.id", ondelete="SET NULL"))
    plan = relationship("SubscriptionPlan", lazy="selectin")

    device_id = Column(String(36), ForeignKey("devices.id", ondelete="SET NULL"))
    device = relationship("Device", lazy="selectin")

    invoice_number = Column(String(50), nullable=False, index=True)
    period_start = Column(Date)
    period_end = Column(Date)

    amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3))
    status = Column(String(20), default=InvoiceStatus.DRAFT.value, index=True)

    issued_at = Column(Date, index=True)
    due_at = Column(Date)
    paid_at = Column(Date)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

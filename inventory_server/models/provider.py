"""
Inventory Server - Provider Models
Fornecedores e pagamentos a fornecedores
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Text, Float, ForeignKey
from sqlalchemy.orm import relationship

from inventory_server.database import Base


class Provider(Base):
    """Fornecedor de servicos (operadoras, ISPs...)"""
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False)
    provider_type = Column(String(50))
    contact_name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    account_number = Column(String(100))
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class ProviderPayment(Base):
    """Pagamento feito a um fornecedor"""
    __tablename__ = "provider_payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    provider_id = Column(String(36), ForeignKey("providers.id", ondelete="SET NULL"), index=True)
    provider = relationship("Provider", lazy="selectin")

    amount = Column(Float, nullable=False, default=0)
    currency = Column(String(3))
    status = Column(String(20), default="scheduled")  # scheduled, pending, paid, overdue, canceled
    due_date = Column(Date)
    paid_at = Column(Date)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

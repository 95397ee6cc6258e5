"""
Inventory Server - Client Models
Clientes, tags e a tabela de associacao cliente <-> tag
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey

from inventory_server.database import Base


class Client(Base):
    """Modelo de Cliente"""
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False, index=True)
    industry = Column(String(255))
    contact_name = Column(String(255))
    email = Column(String(255), index=True)
    phone = Column(String(50))

    # Endereços
    address = Column(Text)
    billing_address = Column(Text)
    tax_number = Column(String(100))

    # Controle
    is_active = Column(Boolean, default=True, nullable=False)
    notes = Column(Text)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "industry": self.industry,
            "contact_name": self.contact_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "billing_address": self.billing_address,
            "tax_number": self.tax_number,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ClientTag(Base):
    """Tag aplicavel a clientes; slug derivado do nome (pode ser nulo)"""
    __tablename__ = "client_tags"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(100))
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ClientTagAssignment(Base):
    """Associacao cliente <-> tag; a existencia da linha e a atribuicao"""
    __tablename__ = "client_tag_assignments"

    client_id = Column(
        String(36), ForeignKey("clients.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(
        String(36), ForeignKey("client_tags.id", ondelete="CASCADE"), primary_key=True, index=True
    )

"""
Inventory Server - Audit Log Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON

from inventory_server.database import Base


class AuditLog(Base):
    """Registro de auditoria de acoes relevantes"""
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36))
    details = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)

"""
Inventory Server - Device Models
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from inventory_server.database import Base


class DeviceStatus(str, Enum):
    """Status do dispositivo"""
    IN_STOCK = "in_stock"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    LOST = "lost"


class Device(Base):
    """Modelo de Dispositivo"""
    __tablename__ = "devices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    device_type = Column(String(50), nullable=False, default="other")
    name = Column(String(255))
    status = Column(String(30), default=DeviceStatus.IN_STOCK.value, index=True)
    serial_number = Column(String(100))
    identifier = Column(String(100))
    location = Column(String(255))
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "identifier": self.identifier,
            "status": self.status,
            "device_type": self.device_type,
            "serial_number": self.serial_number,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class DeviceAssignment(Base):
    """Dispositivo entregue a um cliente"""
    __tablename__ = "device_assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    device_id = Column(String(36), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), default="active")
    assigned_at = Column(DateTime, default=datetime.utcnow)
    unassigned_at = Column(DateTime)
    notes = Column(Text)

"""
Inventory Server - Profile Models
Perfis de usuario (papel) e convites pendentes
"""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime

from inventory_server.database import Base


class UserRole(str, Enum):
    """Papel do usuario"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    FRONT_DESK = "front_desk"
    TECHNICIAN = "technician"
    VIEWER = "viewer"


# Papeis que podem ser atribuidos por convite
INVITABLE_ROLES = (
    UserRole.SUPER_ADMIN.value,
    UserRole.ADMIN.value,
    UserRole.FRONT_DESK.value,
    UserRole.TECHNICIAN.value,
)


class Profile(Base):
    """Perfil do usuario autenticado; id = sub do token"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(255))
    role = Column(String(30), default=UserRole.VIEWER.value, nullable=False)
    phone = Column(String(50))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "role": self.role,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class InviteRequest(Base):
    """Convite pendente; o papel e aplicado quando a conta e criada"""
    __tablename__ = "invite_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, index=True)
    role = Column(String(30), nullable=False)
    invited_by = Column(String(36))
    created_at = Column(DateTime, default=datetime.utcnow)

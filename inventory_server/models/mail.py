"""
Inventory Server - Mail Template Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text

from inventory_server.database import Base


class MailTemplate(Base):
    """Modelo de email para clientes; aceita {{client_name}} e {{client_email}}"""
    __tablename__ = "mail_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    body_html = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "subject": self.subject,
            "body_html": self.body_html,
        }

"""
Inventory Server - Audit Service
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.models import AuditLog

logger = logging.getLogger(__name__)

# Acoes registradas
CLIENT_CREATED = "client.created"
CLIENT_DELETED = "client.deleted"
INVOICE_SENT = "invoice.sent"


async def record_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    details: Optional[dict] = None,
    user_id: Optional[str] = None,
) -> None:
    """Grava um registro de auditoria; falha aqui nao desfaz a operacao principal"""
    try:
        db.add(AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        ))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Audit record {action} for {entity_type}/{entity_id} failed: {e}")

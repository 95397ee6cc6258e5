"""
Inventory Server - Client Mail Service
Envio de emails livres ou de modelo para um cliente ou em massa
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.core.email import EmailService
from inventory_server.core.errors import (
    AppError,
    ConfigurationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from inventory_server.models import Client, Device, DeviceAssignment, MailTemplate

logger = logging.getLogger(__name__)

_DEVICE_TYPE = re.compile(r"^[a-z_]+$")

MESSAGE_REQUIRED = "subject and bodyHtml required when not using templateId"


def substitute_placeholders(text: str, client: Client) -> str:
    """Troca {{client_name}} e {{client_email}} pelos dados do cliente"""
    return (
        (text or "")
        .replace("{{client_name}}", (client.name or "").strip())
        .replace("{{client_email}}", (client.email or "").strip())
    )


def clean_device_types(value: Any) -> List[str]:
    """Mantem so tipos de dispositivo bem formados (a-z e _)"""
    if not isinstance(value, list):
        return []
    return [t for t in value if isinstance(t, str) and _DEVICE_TYPE.match(t)]


async def resolve_message(
    db: AsyncSession,
    template_id: Optional[str] = None,
    subject: Optional[str] = None,
    body_html: Optional[str] = None,
) -> Tuple[str, str]:
    """Assunto e corpo: do modelo quando informado, senao os textos livres"""
    if template_id:
        template = await db.get(MailTemplate, str(template_id))
        if not template:
            raise NotFoundError("Template not found")
        return template.subject, template.body_html

    subject = subject if isinstance(subject, str) else ""
    body_html = body_html if isinstance(body_html, str) else ""
    if not subject.strip() or not body_html.strip():
        raise ValidationError(MESSAGE_REQUIRED)
    return subject, body_html


async def broadcast_recipients(
    db: AsyncSession,
    active_only: bool = True,
    device_types: Iterable[str] = (),
) -> List[Client]:
    """
    Clientes com email para um envio em massa.

    Com device_types, so entram clientes com uma atribuicao em aberto de
    um dispositivo desses tipos.
    """
    query = select(Client).where(Client.email.is_not(None))
    if active_only:
        query = query.where(Client.is_active.is_(True))

    device_types = list(device_types)
    if device_types:
        query = query.where(
            Client.id.in_(
                select(DeviceAssignment.client_id)
                .join(Device, Device.id == DeviceAssignment.device_id)
                .where(
                    DeviceAssignment.unassigned_at.is_(None),
                    Device.device_type.in_(device_types),
                )
            )
        )

    result = await db.execute(query.order_by(Client.name))
    return [c for c in result.scalars().all() if (c.email or "").strip()]


class ClientMailer:
    """Envia emails a clientes usando o EmailService"""

    def __init__(self, db: AsyncSession, email_service: EmailService):
        self.db = db
        self.email_service = email_service

    def _ensure_configured(self) -> None:
        if not self.email_service.is_configured():
            raise ConfigurationError("RESEND_API_KEY not configured")

    async def send_to_client(
        self,
        client_id: str,
        template_id: Optional[str] = None,
        subject: Optional[str] = None,
        body_html: Optional[str] = None,
    ) -> None:
        """Envio para um cliente; falha da API vira erro 500 com a mensagem dela"""
        self._ensure_configured()

        client = await self.db.get(Client, str(client_id))
        if not client:
            raise NotFoundError("Client not found")
        email = (client.email or "").strip()
        if not email:
            raise ValidationError("Client has no email address")

        subject, body_html = await resolve_message(self.db, template_id, subject, body_html)

        try:
            await self.email_service.send_email(
                email,
                substitute_placeholders(subject, client),
                substitute_placeholders(body_html, client),
            )
        except ExternalServiceError as exc:
            raise AppError(exc.message, 500)

        logger.info(f"Client mail sent to {client.id}")

    async def broadcast(
        self,
        template_id: Optional[str] = None,
        subject: Optional[str] = None,
        body_html: Optional[str] = None,
        active_only: bool = True,
        device_types: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Envio em massa, um email por cliente.

        Falha de um destinatario nao interrompe os demais; cada um aparece
        em results e as falhas tambem em errors.
        """
        self._ensure_configured()
        subject, body_html = await resolve_message(self.db, template_id, subject, body_html)
        recipients = await broadcast_recipients(self.db, active_only, device_types)

        results = []
        errors = []
        for client in recipients:
            email = client.email.strip()
            try:
                await self.email_service.send_email(
                    email,
                    substitute_placeholders(subject, client),
                    substitute_placeholders(body_html, client),
                )
            except (ExternalServiceError, httpx.HTTPError) as exc:
                message = getattr(exc, "message", None) or str(exc) or "Unknown"
                label = client.name if client.name is not None else client.id
                errors.append(f"{label}: {message}")
                results.append({"client_id": client.id, "email": email, "success": False, "error": message})
                continue
            results.append({"client_id": client.id, "email": email, "success": True, "error": None})

        sent = sum(1 for r in results if r["success"])
        logger.info(f"Broadcast mail: {sent} sent, {len(results) - sent} failed")

        response = {
            "success": True,
            "sent": sent,
            "failed": len(results) - sent,
            "results": results,
        }
        if errors:
            response["errors"] = errors
        return response

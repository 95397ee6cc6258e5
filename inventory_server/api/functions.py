"""
Inventory Server - Functions API
Operacoes privilegiadas chamadas via HTTP:
invite-user, send-invoice-email, send-client-mail,
generate-period-invoices e api-read
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.database import get_db
from inventory_server.models import Client, ClientInvoice, Device, InviteRequest, Profile, UserRole, INVITABLE_ROLES
from inventory_server.core import (
    AuthAdminClient,
    EmailService,
    get_auth_admin,
    get_email_service,
    render_invoice_email,
    settings
)
from inventory_server.core.config import configured
from inventory_server.core.rate_limit import limiter, FUNCTION_RATE_LIMIT
from inventory_server.core.errors import (
    AppError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from inventory_server.services import audit
from inventory_server.services.client_mail import ClientMailer, clean_device_types
from inventory_server.services.billing import get_invoice_generator
from inventory_server.services.relations import one_related
from inventory_server.api.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Functions"])

# Projecoes do api-read
READ_TABLES = {
    "devices": (Device, ["id", "name", "identifier", "status", "device_type", "serial_number", "created_at", "updated_at"]),
    "clients": (Client, ["id", "name", "email", "contact_name", "phone", "address", "created_at", "updated_at"]),
}
READ_LIMIT = 500


async def _read_json(request: Request) -> dict:
    """Corpo JSON; corpo invalido conta como objeto vazio"""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _internal_error(name: str) -> AppError:
    logger.exception(f"Function {name} failed")
    return AppError("Internal error", 500)


@router.options("/{function_name:path}", include_in_schema=False)
async def preflight(function_name: str):
    """Preflight CORS"""
    return PlainTextResponse("ok")


# ============================================
# GENERATE PERIOD INVOICES
# ============================================

@router.post("/generate-period-invoices")
async def generate_period_invoices(
    x_cron_secret: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    generate=Depends(get_invoice_generator)
):
    """Gera as faturas do periodo (chamado pelo cron)"""
    cron_secret = configured(settings.CRON_SECRET)
    if cron_secret and x_cron_secret != cron_secret:
        logger.warning("generate-period-invoices called with invalid cron secret")
        raise UnauthorizedError()

    try:
        generated = await generate(db)
    except AppError:
        raise
    except Exception:
        raise _internal_error("generate-period-invoices")

    return {"generated": generated}


# ============================================
# INVITE USER
# ============================================

@router.post("/invite-user")
@limiter.limit(FUNCTION_RATE_LIMIT)
async def invite_user(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    auth_admin: AuthAdminClient = Depends(get_auth_admin)
):
    """
    Convida usuario (apenas super_admin).

    O invite_request e gravado ANTES do convite para que o papel seja
    aplicado na criacao da conta; se o convite falhar o registro e
    removido. Um crash entre os dois passos deixa o registro orfao.
    """
    try:
        profile = await db.get(Profile, user_id)
        if not profile or profile.role != UserRole.SUPER_ADMIN.value:
            logger.warning(f"User {user_id} tried to invite without super_admin role")
            raise ForbiddenError("Only Super Admins can invite users")

        body = await _read_json(request)
        email = body.get("email").strip() if isinstance(body.get("email"), str) else ""
        if not email:
            raise ValidationError("email is required")

        role = body.get("role")
        if role not in INVITABLE_ROLES:
            role = UserRole.FRONT_DESK.value

        invite = InviteRequest(email=email, role=role, invited_by=user_id)
        db.add(invite)
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(f"Could not record invite request for {email}")
            raise ValidationError("Could not record invite request")

        try:
            message = await auth_admin.invite_user_by_email(email)
        except Exception as exc:
            # Compensacao: remove o registro para nao deixar papel orfao
            await db.execute(delete(InviteRequest).where(InviteRequest.id == invite.id))
            await db.commit()
            logger.warning(f"Invite for {email} failed, pending invite removed: {exc}")
            if isinstance(exc, ExternalServiceError):
                raise ValidationError(exc.message)
            raise

        logger.info(f"Invite sent to {email} as {role}")
        return {"success": True, "message": message}
    except AppError:
        raise
    except Exception:
        raise _internal_error("invite-user")


# ============================================
# SEND INVOICE EMAIL
# ============================================

@router.post("/send-invoice-email")
@limiter.limit(FUNCTION_RATE_LIMIT)
async def send_invoice_email(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """Envia a fatura por email ao cliente"""
    try:
        body = await _read_json(request)
        invoice_id = body.get("invoiceId")
        if not invoice_id:
            raise ValidationError("invoiceId required")

        result = await db.execute(select(ClientInvoice).where(ClientInvoice.id == str(invoice_id)))
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError("Invoice not found")

        client = one_related(invoice.client) or {}
        email = (client.get("email") or "").strip()
        if not email:
            raise ValidationError("Client has no email address")

        plan = one_related(invoice.plan) or {}
        device = invoice.device
        device_label = (device.name if device.name is not None else device.identifier) if device else None

        html = render_invoice_email(
            invoice_number=invoice.invoice_number or "",
            client_name=client.get("name"),
            amount=invoice.amount,
            currency=invoice.currency,
            due_at=invoice.due_at.isoformat() if invoice.due_at else None,
            period_start=invoice.period_start.isoformat() if invoice.period_start else None,
            period_end=invoice.period_end.isoformat() if invoice.period_end else None,
            plan_name=plan.get("name"),
            plan_billing=plan.get("billing_cycle"),
            device_label=device_label,
        )

        data = await email_service.send_email(
            email,
            f"Invoice {invoice.invoice_number} from Ezyy Inventory",
            html,
        )

        await audit.record_audit(
            db, audit.INVOICE_SENT, "client_invoices", invoice.id,
            details={"to": email}, user_id=user_id
        )
        return {"success": True, "id": data.get("id")}
    except AppError:
        raise
    except Exception:
        raise _internal_error("send-invoice-email")


# ============================================
# SEND CLIENT MAIL
# ============================================

@router.post("/send-client-mail")
@limiter.limit(FUNCTION_RATE_LIMIT)
async def send_client_mail(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    """
    Email para um cliente (clientId) ou em massa (broadcast: true).

    O conteudo vem de templateId ou de subject + bodyHtml; os
    placeholders sao trocados por destinatario.
    """
    try:
        body = await _read_json(request)
        mailer = ClientMailer(db, email_service)
        template_id = body.get("templateId")
        subject = body.get("subject")
        body_html = body.get("bodyHtml")
        if body_html is None:
            body_html = body.get("body_html")

        if body.get("broadcast") is True:
            return await mailer.broadcast(
                template_id=template_id,
                subject=subject,
                body_html=body_html,
                active_only=body.get("activeOnly") is not False,
                device_types=clean_device_types(body.get("deviceTypes")),
            )

        client_id = body.get("clientId")
        if not client_id:
            raise ValidationError("clientId required for single send")

        await mailer.send_to_client(
            client_id, template_id=template_id, subject=subject, body_html=body_html
        )
        return {"success": True}
    except AppError:
        raise
    except Exception:
        raise _internal_error("send-client-mail")


# ============================================
# API READ (somente leitura por chave)
# ============================================

@router.get("/api-read")
@router.get("/api-read/{path_table}")
@limiter.limit(FUNCTION_RATE_LIMIT)
async def api_read(
    request: Request,
    path_table: Optional[str] = None,
    table: Optional[str] = Query(None),
    api_key: Optional[str] = Query(None),
    x_api_key: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """Leitura de devices/clients para integracoes externas"""
    expected = configured(settings.READ_ONLY_API_KEY)
    provided = x_api_key or api_key
    if not expected or provided != expected:
        raise UnauthorizedError("Invalid or missing API key")

    name = table or path_table
    if name not in READ_TABLES:
        raise ValidationError("Invalid table. Use ?table=devices or ?table=clients")

    try:
        model, columns = READ_TABLES[name]
        result = await db.execute(
            select(*[getattr(model, c) for c in columns])
            .order_by(model.created_at.desc())
            .limit(READ_LIMIT)
        )
        return [dict(zip(columns, row)) for row in result.all()]
    except Exception:
        raise _internal_error("api-read")

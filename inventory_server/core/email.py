"""
Inventory Server - Email Service
Envio de faturas por email via API HTTP (Resend)
"""
from typing import Optional
import logging

import httpx

from .config import settings, configured
from .errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

_ROW_STYLE = "padding:8px 0;border-bottom:1px solid #eee;"
_VALUE_STYLE = "text-align:right;padding:8px 0;border-bottom:1px solid #eee;"


def _row(label: str, value: str) -> str:
    return (
        f'<tr><td style="{_ROW_STYLE}">{label}</td>'
        f'<td style="{_VALUE_STYLE}">{value}</td></tr>'
    )


def format_amount(amount) -> str:
    """Formats an amount with thousands separators, dropping a zero fraction."""
    value = float(amount or 0)
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def render_invoice_email(
    invoice_number: str,
    client_name: Optional[str],
    amount,
    currency: Optional[str] = None,
    due_at: Optional[str] = None,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
    plan_name: Optional[str] = None,
    plan_billing: Optional[str] = None,
    device_label: Optional[str] = None,
) -> str:
    """
    Monta o HTML fixo da fatura.

    Linhas de plano, dispositivo e periodo so aparecem quando ha dados.
    """
    plan_row = ""
    if plan_name:
        plan_row = _row("Plan", f"{plan_name} ({plan_billing})" if plan_billing else plan_name)

    device_row = _row("Device", device_label) if device_label else ""

    period_row = ""
    if period_start and period_end:
        period_row = _row("Period", f"{period_start} to {period_end}")

    html = f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Invoice {invoice_number}</title></head>
<body style="font-family:sans-serif;max-width:600px;margin:0 auto;padding:24px;">
  <h2 style="color:#111;">Invoice {invoice_number}</h2>
  <p>Hi {'there' if client_name is None else client_name},</p>
  <p>Please find your invoice details below:</p>
  <table style="width:100%;border-collapse:collapse;margin:16px 0;">
    {_row("Invoice number", invoice_number)}
    {plan_row}
    {device_row}
    {period_row}
    {_row("Amount", f"{'USD' if currency is None else currency} {format_amount(amount)}")}
    <tr><td style="padding:8px 0;">Due date</td><td style="text-align:right;padding:8px 0;">{'—' if due_at is None else due_at}</td></tr>
  </table>
  <p style="color:#666;font-size:14px;">Thank you for your business.</p>
</body>
</html>
"""
    return html.strip()


class EmailService:
    """Cliente da API de email (Resend)"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        from_email: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = configured(api_key if api_key is not None else settings.RESEND_API_KEY)
        self.api_url = api_url or settings.RESEND_API_URL
        self.from_email = from_email or settings.INVOICE_FROM_EMAIL
        self.transport = transport

    def is_configured(self) -> bool:
        """Verifica se a chave da API esta configurada"""
        return bool(self.api_key)

    async def send_email(self, to_email: str, subject: str, html_content: str) -> dict:
        """
        Envia um email e retorna o JSON da API (contem o id da mensagem).

        Raises:
            ConfigurationError: chave da API ausente
            ExternalServiceError: resposta nao-2xx, com status e mensagem da API
        """
        if not self.is_configured():
            raise ConfigurationError("RESEND_API_KEY not configured")

        async with httpx.AsyncClient(transport=self.transport, timeout=15.0) as client:
            response = await client.post(
                self.api_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                json={
                    "from": self.from_email,
                    "to": [to_email],
                    "subject": subject,
                    "html": html_content,
                },
            )

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            message = data.get("message") or data.get("detail") or "Failed to send email"
            logger.error(f"Email API rejected message to {to_email}: {response.status_code} {message}")
            raise ExternalServiceError(message, status_code=response.status_code)

        logger.info(f"Email sent successfully to {to_email}")
        return data


def get_email_service() -> EmailService:
    """Dependency para injetar o servico de email"""
    return EmailService()

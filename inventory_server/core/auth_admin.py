"""
Inventory Server - Auth Admin Client
Convites de usuario via API administrativa do provedor de autenticacao
"""
from typing import Optional
import logging

import httpx

from .config import settings, configured
from .errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)


class AuthAdminClient:
    """Cliente da API admin (service role)"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = configured(base_url if base_url is not None else settings.AUTH_ADMIN_URL)
        self.service_key = configured(
            service_key if service_key is not None else settings.SERVICE_ROLE_KEY
        )
        self.transport = transport

    async def invite_user_by_email(self, email: str, data: Optional[dict] = None) -> str:
        """
        Dispara o convite e retorna a mensagem para o chamador.

        A API pode responder sem usuario quando o email ja existe.
        """
        if not self.base_url or not self.service_key:
            raise ConfigurationError("Auth admin API not configured")

        async with httpx.AsyncClient(transport=self.transport, timeout=15.0) as client:
            response = await client.post(
                f"{self.base_url.rstrip('/')}/invite",
                headers={
                    "apikey": self.service_key,
                    "Authorization": f"Bearer {self.service_key}",
                },
                json={"email": email, "data": data or {}},
            )

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.is_success:
            message = body.get("msg") or body.get("message") or body.get("error_description") or "Invite failed"
            raise ExternalServiceError(message, status_code=response.status_code)

        user = body.get("user") if isinstance(body.get("user"), dict) else body
        if user and user.get("id"):
            return "Invitation sent"
        return "Invitation sent (user may already exist)"


def get_auth_admin() -> AuthAdminClient:
    """Dependency para injetar o cliente admin"""
    return AuthAdminClient()

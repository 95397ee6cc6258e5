from .config import settings, get_settings
from .security import create_access_token, verify_access_token
from .email import EmailService, get_email_service, render_invoice_email
from .auth_admin import AuthAdminClient, get_auth_admin

__all__ = [
    "settings",
    "get_settings",
    "create_access_token",
    "verify_access_token",
    "EmailService",
    "get_email_service",
    "render_invoice_email",
    "AuthAdminClient",
    "get_auth_admin"
]

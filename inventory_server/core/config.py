"""
Inventory Server - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env da raiz do projeto sobrescrevendo variaveis do sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Inventory Server"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (accepts DATABASE_URL or INVENTORY_DATABASE_URL)
    DATABASE_URL: Optional[str] = None
    INVENTORY_DATABASE_URL: str = "sqlite+aiosqlite:///./inventory.db"

    @property
    def db_url(self) -> str:
        """Returns DATABASE_URL if set, otherwise INVENTORY_DATABASE_URL"""
        return self.DATABASE_URL or self.INVENTORY_DATABASE_URL

    # Tokens emitidos pelo provedor de autenticacao (HS256 com segredo compartilhado)
    JWT_SECRET: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    FRONTEND_URL: Optional[str] = None

    # Auth provider admin API (convites)
    AUTH_ADMIN_URL: Optional[str] = None
    SERVICE_ROLE_KEY: Optional[str] = None

    # Email (Resend)
    RESEND_API_URL: str = "https://api.resend.com/emails"
    RESEND_API_KEY: Optional[str] = None
    INVOICE_FROM_EMAIL: str = "Ezyy Inventory <invoices@notifications.ezyy.cloud>"

    # Segredos de funcoes
    CRON_SECRET: Optional[str] = None
    READ_ONLY_API_KEY: Optional[str] = None

    # Reports
    REPORT_MONTHS_BACK: int = 6

    @property
    def cors_origins(self) -> list:
        origin = (self.FRONTEND_URL or "").strip()
        return [origin] if origin else ["*"]

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


def configured(value: Optional[str]) -> Optional[str]:
    """Trims an optional secret; blank means not configured."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

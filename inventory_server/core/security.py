"""
Inventory Server - Security
Verificacao dos bearer tokens emitidos pelo provedor de autenticacao
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

from .config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Cria token JWT (ferramentas internas e testes)"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_access_token(token: str) -> Optional[dict]:
    """Decodifica o token; None se invalido ou expirado"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload

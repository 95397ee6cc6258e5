"""
Inventory Server - Auth API
Identidade do chamador a partir do bearer token
"""
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.database import get_db
from inventory_server.models import Profile
from inventory_server.core import verify_access_token
from inventory_server.core.errors import UnauthorizedError

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Dependency: id do usuario (sub) de um token valido"""
    if credentials is None:
        raise UnauthorizedError()

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError()

    return payload["sub"]


async def get_current_profile(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
) -> Profile:
    """Dependency para obter o perfil autenticado"""
    profile = await db.get(Profile, user_id)
    if not profile:
        raise UnauthorizedError("User not found")
    return profile


@router.get("/me")
async def get_me(profile: Profile = Depends(get_current_profile)):
    """Retorna dados do usuario atual"""
    return profile.to_dict()

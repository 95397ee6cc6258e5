"""
Inventory Server - Client Tags Service
CRUD de tags e atribuicao muitos-para-muitos cliente <-> tag
"""
import logging
import re
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, delete, insert, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.core.errors import ConflictError, NotFoundError, ValidationError
from inventory_server.models import Client, ClientTag, ClientTagAssignment

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_NOT_SLUG = re.compile(r"[^a-z0-9-]")


def slugify(name: str) -> Optional[str]:
    """
    Deriva o slug: minusculo, espacos viram hifen, resto fora de [a-z0-9-] sai.

    Retorna None quando o resultado fica vazio.
    """
    slug = _WHITESPACE.sub("-", (name or "").strip().lower())
    slug = _NOT_SLUG.sub("", slug)
    return slug or None


def _tag_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Tag name is required")
    return name


def dedupe(ids: Iterable[str]) -> List[str]:
    """Remove ids repetidos mantendo a ordem"""
    seen: Set[str] = set()
    result = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class TagService:
    """
    Acesso a dados de tags.

    Recebe a sessao explicitamente; erros do banco sobem sem retry.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============================================
    # TAGS
    # ============================================

    async def list_tags(self) -> List[ClientTag]:
        result = await self.db.execute(select(ClientTag).order_by(ClientTag.name.asc()))
        return list(result.scalars().all())

    async def get_tag(self, tag_id: str) -> ClientTag:
        tag = await self.db.get(ClientTag, tag_id)
        if not tag:
            raise NotFoundError("Tag not found")
        return tag

    async def create_tag(self, name: str) -> ClientTag:
        tag = ClientTag(name=_tag_name(name), slug=slugify(name))
        self.db.add(tag)
        await self.db.commit()
        await self.db.refresh(tag)
        logger.info(f"Tag created: {tag.name} ({tag.id})")
        return tag

    async def update_tag(self, tag_id: str, name: str) -> ClientTag:
        tag = await self.get_tag(tag_id)
        tag.name = _tag_name(name)
        tag.slug = slugify(name)
        await self.db.commit()
        await self.db.refresh(tag)
        return tag

    async def delete_tag(self, tag_id: str) -> None:
        """Remove a tag; atribuicoes caem em cascata no banco"""
        tag = await self.get_tag(tag_id)
        await self.db.delete(tag)
        await self.db.commit()
        logger.info(f"Tag deleted: {tag_id}")

    # ============================================
    # ATRIBUICOES
    # ============================================

    async def list_assignments(self, client_id: Optional[str]) -> Set[str]:
        """Ids das tags do cliente; sem cliente nao consulta o banco"""
        if not client_id:
            return set()
        result = await self.db.execute(
            select(ClientTagAssignment.tag_id).where(ClientTagAssignment.client_id == client_id)
        )
        return set(result.scalars().all())

    async def _ensure_client(self, client_id: str) -> None:
        if not client_id or not await self.db.get(Client, client_id):
            raise NotFoundError("Client not found")

    async def _ensure_tags(self, tag_ids: List[str]) -> None:
        if not tag_ids:
            return
        result = await self.db.execute(
            select(func.count(ClientTag.id)).where(ClientTag.id.in_(tag_ids))
        )
        if (result.scalar() or 0) != len(tag_ids):
            raise NotFoundError("Tag not found")

    async def assign(self, client_id: str, tag_id: str) -> None:
        await self._ensure_client(client_id)
        await self._ensure_tags([tag_id])

        try:
            await self.db.execute(
                insert(ClientTagAssignment).values(client_id=client_id, tag_id=tag_id)
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Tag already assigned to client")

    async def unassign(self, client_id: str, tag_id: str) -> None:
        """Remove uma atribuicao; no-op se nao existir"""
        await self.db.execute(
            delete(ClientTagAssignment).where(
                ClientTagAssignment.client_id == client_id,
                ClientTagAssignment.tag_id == tag_id,
            )
        )
        await self.db.commit()

    async def set_assignments(self, client_id: str, tag_ids: Iterable[str]) -> Set[str]:
        """
        Substitui as tags do cliente pelo conjunto informado.

        Delete e insert rodam na mesma transacao; ids repetidos sao
        ignorados. Ao terminar, as atribuicoes sao exatamente tag_ids.
        """
        wanted = dedupe(tag_ids)
        await self._ensure_client(client_id)
        await self._ensure_tags(wanted)

        try:
            await self.db.execute(
                delete(ClientTagAssignment).where(ClientTagAssignment.client_id == client_id)
            )
            if wanted:
                await self.db.execute(
                    insert(ClientTagAssignment),
                    [{"client_id": client_id, "tag_id": tag_id} for tag_id in wanted],
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Client {client_id} tags replaced ({len(wanted)} tags)")
        return set(wanted)

    async def assignments_for(self, client_ids: List[str]) -> dict:
        """Mapa client_id -> tag_ids para varios clientes em uma consulta"""
        mapping = {client_id: [] for client_id in client_ids}
        if not client_ids:
            return mapping
        result = await self.db.execute(
            select(ClientTagAssignment.client_id, ClientTagAssignment.tag_id).where(
                ClientTagAssignment.client_id.in_(client_ids)
            )
        )
        for client_id, tag_id in result.all():
            mapping[client_id].append(tag_id)
        return mapping

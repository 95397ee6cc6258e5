"""
Inventory Server - Clients Service
Acesso a dados de clientes
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.core.errors import NotFoundError
from inventory_server.models import Client, ClientTagAssignment, Device, DeviceAssignment, DeviceStatus
from inventory_server.schemas import ClientFormValues
from inventory_server.services import audit

logger = logging.getLogger(__name__)

# Colunas do export CSV de clientes
CLIENT_EXPORT_COLUMNS = [
    "id",
    "name",
    "industry",
    "contact_name",
    "email",
    "phone",
    "address",
    "billing_address",
    "tax_number",
    "is_active",
    "created_at",
]


def _column_values(values: ClientFormValues) -> dict:
    data = values.model_dump()
    # email vazio e ausencia de email
    data["email"] = data["email"] or None
    return data


class ClientRepository:
    """CRUD de clientes sobre uma sessao explicita"""

    def __init__(self, db: AsyncSession, user_id: Optional[str] = None):
        self.db = db
        self.user_id = user_id

    async def list(
        self,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        tag_ids: Optional[List[str]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Client]:
        query = select(Client)

        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.contact_name.ilike(pattern),
                )
            )

        if active is not None:
            query = query.where(Client.is_active == active)

        if tag_ids:
            query = query.where(
                Client.id.in_(
                    select(ClientTagAssignment.client_id).where(ClientTagAssignment.tag_id.in_(tag_ids))
                )
            )

        query = query.order_by(Client.name).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, client_id: str) -> Client:
        client = await self.db.get(Client, client_id)
        if not client:
            raise NotFoundError("Client not found")
        return client

    async def create(self, values: ClientFormValues) -> Client:
        client = Client(**_column_values(values))
        self.db.add(client)
        await self.db.commit()
        await self.db.refresh(client)

        logger.info(f"Client created: {client.name} ({client.id})")
        await audit.record_audit(
            self.db, audit.CLIENT_CREATED, "clients", client.id, user_id=self.user_id
        )
        return client

    async def update(self, client_id: str, values: ClientFormValues) -> Client:
        client = await self.get(client_id)
        for field, value in _column_values(values).items():
            setattr(client, field, value)
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def delete(self, client_id: str) -> None:
        """
        Remove o cliente.

        Atribuicoes de dispositivos em aberto sao concluidas e os
        dispositivos voltam para o estoque antes da exclusao.
        """
        client = await self.get(client_id)

        result = await self.db.execute(
            select(DeviceAssignment).where(
                DeviceAssignment.client_id == client_id,
                DeviceAssignment.unassigned_at.is_(None),
            )
        )
        now = datetime.utcnow()
        for assignment in result.scalars().all():
            assignment.unassigned_at = now
            assignment.status = "completed"
            await self.db.execute(
                update(Device)
                .where(Device.id == assignment.device_id)
                .values(status=DeviceStatus.IN_STOCK.value)
            )

        await self.db.delete(client)
        await self.db.commit()

        logger.info(f"Client deleted: {client_id}")
        await audit.record_audit(
            self.db, audit.CLIENT_DELETED, "clients", client_id, user_id=self.user_id
        )

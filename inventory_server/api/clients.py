"""
Inventory Server - Clients API
CRUD de clientes, formulario com tags e export CSV
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.database import get_db
from inventory_server.models import Client, Profile
from inventory_server.schemas import (
    ClientFormRequest,
    ClientResponse,
    TagAssignmentsResponse,
    TagAssignmentsUpdate,
)
from inventory_server.services.client_form import ClientFormWorkflow, FormState
from inventory_server.services.clients import ClientRepository, CLIENT_EXPORT_COLUMNS
from inventory_server.services.csv_export import csv_response
from inventory_server.services.tags import TagService
from inventory_server.api.auth import get_current_profile

router = APIRouter(prefix="/clients", tags=["Clients"])


def _client_payload(client: Client, tag_ids) -> dict:
    data = client.to_dict()
    data["tag_ids"] = sorted(tag_ids)
    return data


async def _submit(workflow: ClientFormWorkflow, request: ClientFormRequest) -> dict:
    """Roda o workflow; erros de formulario ou de gravacao sobem como AppError"""
    workflow.update_draft(request.form_data())
    if request.tag_ids is not None:
        workflow.select_tags(request.tag_ids)

    client = await workflow.submit()
    if workflow.state == FormState.EDITING:
        raise workflow.form_error
    if workflow.state == FormState.ERROR:
        raise workflow.exception

    return _client_payload(client, workflow.original_tag_ids)


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    search: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    tag_ids: Optional[List[str]] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(25, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Lista clientes (busca, ativos, filtro por tags)"""
    clients = await ClientRepository(db).list(
        search=search, active=active, tag_ids=tag_ids, skip=skip, limit=limit
    )
    tags = await TagService(db).assignments_for([c.id for c in clients])
    return [_client_payload(c, tags[c.id]) for c in clients]


@router.get("/export")
async def export_clients(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Download CSV da lista de clientes"""
    clients = await ClientRepository(db).list(limit=10000)
    return csv_response([c.to_dict() for c in clients], "clients.csv", CLIENT_EXPORT_COLUMNS)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Retorna um cliente específico"""
    client = await ClientRepository(db).get(client_id)
    tag_ids = await TagService(db).list_assignments(client_id)
    return _client_payload(client, tag_ids)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    request: ClientFormRequest,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Cria cliente e aplica as tags selecionadas"""
    workflow = ClientFormWorkflow(db, user_id=profile.id)
    return await _submit(workflow, request)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    request: ClientFormRequest,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Atualiza cliente; tags so sao regravadas se a selecao mudou"""
    workflow = await ClientFormWorkflow.load(db, client_id, user_id=profile.id)
    return await _submit(workflow, request)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Remove cliente (devolve dispositivos ao estoque)"""
    await ClientRepository(db, user_id=profile.id).delete(client_id)
    return {"message": "Client deleted successfully"}


# ============================================
# TAGS DO CLIENTE
# ============================================

@router.get("/{client_id}/tags", response_model=TagAssignmentsResponse)
async def get_client_tags(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    tag_ids = await TagService(db).list_assignments(client_id)
    return {"client_id": client_id, "tag_ids": sorted(tag_ids)}


@router.put("/{client_id}/tags", response_model=TagAssignmentsResponse)
async def set_client_tags(
    client_id: str,
    request: TagAssignmentsUpdate,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    """Substitui todas as tags do cliente"""
    tag_ids = await TagService(db).set_assignments(client_id, request.tag_ids)
    return {"client_id": client_id, "tag_ids": sorted(tag_ids)}


@router.post("/{client_id}/tags/{tag_id}", status_code=status.HTTP_201_CREATED)
async def assign_client_tag(
    client_id: str,
    tag_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    await TagService(db).assign(client_id, tag_id)
    return {"client_id": client_id, "tag_id": tag_id}


@router.delete("/{client_id}/tags/{tag_id}")
async def unassign_client_tag(
    client_id: str,
    tag_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile)
):
    await TagService(db).unassign(client_id, tag_id)
    return {"message": "Tag removed"}

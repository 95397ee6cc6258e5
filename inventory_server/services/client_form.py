"""
Inventory Server - Client Form Workflow
Orquestra rascunho, validacao, gravacao e sincronizacao de tags
como uma unica transacao do usuario
"""
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from inventory_server.core.errors import AppError, ClientFormError
from inventory_server.models import Client
from inventory_server.schemas import CLIENT_FORM_FIELDS, validate_client_form
from inventory_server.services.clients import ClientRepository
from inventory_server.services.tags import TagService, dedupe

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


def _draft_from(client: Optional[Client]) -> Dict[str, str]:
    draft = {field: "" for field in CLIENT_FORM_FIELDS}
    if client is not None:
        for field in CLIENT_FORM_FIELDS:
            value = getattr(client, field, None)
            draft[field] = "" if value is None else str(value)
    return draft


class ClientFormWorkflow:
    """
    Maquina de estados editing -> submitting -> success | error.

    Formulario invalido fica em editing sem tocar no banco. Em erro o
    rascunho e mantido para o usuario tentar de novo.
    """

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[Client] = None,
        original_tag_ids: Iterable[str] = (),
        user_id: Optional[str] = None,
    ):
        self.clients = ClientRepository(db, user_id=user_id)
        self.tags = TagService(db)

        self.client_id = client.id if client is not None else None
        self.draft = _draft_from(client)
        self.original_tag_ids = set(original_tag_ids)
        self.selected_tag_ids: List[str] = sorted(self.original_tag_ids)

        self.state = FormState.EDITING
        self.field_errors: Dict[str, str] = {}
        self.form_error: Optional[ClientFormError] = None
        self.error: Optional[str] = None
        self.exception: Optional[Exception] = None
        self.result: Optional[Client] = None

    @classmethod
    async def load(
        cls,
        db: AsyncSession,
        client_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> "ClientFormWorkflow":
        """Rascunho padrao (novo) ou espelho de um cliente existente"""
        if not client_id:
            return cls(db, user_id=user_id)
        client = await ClientRepository(db).get(client_id)
        assigned = await TagService(db).list_assignments(client_id)
        return cls(db, client=client, original_tag_ids=assigned, user_id=user_id)

    @property
    def is_new(self) -> bool:
        return self.client_id is None

    @property
    def tags_changed(self) -> bool:
        return set(self.selected_tag_ids) != self.original_tag_ids

    def edit(self, field: str, value: Any) -> None:
        """Altera um campo; limpa o erro dele e volta para editing"""
        if field not in self.draft:
            raise KeyError(field)
        self.draft[field] = "" if value is None else value
        self.field_errors.pop(field, None)
        self.state = FormState.EDITING

    def update_draft(self, values: Dict[str, Any]) -> None:
        for field, value in values.items():
            if field in self.draft and value is not None:
                self.edit(field, value)

    def select_tags(self, tag_ids: Iterable[str]) -> None:
        self.selected_tag_ids = dedupe(tag_ids)

    async def submit(self) -> Optional[Client]:
        """
        Valida e grava.

        Ordem estrita: cliente primeiro, tags depois (o id precisa existir).
        Retorna o cliente em sucesso, None caso contrario (ver state).
        """
        try:
            values = validate_client_form(self.draft)
        except ClientFormError as exc:
            self.form_error = exc
            self.field_errors = exc.messages
            self.state = FormState.EDITING
            return None

        self.form_error = None
        self.field_errors = {}
        self.error = None
        self.exception = None
        self.state = FormState.SUBMITTING

        try:
            if self.is_new:
                client = await self.clients.create(values)
            else:
                client = await self.clients.update(self.client_id, values)
            # Nova tentativa depois de falha nas tags atualiza em vez de duplicar
            self.client_id = client.id

            if self.tags_changed:
                applied = await self.tags.set_assignments(client.id, self.selected_tag_ids)
                self.original_tag_ids = applied
        except Exception as exc:
            self.exception = exc
            self.error = exc.message if isinstance(exc, AppError) else (str(exc) or "Failed to save client")
            self.state = FormState.ERROR
            logger.warning(f"Client form submit failed: {self.error}")
            return None

        self.result = client
        self.state = FormState.SUCCESS
        return client

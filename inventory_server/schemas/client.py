"""
Inventory Server - Client Schemas
Formulario de cliente: normalizacao e validacao em uma unica passada
"""
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from inventory_server.core.errors import (
    ClientFormError,
    FieldError,
    InvalidFormatError,
    RequiredFieldError,
)

# local@domain.tld basico, sem validacao RFC completa
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CLIENT_FORM_FIELDS = (
    "name",
    "industry",
    "contact_name",
    "email",
    "phone",
    "address",
    "billing_address",
    "tax_number",
    "notes",
)

NAME_REQUIRED = "Name is required"
EMAIL_INVALID = "Enter a valid email address"


class ClientFormValues(BaseModel):
    """Registro normalizado: textos aparados, vazio vira string vazia"""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1)
    industry: str = ""
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    billing_address: str = ""
    tax_number: str = ""
    notes: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if not isinstance(value, str):
            return str(value)
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if value and not EMAIL_PATTERN.match(value):
            raise ValueError(EMAIL_INVALID)
        return value


def _field_error(field: str, error: dict) -> FieldError:
    if field == "name":
        return RequiredFieldError(field, NAME_REQUIRED)
    if field == "email":
        return InvalidFormatError(field, EMAIL_INVALID)
    return InvalidFormatError(field, error.get("msg", "Invalid value"))


def validate_client_form(data: Dict[str, Any]) -> ClientFormValues:
    """
    Valida o formulario de cliente.

    Coleta todos os campos invalidos de uma vez (ClientFormError) para
    que o formulario mostre todos os problemas juntos.
    """
    try:
        return ClientFormValues.model_validate(data or {})
    except PydanticValidationError as exc:
        errors: Dict[str, FieldError] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error.get("loc") else "__root__"
            if field not in errors:
                errors[field] = _field_error(field, error)
        raise ClientFormError(errors) from None


class ClientFormRequest(BaseModel):
    """Corpo cru do formulario; a validacao acontece no workflow"""
    name: Optional[str] = None
    industry: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    billing_address: Optional[str] = None
    tax_number: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: Optional[List[str]] = None

    def form_data(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"tag_ids"})


class ClientResponse(BaseModel):
    id: str
    name: str
    industry: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    billing_address: Optional[str] = None
    tax_number: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tag_ids: List[str] = []

    class Config:
        from_attributes = True

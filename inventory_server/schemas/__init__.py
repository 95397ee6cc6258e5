from .client import (
    ClientFormValues,
    ClientFormRequest,
    ClientResponse,
    CLIENT_FORM_FIELDS,
    validate_client_form
)
from .tag import TagCreate, TagUpdate, TagResponse, TagAssignmentsUpdate, TagAssignmentsResponse
from .report import DeviceStatusBreakdownRow, RevenueByMonthRow, ProviderSpendRow, ReportResult

__all__ = [
    "ClientFormValues",
    "ClientFormRequest",
    "ClientResponse",
    "CLIENT_FORM_FIELDS",
    "validate_client_form",
    "TagCreate",
    "TagUpdate",
    "TagResponse",
    "TagAssignmentsUpdate",
    "TagAssignmentsResponse",
    "DeviceStatusBreakdownRow",
    "RevenueByMonthRow",
    "ProviderSpendRow",
    "ReportResult"
]

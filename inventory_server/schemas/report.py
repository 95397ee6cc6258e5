"""
Inventory Server - Report Schemas
Linhas derivadas, recalculadas a cada consulta
"""
from pydantic import BaseModel
from typing import List, Optional


class DeviceStatusBreakdownRow(BaseModel):
    status: str
    count: int


class RevenueByMonthRow(BaseModel):
    month: str
    revenue: float


class ProviderSpendRow(BaseModel):
    provider_name: str
    total: float


class ReportResult(BaseModel):
    """Resultado de um pipeline; erro de um nao bloqueia os outros"""
    data: Optional[List[dict]] = None
    error: Optional[str] = None

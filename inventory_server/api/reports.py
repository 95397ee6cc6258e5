"""
Inventory Server - Reports API
Relatorios agregados e download CSV
"""
import logging
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker

from inventory_server.database import get_session_factory
from inventory_server.models import Profile
from inventory_server.core.errors import AppError, NotFoundError
from inventory_server.schemas import (
    DeviceStatusBreakdownRow,
    RevenueByMonthRow,
    ProviderSpendRow,
    ReportResult,
)
from inventory_server.services.csv_export import csv_response
from inventory_server.services.reports import ReportService, REPORTS
from inventory_server.api.auth import get_current_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

# Nome publico -> modelo da linha
REPORT_ROWS = {
    "device-status": DeviceStatusBreakdownRow,
    "revenue-by-month": RevenueByMonthRow,
    "provider-spend": ProviderSpendRow,
}


def _columns(name: str):
    return list(REPORT_ROWS[name].model_fields)


@router.get("", response_model=Dict[str, ReportResult])
async def get_reports(
    months_back: Optional[int] = Query(None, ge=0, le=120),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    profile: Profile = Depends(get_current_profile)
):
    """Os tres relatorios; erro de um aparece no proprio bloco"""
    return await ReportService(session_factory).run_all(months_back=months_back)


@router.get("/{name}")
async def get_report(
    name: str,
    months_back: Optional[int] = Query(None, ge=0, le=120),
    format: str = Query("json", pattern="^(json|csv)$"),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    profile: Profile = Depends(get_current_profile)
):
    """Um relatorio (refazer a consulta e o retry manual)"""
    if name not in REPORTS:
        raise NotFoundError("Report not found")

    kwargs = {"months_back": months_back} if name == "revenue-by-month" else {}
    try:
        rows = await ReportService(session_factory).run(name, **kwargs)
    except AppError:
        raise
    except Exception:
        logger.exception(f"Report {name} failed")
        raise AppError(f"Failed to load report {name}", 500)

    if format == "csv":
        return csv_response(rows, f"{name}.csv", _columns(name))

    row_model = REPORT_ROWS[name]
    return [row_model(**row) for row in rows]

"""
Inventory Server - Reports Service
Tres pipelines independentes de leitura-e-reducao:
status de dispositivos, receita por mes e gasto por fornecedor
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory_server.core.config import settings
from inventory_server.models import ClientInvoice, Device, ProviderPayment, REVENUE_STATUSES
from inventory_server.services.relations import related_field

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "unknown"
UNKNOWN_PROVIDER = "Unknown"


# ============================================
# REDUCOES (puras)
# ============================================

def device_status_breakdown(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Conta dispositivos por status, na ordem da primeira ocorrencia"""
    counts: Dict[str, int] = {}
    for row in rows:
        status = row.get("status")
        if status is None:
            status = UNKNOWN_STATUS
        counts[status] = counts.get(status, 0) + 1
    return [{"status": status, "count": count} for status, count in counts.items()]


def month_key(issued_at: Any) -> str:
    """Prefixo YYYY-MM de uma data (date ou string ISO); vazio se ausente"""
    if not issued_at:
        return ""
    if isinstance(issued_at, date):
        return issued_at.strftime("%Y-%m")
    return str(issued_at)[:7]


def revenue_by_month(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Soma amount por mes de emissao.

    O filtro de status e aplicado na consulta; linhas sem issued_at sao
    descartadas e amount ausente conta como 0. Saida em ordem crescente
    de mes.
    """
    by_month: Dict[str, float] = {}
    for row in rows:
        month = month_key(row.get("issued_at"))
        if not month:
            continue
        by_month[month] = by_month.get(month, 0) + (row.get("amount") or 0)
    return [{"month": month, "revenue": by_month[month]} for month in sorted(by_month)]


def provider_spend(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Soma pagamentos por nome do fornecedor; sem fornecedor vai para 'Unknown'"""
    by_provider: Dict[str, float] = {}
    for row in rows:
        name = related_field(row.get("providers"), "name")
        if name is None:
            name = UNKNOWN_PROVIDER
        by_provider[name] = by_provider.get(name, 0) + (row.get("amount") or 0)
    return [{"provider_name": name, "total": total} for name, total in by_provider.items()]


def revenue_window_start(today: date, months_back: int) -> date:
    """Primeiro dia do mes, months_back meses antes de today"""
    index = today.year * 12 + (today.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


# ============================================
# CONSULTAS
# ============================================

async def fetch_device_statuses(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(select(Device.status))
    return [{"status": status} for status in result.scalars().all()]


async def fetch_revenue_rows(db: AsyncSession, start: date) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(ClientInvoice.issued_at, ClientInvoice.amount, ClientInvoice.status).where(
            ClientInvoice.issued_at >= start,
            ClientInvoice.status.in_(REVENUE_STATUSES),
        )
    )
    return [
        {
            "issued_at": issued_at.isoformat() if issued_at else None,
            "amount": amount,
            "status": status,
        }
        for issued_at, amount, status in result.all()
    ]


async def fetch_provider_payments(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(select(ProviderPayment))
    return [
        {
            "amount": payment.amount,
            "providers": payment.provider.to_dict() if payment.provider else None,
        }
        for payment in result.scalars().all()
    ]


class ReportService:
    """
    Executa os pipelines de relatorio.

    Cada pipeline abre a propria sessao e recalcula do zero, entao podem
    rodar em paralelo e ser refeitos isoladamente.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def device_status_breakdown(self) -> List[Dict[str, Any]]:
        async with self.session_factory() as db:
            rows = await fetch_device_statuses(db)
        return device_status_breakdown(rows)

    async def revenue_by_month(
        self,
        months_back: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        if months_back is None:
            months_back = settings.REPORT_MONTHS_BACK
        start = revenue_window_start(today or date.today(), months_back)
        async with self.session_factory() as db:
            rows = await fetch_revenue_rows(db, start)
        return revenue_by_month(rows)

    async def provider_spend(self) -> List[Dict[str, Any]]:
        async with self.session_factory() as db:
            rows = await fetch_provider_payments(db)
        return provider_spend(rows)

    async def run(self, name: str, **kwargs) -> List[Dict[str, Any]]:
        """Executa um relatorio pelo nome publico (ex: 'revenue-by-month')"""
        if name not in REPORTS:
            raise KeyError(name)
        return await getattr(self, REPORTS[name])(**kwargs)

    async def run_all(self, months_back: Optional[int] = None) -> Dict[str, Dict[str, Any]]:
        """
        Busca os tres relatorios em paralelo.

        Falha de um relatorio vira {"error": ...} sem cancelar os outros.
        """
        names = list(REPORTS)
        outcomes = await asyncio.gather(
            self.device_status_breakdown(),
            self.revenue_by_month(months_back=months_back),
            self.provider_spend(),
            return_exceptions=True,
        )

        results = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Report {name} failed: {outcome}")
                results[name] = {"data": None, "error": str(outcome) or type(outcome).__name__}
            else:
                results[name] = {"data": outcome, "error": None}
        return results


# Nome publico -> metodo (ordem usada por run_all)
REPORTS = {
    "device-status": "device_status_breakdown",
    "revenue-by-month": "revenue_by_month",
    "provider-spend": "provider_spend",
}

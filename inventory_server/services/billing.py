"""
Inventory Server - Billing Service
Geracao de faturas do periodo (RPC do banco)
"""
import logging
from typing import Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def generated_count(value: Any):
    """Contagem devolvida pela RPC; nao numerico vira 0"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


async def generate_period_invoices(db: AsyncSession):
    """Executa generate_period_invoices() no banco e retorna quantas faturas foram criadas"""
    result = await db.execute(select(func.generate_period_invoices()))
    count = generated_count(result.scalar())
    await db.commit()
    logger.info(f"Period invoices generated: {count}")
    return count


def get_invoice_generator():
    """Dependency: operacao de geracao em lote"""
    return generate_period_invoices

"""
Inventory Server - Database Session
"""
import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base

from inventory_server.core.config import settings

logger = logging.getLogger(__name__)

# Base para models
Base = declarative_base()


def create_engine(url: str, **kwargs) -> AsyncEngine:
    """Engine assincrono; no SQLite liga as foreign keys em cada conexao"""
    engine = create_async_engine(url, echo=settings.DEBUG, pool_pre_ping=True, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


engine = create_engine(settings.db_url)

# Session factory
AsyncSessionLocal = create_session_factory(engine)


async def get_db() -> AsyncSession:
    """Dependency para injetar sessão do banco"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """Dependency para operacoes que abrem as proprias sessoes (reports)"""
    return AsyncSessionLocal


async def init_db(target: AsyncEngine = None):
    """Inicializa banco de dados (cria tabelas)"""
    # Registra todos os models no metadata
    import inventory_server.models  # noqa: F401

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")

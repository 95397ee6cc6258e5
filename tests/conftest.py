"""
Test configuration - banco SQLite temporario por teste e helpers de auth.

Cada teste recebe um arquivo SQLite novo; as dependencias get_db e
get_session_factory do app apontam para ele.
"""
import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from inventory_server.core import create_access_token
from inventory_server.core.rate_limit import limiter
from inventory_server.database import (
    create_engine,
    create_session_factory,
    get_db,
    get_session_factory,
    init_db,
)
from inventory_server.main import app
from inventory_server.models import Profile


@pytest.fixture
def session_factory(tmp_path):
    """Session factory sobre um SQLite novo com todas as tabelas"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield create_session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Executa uma coroutine fn(session) em uma sessao nova"""
    def _run(fn):
        async def _go():
            async with session_factory() as session:
                return await fn(session)
        return asyncio.run(_go())
    return _run


@pytest.fixture
def add(run_db):
    """Persiste objetos ORM e devolve o primeiro (ou a lista)"""
    def _add(*objects):
        async def _go(session):
            session.add_all(objects)
            await session.commit()
            for obj in objects:
                await session.refresh(obj)
            return objects[0] if len(objects) == 1 else list(objects)
        return run_db(_go)
    return _add


@pytest.fixture
def client(session_factory):
    """TestClient com o banco de teste"""
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(add):
    """Cria um perfil com o papel dado e devolve os headers Authorization"""
    def _headers(role="admin"):
        profile = add(Profile(full_name=f"Test {role}", role=role))
        token = create_access_token({"sub": profile.id})
        return {"Authorization": f"Bearer {token}"}
    return _headers

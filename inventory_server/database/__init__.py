from .session import (
    Base,
    engine,
    AsyncSessionLocal,
    create_engine,
    create_session_factory,
    get_db,
    get_session_factory,
    init_db
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "create_engine",
    "create_session_factory",
    "get_db",
    "get_session_factory",
    "init_db"
]

from .auth import router as auth_router
from .clients import router as clients_router
from .tags import router as tags_router
from .reports import router as reports_router
from .functions import router as functions_router

__all__ = [
    "auth_router",
    "clients_router",
    "tags_router",
    "reports_router",
    "functions_router"
]

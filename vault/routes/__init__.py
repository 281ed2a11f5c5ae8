"""API routes package."""

from vault.routes.batch_routes import router as batch_router
from vault.routes.channel_routes import router as channel_router
from vault.routes.file_routes import router as file_router
from vault.routes.history_routes import router as history_router
from vault.routes.settings_routes import router as settings_router
from vault.routes.shared_routes import router as shared_router

__all__ = [
    "batch_router",
    "channel_router",
    "file_router",
    "history_router",
    "settings_router",
    "shared_router",
]

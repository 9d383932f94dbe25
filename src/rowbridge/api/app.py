"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..service import RowBridge
from .routes import router

# Global bridge instance
_bridge: Optional[RowBridge] = None


def get_bridge() -> RowBridge:
    """Get the global bridge instance."""
    global _bridge
    if _bridge is None:
        _bridge = RowBridge()
    return _bridge


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    bridge = get_bridge()
    await bridge.initialize()
    yield
    # Shutdown
    bridge.interrupt_imports()
    await bridge.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="rowbridge",
        description="CSV import and export driven by mapping configurations",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(router, prefix="/api")

    return app

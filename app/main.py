"""
Standalone FastAPI app wiring for MemoryGraph.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

import core.config as config
from core.db import build_engine, init_db
from core.mcp import MCPRouteNormalizerASGI, create_mcp_server
from core.services.graph_store import GraphStore
from app.middleware import configure_middleware
from app.routes.health import router as health_router
from app.routes.root import router as root_router


def create_app(store: Optional[GraphStore] = None, initialize: bool = True):
    """
    Build the HTTP app around one graph store.

    The MCP streamable-HTTP endpoint is mounted at ``/mcp``; ``/`` and the
    ``/health`` routes report on the store and tool inventory.
    """
    if store is None:
        config.validate_and_prepare_config()
        store = GraphStore(build_engine())

    mcp = create_mcp_server(store)
    mcp_stream_app = mcp.http_app(
        path="/",
        transport="streamable-http",
        stateless_http=True,
        json_response=True,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize on startup, cleanup on shutdown."""
        if initialize:
            await asyncio.to_thread(init_db, store.engine)
        try:
            async with mcp_stream_app.lifespan(mcp_stream_app):
                yield
        finally:
            store.close()

    app = FastAPI(title=config.SERVICE_NAME, redirect_slashes=False, lifespan=lifespan)
    app.state.store = store
    app.state.mcp = mcp
    configure_middleware(app)

    # Health and root endpoints
    app.include_router(health_router)
    app.include_router(root_router)

    app.mount("/mcp/", mcp_stream_app)

    return MCPRouteNormalizerASGI(app)

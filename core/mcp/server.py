"""
MCP server wiring and tool registration.
"""

from typing import Optional

from fastmcp import FastMCP

import core.config as config
from core.schemas import (
    EntityPayload,
    ObservationAdditionPayload,
    ObservationDeletionPayload,
    RelationPayload,
)
from core.services import graph_service
from core.services.graph_store import GraphStore

READ_ONLY_TOOL_ANNOTATIONS = {"readOnlyHint": True}
DESTRUCTIVE_TOOL_ANNOTATIONS = {"destructiveHint": True}


def create_mcp_server(store: GraphStore, name: Optional[str] = None) -> FastMCP:
    """Build a FastMCP server whose tools operate on ``store``."""
    mcp = FastMCP(name or config.SERVICE_NAME)

    @mcp.tool()
    def create_entities(entities: list[EntityPayload]) -> list[dict]:
        """Create multiple new entities in the knowledge graph"""
        return graph_service.create_entities(store, entities)

    @mcp.tool()
    def create_relations(relations: list[RelationPayload]) -> list[dict]:
        """Create multiple new relations between entities in the knowledge graph. Relations should be in active voice"""
        return graph_service.create_relations(store, relations)

    @mcp.tool()
    def add_observations(observations: list[ObservationAdditionPayload]) -> list[dict]:
        """Add new observations to existing entities in the knowledge graph"""
        return graph_service.add_observations(store, observations)

    @mcp.tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
    def delete_entities(entityNames: list[str]) -> str:
        """Delete multiple entities and their associated relations from the knowledge graph"""
        return graph_service.delete_entities(store, entityNames)

    @mcp.tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
    def delete_observations(deletions: list[ObservationDeletionPayload]) -> str:
        """Delete specific observations from entities in the knowledge graph"""
        return graph_service.delete_observations(store, deletions)

    @mcp.tool(annotations=DESTRUCTIVE_TOOL_ANNOTATIONS)
    def delete_relations(relations: list[RelationPayload]) -> str:
        """Delete multiple relations from the knowledge graph"""
        return graph_service.delete_relations(store, relations)

    @mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
    def read_graph() -> dict:
        """Read the entire knowledge graph"""
        return graph_service.read_graph(store)

    @mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
    def search_nodes(query: str) -> dict:
        """Search for nodes in the knowledge graph based on a query"""
        return graph_service.search_nodes(store, query)

    @mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
    def open_nodes(names: list[str]) -> dict:
        """Open specific nodes in the knowledge graph by their names"""
        return graph_service.open_nodes(store, names)

    return mcp


async def tool_inventory_status(mcp: FastMCP) -> dict:
    """Return tool inventory details for health reporting."""
    tools = await mcp.get_tools()
    tool_names = sorted(tools.keys())
    tool_count = len(tool_names)
    if tool_count == 0:
        config.logger.warning("tool_inventory_empty", extra={"tool_count": tool_count})
    return {
        "tool_count": tool_count,
        "tools": tool_names,
    }


class MCPRouteNormalizerASGI:
    """Pure ASGI middleware - no response buffering, SSE-safe."""
    def __init__(self, wrapped_app):
        self.wrapped_app = wrapped_app

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope.get("path") == "/mcp":
            scope = dict(scope)
            scope["path"] = "/mcp/"
        await self.wrapped_app(scope, receive, send)

from core.mcp.server import (
    create_mcp_server,
    tool_inventory_status,
    MCPRouteNormalizerASGI,
    READ_ONLY_TOOL_ANNOTATIONS,
    DESTRUCTIVE_TOOL_ANNOTATIONS,
)

__all__ = [
    "create_mcp_server",
    "tool_inventory_status",
    "MCPRouteNormalizerASGI",
    "READ_ONLY_TOOL_ANNOTATIONS",
    "DESTRUCTIVE_TOOL_ANNOTATIONS",
]

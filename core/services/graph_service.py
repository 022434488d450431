"""
Request dispatch for knowledge graph tools.

Payloads arrive in the agent-facing camelCase shapes, are parsed into records
before any transaction opens, and leave as JSON-ready dicts.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional, Sequence

from fastmcp.exceptions import ToolError

import core.config as config
from core.errors import (
    EntityNotFoundError,
    GraphIntegrityError,
    StoreUnavailableError,
    ValidationIssue,
)
from core.schemas import (
    parse_entities,
    parse_entity_names,
    parse_observation_additions,
    parse_observation_deletions,
    parse_query,
    parse_relations,
)
from core.services.graph_store import GraphStore

logger = config.logger


# =============================================================================
# Helper Functions
# =============================================================================

def _log_validation_issue(tool_name: str, exc: ValidationIssue) -> None:
    logger.info(
        "tool_validation_error",
        extra={
            "tool": tool_name,
            "field": exc.field,
            "error_type": exc.error_type,
            "detail": str(exc),
        },
    )


def _tool_error_handler(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ValidationIssue as exc:
            _log_validation_issue(fn.__name__, exc)
            raise ToolError(f"Invalid {exc.field}: {exc}") from exc
        except EntityNotFoundError as exc:
            logger.info(
                "tool_entity_not_found",
                extra={"tool": fn.__name__, "entity_name": exc.entity_name},
            )
            raise ToolError(str(exc)) from exc
        except StoreUnavailableError as exc:
            logger.warning("tool_store_unavailable", extra={"tool": fn.__name__})
            raise ToolError("Knowledge graph storage is unavailable") from exc
        except GraphIntegrityError as exc:
            logger.warning("tool_integrity_error", extra={"tool": fn.__name__})
            raise ToolError(str(exc)) from exc
    return wrapper


def service_tool(fn: Callable[..., Any]) -> Callable[..., Any]:
    return _tool_error_handler(fn)


# =============================================================================
# Mutations
# =============================================================================

@service_tool
def create_entities(store: GraphStore, entities: Optional[Sequence[dict]]) -> list[dict]:
    """
    Create entities that do not exist yet.

    Returns:
        The newly created entities, in input order.
    """
    records = parse_entities(entities)
    return [record.to_dict() for record in store.create_entities(records)]


@service_tool
def create_relations(store: GraphStore, relations: Optional[Sequence[dict]]) -> list[dict]:
    """Create relations between existing entities; returns the new ones."""
    records = parse_relations(relations)
    return [record.to_dict() for record in store.create_relations(records)]


@service_tool
def add_observations(store: GraphStore, observations: Optional[Sequence[dict]]) -> list[dict]:
    """
    Append observations to existing entities.

    Every entityName must exist; otherwise nothing from the batch is stored.
    """
    records = parse_observation_additions(observations)
    return [result.to_dict() for result in store.add_observations(records)]


@service_tool
def delete_entities(store: GraphStore, entity_names: Optional[Sequence[str]]) -> str:
    names = parse_entity_names(entity_names)
    store.delete_entities(names)
    return "Entities deleted successfully"


@service_tool
def delete_observations(store: GraphStore, deletions: Optional[Sequence[dict]]) -> str:
    records = parse_observation_deletions(deletions)
    store.delete_observations(records)
    return "Observations deleted successfully"


@service_tool
def delete_relations(store: GraphStore, relations: Optional[Sequence[dict]]) -> str:
    records = parse_relations(relations)
    store.delete_relations(records)
    return "Relations deleted successfully"


# =============================================================================
# Reads
# =============================================================================

@service_tool
def read_graph(store: GraphStore) -> dict:
    return store.read_graph().to_dict()


@service_tool
def search_nodes(store: GraphStore, query: Any) -> dict:
    """
    Case-insensitive substring search over names, types and observations.

    Returns the matching entities plus the relations among them.
    """
    return store.search_nodes(parse_query(query)).to_dict()


@service_tool
def open_nodes(store: GraphStore, names: Optional[Sequence[str]]) -> dict:
    return store.open_nodes(parse_entity_names(names, field="names")).to_dict()


__all__ = [
    "service_tool",
    "create_entities",
    "create_relations",
    "add_observations",
    "delete_entities",
    "delete_observations",
    "delete_relations",
    "read_graph",
    "search_nodes",
    "open_nodes",
]

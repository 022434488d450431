"""
Typed records for knowledge graph operations.

Every payload that crosses the tool boundary is parsed into one of these
frozen records before the store opens a transaction. Payload keys follow the
agent-facing camelCase contract (``entityType``, ``relationType``,
``entityName``); record attributes are snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from typing_extensions import TypedDict

import core.config as config
from core.errors import ValidationIssue
from core.validators import (
    validate_list,
    validate_mapping,
    validate_required_text,
    validate_string_list,
    validate_text,
)


# =============================================================================
# Payload shapes (tool input schema)
# =============================================================================

class EntityPayload(TypedDict):
    name: str
    entityType: str
    observations: list[str]


RelationPayload = TypedDict(
    "RelationPayload",
    {"from": str, "to": str, "relationType": str},
)


class ObservationAdditionPayload(TypedDict):
    entityName: str
    contents: list[str]


class ObservationDeletionPayload(TypedDict):
    entityName: str
    observations: list[str]


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class EntityRecord:
    name: str
    entity_type: str
    observations: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "entityType": self.entity_type,
            "observations": list(self.observations),
        }


@dataclass(frozen=True)
class RelationRecord:
    from_name: str
    to_name: str
    relation_type: str

    def to_dict(self) -> dict:
        return {
            "from": self.from_name,
            "to": self.to_name,
            "relationType": self.relation_type,
        }


@dataclass(frozen=True)
class ObservationAddition:
    entity_name: str
    contents: tuple[str, ...]


@dataclass(frozen=True)
class ObservationAdditionResult:
    entity_name: str
    added_observations: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "entityName": self.entity_name,
            "addedObservations": list(self.added_observations),
        }


@dataclass(frozen=True)
class ObservationDeletion:
    entity_name: str
    observations: tuple[str, ...]


@dataclass(frozen=True)
class KnowledgeGraph:
    entities: tuple[EntityRecord, ...] = ()
    relations: tuple[RelationRecord, ...] = ()

    @classmethod
    def empty(cls) -> "KnowledgeGraph":
        return cls()

    def to_dict(self) -> dict:
        return {
            "entities": [entity.to_dict() for entity in self.entities],
            "relations": [relation.to_dict() for relation in self.relations],
        }


# =============================================================================
# Parsing
# =============================================================================

def _field(item: dict, key: str, field: str) -> Any:
    if key not in item:
        raise ValidationIssue(f"{field} is required", field=field, error_type="required")
    return item[key]


def _parse_name(value: Any, field: str) -> str:
    validate_required_text(value, field, config.MAX_NAME_LENGTH)
    return value


def _parse_text(value: Any, field: str) -> str:
    validate_text(value, field, config.MAX_NAME_LENGTH)
    return value


def _parse_contents(value: Any, field: str) -> tuple[str, ...]:
    validate_string_list(value, field, config.MAX_BATCH_ITEMS, config.MAX_TEXT_LENGTH)
    return tuple(value)


def _parse_batch(items: Optional[Sequence], field: str) -> Sequence:
    validate_list(items, field, config.MAX_BATCH_ITEMS)
    return items


def parse_entities(items: Optional[Sequence[dict]]) -> list[EntityRecord]:
    records = []
    for index, raw in enumerate(_parse_batch(items, "entities")):
        prefix = f"entities[{index}]"
        item = validate_mapping(raw, prefix)
        records.append(
            EntityRecord(
                name=_parse_name(_field(item, "name", f"{prefix}.name"), f"{prefix}.name"),
                entity_type=_parse_text(
                    _field(item, "entityType", f"{prefix}.entityType"),
                    f"{prefix}.entityType",
                ),
                observations=_parse_contents(
                    item.get("observations", []),
                    f"{prefix}.observations",
                ),
            )
        )
    return records


def parse_relations(items: Optional[Sequence[dict]]) -> list[RelationRecord]:
    records = []
    for index, raw in enumerate(_parse_batch(items, "relations")):
        prefix = f"relations[{index}]"
        item = validate_mapping(raw, prefix)
        records.append(
            RelationRecord(
                from_name=_parse_text(_field(item, "from", f"{prefix}.from"), f"{prefix}.from"),
                to_name=_parse_text(_field(item, "to", f"{prefix}.to"), f"{prefix}.to"),
                relation_type=_parse_text(
                    _field(item, "relationType", f"{prefix}.relationType"),
                    f"{prefix}.relationType",
                ),
            )
        )
    return records


def parse_observation_additions(items: Optional[Sequence[dict]]) -> list[ObservationAddition]:
    records = []
    for index, raw in enumerate(_parse_batch(items, "observations")):
        prefix = f"observations[{index}]"
        item = validate_mapping(raw, prefix)
        records.append(
            ObservationAddition(
                entity_name=_parse_text(
                    _field(item, "entityName", f"{prefix}.entityName"),
                    f"{prefix}.entityName",
                ),
                contents=_parse_contents(
                    _field(item, "contents", f"{prefix}.contents"),
                    f"{prefix}.contents",
                ),
            )
        )
    return records


def parse_observation_deletions(items: Optional[Sequence[dict]]) -> list[ObservationDeletion]:
    records = []
    for index, raw in enumerate(_parse_batch(items, "deletions")):
        prefix = f"deletions[{index}]"
        item = validate_mapping(raw, prefix)
        records.append(
            ObservationDeletion(
                entity_name=_parse_text(
                    _field(item, "entityName", f"{prefix}.entityName"),
                    f"{prefix}.entityName",
                ),
                observations=_parse_contents(
                    _field(item, "observations", f"{prefix}.observations"),
                    f"{prefix}.observations",
                ),
            )
        )
    return records


def parse_entity_names(names: Optional[Sequence[str]], field: str = "entityNames") -> list[str]:
    validate_string_list(
        names,
        field,
        config.MAX_BATCH_ITEMS,
        config.MAX_NAME_LENGTH,
    )
    return list(names)


def parse_query(query: Any) -> str:
    validate_text(query, "query", config.MAX_QUERY_LENGTH)
    return query


__all__ = [
    "EntityPayload",
    "RelationPayload",
    "ObservationAdditionPayload",
    "ObservationDeletionPayload",
    "EntityRecord",
    "RelationRecord",
    "ObservationAddition",
    "ObservationAdditionResult",
    "ObservationDeletion",
    "KnowledgeGraph",
    "parse_entities",
    "parse_relations",
    "parse_observation_additions",
    "parse_observation_deletions",
    "parse_entity_names",
    "parse_query",
]

"""
One-shot import of a JSON-lines memory export into the graph store.

Each non-blank line holds one record, either
``{"type": "entity", "name", "entityType", "observations"}`` or
``{"type": "relation", "from", "to", "relationType"}``.
"""

from __future__ import annotations

import json
from os import PathLike
from typing import Union

import core.config as config
from core.errors import ValidationIssue
from core.schemas import EntityRecord, RelationRecord, parse_entities, parse_relations
from core.services.graph_store import GraphStore

logger = config.logger


def _skip_line(line_number: int, reason: str) -> None:
    logger.warning(
        f"Skipping invalid JSON line {line_number}: {reason}",
        extra={"line_number": line_number, "reason": reason},
    )


def import_jsonl(store: GraphStore, path: Union[str, PathLike]) -> dict:
    """
    Load entities, then relations, from ``path`` into ``store``.

    Entities go in as one batch before relations so every relation endpoint
    defined in the file resolves. Lines that are not JSON objects, carry an
    unknown ``type``, or fail validation are skipped.

    Returns:
        Counts of records found and created, plus the number of skipped lines.
    """
    entities: list[EntityRecord] = []
    relations: list[RelationRecord] = []
    skipped = 0

    logger.info(f"Reading from {path}...")
    with open(path, "r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError as exc:
                _skip_line(line_number, f"json_decode_error: {exc.msg}")
                skipped += 1
                continue
            if not isinstance(item, dict):
                _skip_line(line_number, "not_an_object")
                skipped += 1
                continue

            kind = item.get("type")
            try:
                if kind == "entity":
                    entities.extend(
                        parse_entities(
                            [
                                {
                                    "name": item.get("name"),
                                    "entityType": item.get("entityType"),
                                    "observations": item.get("observations", []),
                                }
                            ]
                        )
                    )
                elif kind == "relation":
                    relations.extend(
                        parse_relations(
                            [
                                {
                                    "from": item.get("from"),
                                    "to": item.get("to"),
                                    "relationType": item.get("relationType"),
                                }
                            ]
                        )
                    )
                else:
                    _skip_line(line_number, f"unknown_type: {kind!r}")
                    skipped += 1
            except ValidationIssue as exc:
                _skip_line(line_number, f"{exc.field}: {exc}")
                skipped += 1

    logger.info(f"Found {len(entities)} entities and {len(relations)} relations")

    created_entities = store.create_entities(entities) if entities else []
    created_relations = store.create_relations(relations) if relations else []

    summary = {
        "entities_found": len(entities),
        "entities_created": len(created_entities),
        "relations_found": len(relations),
        "relations_created": len(created_relations),
        "skipped_lines": skipped,
    }
    logger.info("jsonl_import_completed", extra=summary)
    return summary


__all__ = ["import_jsonl"]

import json
import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

from core.services import graph_service
from core.services.graph_import import import_jsonl


def _write_lines(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_import_jsonl_creates_entities_before_relations(store, tmp_path):
    export = _write_lines(
        tmp_path / "memory.json",
        [
            # relation line precedes its endpoints
            json.dumps({"type": "relation", "from": "Alice", "to": "Bob", "relationType": "knows"}),
            json.dumps({"type": "entity", "name": "Alice", "entityType": "person", "observations": ["likes tea"]}),
            "",
            json.dumps({"type": "entity", "name": "Bob", "entityType": "person", "observations": []}),
        ],
    )

    summary = import_jsonl(store, export)

    assert summary == {
        "entities_found": 2,
        "entities_created": 2,
        "relations_found": 1,
        "relations_created": 1,
        "skipped_lines": 0,
    }
    graph = graph_service.read_graph(store)
    assert [entity["name"] for entity in graph["entities"]] == ["Alice", "Bob"]
    assert graph["relations"] == [{"from": "Alice", "to": "Bob", "relationType": "knows"}]


def test_import_jsonl_skips_invalid_lines(store, tmp_path):
    export = _write_lines(
        tmp_path / "memory.json",
        [
            "{not json",
            json.dumps(["not", "an", "object"]),
            json.dumps({"type": "mystery", "name": "X"}),
            json.dumps({"type": "entity", "entityType": "person"}),
            json.dumps({"type": "entity", "name": "Carol", "entityType": "person"}),
        ],
    )

    summary = import_jsonl(store, export)

    assert summary["skipped_lines"] == 4
    assert summary["entities_created"] == 1
    assert summary["relations_found"] == 0


def test_import_jsonl_is_repeatable(store, tmp_path):
    export = _write_lines(
        tmp_path / "memory.json",
        [json.dumps({"type": "entity", "name": "Alice", "entityType": "person", "observations": []})],
    )
    import_jsonl(store, export)
    summary = import_jsonl(store, export)
    assert summary["entities_found"] == 1
    assert summary["entities_created"] == 0


def test_import_jsonl_missing_file(store, tmp_path):
    with pytest.raises(FileNotFoundError):
        import_jsonl(store, tmp_path / "absent.json")

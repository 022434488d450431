import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from fastmcp.exceptions import ToolError

from core.errors import GraphIntegrityError
from core.models import Entity, Observation
from core.schemas import EntityRecord
from core.services import graph_service
from core.services.graph_store import GraphStore


def test_create_entities_returns_only_new(store):
    first = graph_service.create_entities(
        store,
        [{"name": "Alice", "entityType": "person", "observations": ["likes tea"]}],
    )
    assert first == [{"name": "Alice", "entityType": "person", "observations": ["likes tea"]}]

    second = graph_service.create_entities(
        store,
        [
            {"name": "Alice", "entityType": "robot", "observations": ["ignored"]},
            {"name": "Bob", "entityType": "person"},
        ],
    )
    assert second == [{"name": "Bob", "entityType": "person", "observations": []}]

    graph = graph_service.read_graph(store)
    alice = next(entity for entity in graph["entities"] if entity["name"] == "Alice")
    assert alice == {"name": "Alice", "entityType": "person", "observations": ["likes tea"]}


def test_create_entities_empty_batch(store):
    assert graph_service.create_entities(store, []) == []
    assert graph_service.read_graph(store) == {"entities": [], "relations": []}


def test_create_entities_duplicate_names_in_batch(store):
    created = graph_service.create_entities(
        store,
        [
            {"name": "Alice", "entityType": "person"},
            {"name": "Alice", "entityType": "person"},
        ],
    )
    assert len(created) == 1
    assert len(graph_service.read_graph(store)["entities"]) == 1


def test_names_are_case_sensitive(store):
    created = graph_service.create_entities(
        store,
        [
            {"name": "alice", "entityType": "person"},
            {"name": "Alice", "entityType": "person"},
        ],
    )
    assert [entity["name"] for entity in created] == ["alice", "Alice"]


def test_repeated_observations_in_one_entity_stored_once(store, db_session):
    graph_service.create_entities(
        store,
        [{"name": "Alice", "entityType": "person", "observations": ["x", "x", "y"]}],
    )
    contents = [row.content for row in db_session.query(Observation).order_by(Observation.id)]
    assert contents == ["x", "y"]


def test_create_entities_rolls_back_on_storage_failure(store, db_session):
    records = [
        EntityRecord(name="Alice", entity_type="person"),
        EntityRecord(name="Broken", entity_type=None),
    ]
    with pytest.raises(GraphIntegrityError):
        store.create_entities(records)

    assert db_session.query(Entity).count() == 0


def test_delete_entities_cascades(seeded_store, db_session):
    result = graph_service.delete_entities(seeded_store, ["Alice", "Nobody"])
    assert result == "Entities deleted successfully"

    graph = graph_service.read_graph(seeded_store)
    assert [entity["name"] for entity in graph["entities"]] == ["Acme", "Bob"]
    assert graph["relations"] == []
    assert db_session.query(Observation).count() == 1


def test_delete_entities_missing_names_noop(seeded_store):
    before = graph_service.read_graph(seeded_store)
    graph_service.delete_entities(seeded_store, ["Nobody"])
    assert graph_service.read_graph(seeded_store) == before


def test_recreated_entity_starts_empty(seeded_store):
    graph_service.delete_entities(seeded_store, ["Alice"])
    graph_service.create_entities(seeded_store, [{"name": "Alice", "entityType": "person"}])

    graph = graph_service.open_nodes(seeded_store, ["Alice", "Bob"])
    alice = next(entity for entity in graph["entities"] if entity["name"] == "Alice")
    assert alice["observations"] == []
    assert graph["relations"] == []


def test_delete_entities_ignores_empty_name(seeded_store):
    graph_service.delete_entities(seeded_store, ["Alice", ""])
    graph = graph_service.read_graph(seeded_store)
    assert [entity["name"] for entity in graph["entities"]] == ["Acme", "Bob"]


def test_integrity_failure_becomes_tool_error(store, monkeypatch):
    def _create_untyped(records):
        return GraphStore.create_entities(store, [EntityRecord(name="Broken", entity_type=None)])

    monkeypatch.setattr(store, "create_entities", _create_untyped)
    with pytest.raises(ToolError, match="violated a storage constraint"):
        graph_service.create_entities(store, [{"name": "Broken", "entityType": "t"}])

import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import logging

from core.models import Relation
from core.services import graph_service


def test_create_relations_skips_existing_triples(seeded_store):
    created = graph_service.create_relations(
        seeded_store,
        [
            {"from": "Alice", "to": "Bob", "relationType": "knows"},
            {"from": "Bob", "to": "Alice", "relationType": "knows"},
            {"from": "Bob", "to": "Alice", "relationType": "knows"},
        ],
    )
    assert created == [{"from": "Bob", "to": "Alice", "relationType": "knows"}]


def test_create_relations_missing_endpoint_is_skipped_with_warning(seeded_store, caplog):
    caplog.set_level(logging.WARNING, logger="memorygraph")
    created = graph_service.create_relations(
        seeded_store,
        [
            {"from": "Alice", "to": "Ghost", "relationType": "haunts"},
            {"from": "Bob", "to": "Acme", "relationType": "works_at"},
        ],
    )
    assert created == [{"from": "Bob", "to": "Acme", "relationType": "works_at"}]
    assert any("Ghost" in record.getMessage() for record in caplog.records)


def test_self_relation_allowed(seeded_store):
    created = graph_service.create_relations(
        seeded_store,
        [{"from": "Alice", "to": "Alice", "relationType": "mentors"}],
    )
    assert len(created) == 1


def test_relation_type_distinguishes_edges(seeded_store, db_session):
    graph_service.create_relations(
        seeded_store,
        [{"from": "Alice", "to": "Bob", "relationType": "manages"}],
    )
    assert db_session.query(Relation).count() == 3


def test_delete_relations(seeded_store):
    result = graph_service.delete_relations(
        seeded_store,
        [
            {"from": "Alice", "to": "Bob", "relationType": "knows"},
            {"from": "Alice", "to": "Ghost", "relationType": "knows"},
            {"from": "Alice", "to": "Acme", "relationType": "owns"},
        ],
    )
    assert result == "Relations deleted successfully"
    assert graph_service.read_graph(seeded_store)["relations"] == [
        {"from": "Alice", "to": "Acme", "relationType": "works_at"},
    ]


def test_relation_created_after_endpoint_recreated(seeded_store):
    graph_service.delete_entities(seeded_store, ["Bob"])
    assert graph_service.create_relations(
        seeded_store,
        [{"from": "Alice", "to": "Bob", "relationType": "knows"}],
    ) == []

    graph_service.create_entities(seeded_store, [{"name": "Bob", "entityType": "person"}])
    assert graph_service.create_relations(
        seeded_store,
        [{"from": "Alice", "to": "Bob", "relationType": "knows"}],
    ) == [{"from": "Alice", "to": "Bob", "relationType": "knows"}]


def test_create_relations_empty_endpoint_is_skipped(seeded_store):
    assert graph_service.create_relations(
        seeded_store,
        [{"from": "", "to": "Bob", "relationType": "knows"}],
    ) == []

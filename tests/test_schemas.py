import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from fastmcp.exceptions import ToolError

import core.config as config
from core.errors import ValidationIssue
from core.schemas import (
    parse_entities,
    parse_entity_names,
    parse_observation_additions,
    parse_query,
    parse_relations,
)
from core.services import graph_service


def test_parse_entities_defaults_observations():
    records = parse_entities([{"name": "Alice", "entityType": "person"}])
    assert records[0].observations == ()


@pytest.mark.parametrize(
    "payload, field",
    [
        ([{"entityType": "person"}], "entities[0].name"),
        ([{"name": "", "entityType": "person"}], "entities[0].name"),
        ([{"name": "Alice"}], "entities[0].entityType"),
        ([{"name": "Alice", "entityType": "person", "observations": "tea"}], "entities[0].observations"),
        ([{"name": "Alice", "entityType": "person", "observations": [1]}], "entities[0].observations"),
        (["Alice"], "entities[0]"),
        ("Alice", "entities"),
        (None, "entities"),
    ],
)
def test_parse_entities_rejects_bad_shapes(payload, field):
    with pytest.raises(ValidationIssue) as excinfo:
        parse_entities(payload)
    assert excinfo.value.field == field


def test_parse_relations_requires_all_keys():
    with pytest.raises(ValidationIssue) as excinfo:
        parse_relations([{"from": "Alice", "relationType": "knows"}])
    assert excinfo.value.field == "relations[0].to"


def test_parse_observation_additions_requires_contents():
    with pytest.raises(ValidationIssue) as excinfo:
        parse_observation_additions([{"entityName": "Alice"}])
    assert excinfo.value.field == "observations[0].contents"


def test_parse_entity_names_keeps_empty_items():
    assert parse_entity_names(["Alice", ""]) == ["Alice", ""]
    with pytest.raises(ValidationIssue):
        parse_entity_names(["Alice", None])


def test_labels_may_be_blank_but_names_may_not():
    records = parse_entities([{"name": " ", "entityType": ""}])
    assert records[0].name == " "
    assert records[0].entity_type == ""

    relations = parse_relations([{"from": "", "to": "Bob", "relationType": ""}])
    assert relations[0].relation_type == ""

    with pytest.raises(ValidationIssue):
        parse_entities([{"name": "", "entityType": "person"}])


def test_parse_query_length_limit():
    with pytest.raises(ValidationIssue) as excinfo:
        parse_query("x" * (config.MAX_QUERY_LENGTH + 1))
    assert excinfo.value.error_type == "max_length"


def test_batch_limit(monkeypatch):
    monkeypatch.setattr(config, "MAX_BATCH_ITEMS", 2)
    with pytest.raises(ValidationIssue) as excinfo:
        parse_entity_names(["a", "b", "c"])
    assert excinfo.value.error_type == "max_items"


def test_service_reports_invalid_field(store):
    with pytest.raises(ToolError, match=r"entities\[0\]\.entityType"):
        graph_service.create_entities(store, [{"name": "Alice"}])
    assert graph_service.read_graph(store) == {"entities": [], "relations": []}

import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

from core.db import build_engine
from core.models import Base
from core.services.graph_store import GraphStore


@pytest.fixture
def engine(tmp_path):
    db_path = tmp_path / "graph.sqlite"
    engine = build_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(engine):
    graph_store = GraphStore(engine)
    try:
        yield graph_store
    finally:
        graph_store.close()


@pytest.fixture
def db_session(store):
    session = store.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_store(store):
    from core.services import graph_service

    graph_service.create_entities(
        store,
        [
            {"name": "Alice", "entityType": "person", "observations": ["likes tea"]},
            {"name": "Bob", "entityType": "person", "observations": []},
            {"name": "Acme", "entityType": "company", "observations": ["makes anvils"]},
        ],
    )
    graph_service.create_relations(
        store,
        [
            {"from": "Alice", "to": "Bob", "relationType": "knows"},
            {"from": "Alice", "to": "Acme", "relationType": "works_at"},
        ],
    )
    return store

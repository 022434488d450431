"""
Knowledge graph store backed by the relational schema in core.models.

Each public operation checks one connection out of the engine's pool, runs a
single transaction, and returns the connection on every exit path. Mutations
are all-or-nothing per call.
"""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from sqlalchemy import and_, exists, func, or_
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session as DBSession, aliased, sessionmaker

import core.config as config
from core.errors import EntityNotFoundError, GraphIntegrityError, StoreUnavailableError
from core.models import Entity, Observation, Relation
from core.schemas import (
    EntityRecord,
    KnowledgeGraph,
    ObservationAddition,
    ObservationAdditionResult,
    ObservationDeletion,
    RelationRecord,
)

logger = config.logger

LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def _unique(values: Sequence[str]) -> list[str]:
    """Drop repeated strings, keeping first-seen order."""
    seen = set()
    ordered = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def search_condition(query: str, *, fulltext: bool = False):
    """
    Boolean match for ``search_nodes``.

    Case-insensitive substring of name, type or any observation content. With
    ``fulltext`` the PostgreSQL ``to_tsvector @@ plainto_tsquery`` match on name
    or observation content is OR-ed in.
    """
    pattern = f"%{_escape_like(query)}%"
    content_match = Observation.content.ilike(pattern, escape=LIKE_ESCAPE)
    conditions = [
        Entity.name.ilike(pattern, escape=LIKE_ESCAPE),
        Entity.entity_type.ilike(pattern, escape=LIKE_ESCAPE),
    ]
    if fulltext:
        ts_query = func.plainto_tsquery(config.FULLTEXT_SEARCH_LANGUAGE, query)
        conditions.append(
            func.to_tsvector(config.FULLTEXT_SEARCH_LANGUAGE, Entity.name).op("@@")(ts_query)
        )
        content_match = or_(
            content_match,
            func.to_tsvector(
                config.FULLTEXT_SEARCH_LANGUAGE,
                Observation.content,
            ).op("@@")(ts_query),
        )
    conditions.append(
        exists().where(
            and_(Observation.entity_id == Entity.id, content_match)
        )
    )
    return or_(*conditions)


class GraphStore:
    """Entities, observations and relations with per-call transactions."""

    def __init__(self, engine, session_factory: Optional[sessionmaker] = None):
        self.engine = engine
        self.SessionLocal = session_factory or sessionmaker(bind=engine, expire_on_commit=False)

    def close(self) -> None:
        """Release every pooled connection."""
        self.engine.dispose()
        logger.info("Database connection pool closed")

    # -------------------------------------------------------------------------
    # Session handling
    # -------------------------------------------------------------------------

    @contextmanager
    def _session(self) -> Iterator[DBSession]:
        db = self.SessionLocal()
        try:
            try:
                db.connection()
            except (OperationalError, PoolTimeoutError) as exc:
                logger.warning("database_unavailable", extra={"detail": str(exc)})
                raise StoreUnavailableError("database unavailable") from exc
            yield db
        finally:
            db.close()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[DBSession]:
        with self._session() as db:
            try:
                yield db
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                logger.warning(
                    "graph_batch_rolled_back",
                    extra={"operation": operation, "reason": "integrity_error"},
                )
                raise GraphIntegrityError(f"{operation} violated a storage constraint") from exc
            except Exception:
                db.rollback()
                logger.info("graph_batch_rolled_back", extra={"operation": operation})
                raise

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def _get_entity_by_name(db: DBSession, name: str) -> Optional[Entity]:
        return db.query(Entity).filter(Entity.name == name).first()

    @staticmethod
    def _get_observation_contents(db: DBSession, entity_id: int) -> list[str]:
        rows = (
            db.query(Observation.content)
            .filter(Observation.entity_id == entity_id)
            .order_by(Observation.created_at, Observation.id)
            .all()
        )
        return [row[0] for row in rows]

    # -------------------------------------------------------------------------
    # Entity & observation mutations
    # -------------------------------------------------------------------------

    def create_entities(self, entities: Sequence[EntityRecord]) -> list[EntityRecord]:
        """Insert entities whose names are new; existing names are skipped."""
        created: list[EntityRecord] = []
        with self._transaction("create_entities") as db:
            for record in entities:
                if self._get_entity_by_name(db, record.name) is not None:
                    continue
                entity = Entity(name=record.name, entity_type=record.entity_type)
                db.add(entity)
                db.flush()
                for content in _unique(record.observations):
                    db.add(Observation(entity_id=entity.id, content=content))
                db.flush()
                created.append(record)
        logger.info(
            "entities_created",
            extra={"requested_count": len(entities), "created_count": len(created)},
        )
        return created

    def add_observations(
        self,
        additions: Sequence[ObservationAddition],
    ) -> list[ObservationAdditionResult]:
        """Append new observation strings; any unknown entity fails the batch."""
        results: list[ObservationAdditionResult] = []
        with self._transaction("add_observations") as db:
            for addition in additions:
                entity = self._get_entity_by_name(db, addition.entity_name)
                if entity is None:
                    raise EntityNotFoundError(addition.entity_name)

                existing = set(self._get_observation_contents(db, entity.id))
                added = [content for content in _unique(addition.contents) if content not in existing]
                for content in added:
                    db.add(Observation(entity_id=entity.id, content=content))
                db.flush()
                results.append(
                    ObservationAdditionResult(
                        entity_name=addition.entity_name,
                        added_observations=tuple(added),
                    )
                )
        return results

    def delete_entities(self, names: Sequence[str]) -> None:
        """Delete entities with their observations and incident relations."""
        with self._transaction("delete_entities") as db:
            for name in names:
                entity = self._get_entity_by_name(db, name)
                if entity is None:
                    continue
                db.query(Observation).filter(
                    Observation.entity_id == entity.id
                ).delete(synchronize_session=False)
                db.query(Relation).filter(
                    or_(
                        Relation.from_entity_id == entity.id,
                        Relation.to_entity_id == entity.id,
                    )
                ).delete(synchronize_session=False)
                db.query(Entity).filter(Entity.id == entity.id).delete(synchronize_session=False)
                db.expunge(entity)

    def delete_observations(self, deletions: Sequence[ObservationDeletion]) -> None:
        """Remove exactly matching observation strings; unknown targets are ignored."""
        with self._transaction("delete_observations") as db:
            for deletion in deletions:
                entity = self._get_entity_by_name(db, deletion.entity_name)
                if entity is None or not deletion.observations:
                    continue
                db.query(Observation).filter(
                    Observation.entity_id == entity.id,
                    Observation.content.in_(set(deletion.observations)),
                ).delete(synchronize_session=False)

    # -------------------------------------------------------------------------
    # Relation mutations
    # -------------------------------------------------------------------------

    def create_relations(self, relations: Sequence[RelationRecord]) -> list[RelationRecord]:
        """Insert new typed edges; missing endpoints and existing triples are skipped."""
        created: list[RelationRecord] = []
        with self._transaction("create_relations") as db:
            for record in relations:
                from_entity = self._get_entity_by_name(db, record.from_name)
                to_entity = self._get_entity_by_name(db, record.to_name)
                if from_entity is None or to_entity is None:
                    logger.warning(
                        f"Skipping relation {record.from_name} -> {record.to_name}: entity not found",
                        extra={
                            "relation_from": record.from_name,
                            "relation_to": record.to_name,
                            "relation_type": record.relation_type,
                        },
                    )
                    continue

                already_exists = db.query(
                    exists().where(
                        Relation.from_entity_id == from_entity.id,
                        Relation.to_entity_id == to_entity.id,
                        Relation.relation_type == record.relation_type,
                    )
                ).scalar()
                if already_exists:
                    continue

                db.add(
                    Relation(
                        from_entity_id=from_entity.id,
                        to_entity_id=to_entity.id,
                        relation_type=record.relation_type,
                    )
                )
                db.flush()
                created.append(record)
        logger.info(
            "relations_created",
            extra={"requested_count": len(relations), "created_count": len(created)},
        )
        return created

    def delete_relations(self, relations: Sequence[RelationRecord]) -> None:
        """Delete matching triples when both endpoints resolve."""
        with self._transaction("delete_relations") as db:
            for record in relations:
                from_entity = self._get_entity_by_name(db, record.from_name)
                to_entity = self._get_entity_by_name(db, record.to_name)
                if from_entity is None or to_entity is None:
                    continue
                db.query(Relation).filter(
                    Relation.from_entity_id == from_entity.id,
                    Relation.to_entity_id == to_entity.id,
                    Relation.relation_type == record.relation_type,
                ).delete(synchronize_session=False)

    # -------------------------------------------------------------------------
    # Read & search
    # -------------------------------------------------------------------------

    def read_graph(self) -> KnowledgeGraph:
        """Return every entity and relation."""
        with self._session() as db:
            entities = db.query(Entity.id, Entity.name, Entity.entity_type).order_by(Entity.name).all()
            return self._build_graph(db, entities, restrict_relations=False)

    def search_nodes(self, query: str) -> KnowledgeGraph:
        """Return the induced subgraph of entities matching ``query``."""
        if not query:
            return KnowledgeGraph.empty()

        with self._session() as db:
            entities = (
                db.query(Entity.id, Entity.name, Entity.entity_type)
                .filter(search_condition(query, fulltext=self._fulltext_enabled(db)))
                .order_by(Entity.name)
                .all()
            )
            if not entities:
                return KnowledgeGraph.empty()
            return self._build_graph(db, entities, restrict_relations=True)

    def open_nodes(self, names: Sequence[str]) -> KnowledgeGraph:
        """Return the induced subgraph over the named entities that exist."""
        if not names:
            return KnowledgeGraph.empty()

        with self._session() as db:
            entities = (
                db.query(Entity.id, Entity.name, Entity.entity_type)
                .filter(Entity.name.in_(set(names)))
                .order_by(Entity.name)
                .all()
            )
            if not entities:
                return KnowledgeGraph.empty()
            return self._build_graph(db, entities, restrict_relations=True)

    @staticmethod
    def _fulltext_enabled(db: DBSession) -> bool:
        return config.FULLTEXT_SEARCH_ENABLED and db.get_bind().dialect.name == "postgresql"

    def _build_graph(self, db: DBSession, entities, *, restrict_relations: bool) -> KnowledgeGraph:
        entity_ids = [row.id for row in entities]

        observations_by_entity: dict[int, list[str]] = defaultdict(list)
        observation_query = db.query(Observation.entity_id, Observation.content)
        if restrict_relations:
            observation_query = observation_query.filter(Observation.entity_id.in_(entity_ids))
        for entity_id, content in observation_query.order_by(
            Observation.entity_id,
            Observation.created_at,
            Observation.id,
        ):
            observations_by_entity[entity_id].append(content)

        from_entity = aliased(Entity)
        to_entity = aliased(Entity)
        relation_query = (
            db.query(from_entity.name, to_entity.name, Relation.relation_type)
            .join(from_entity, Relation.from_entity_id == from_entity.id)
            .join(to_entity, Relation.to_entity_id == to_entity.id)
        )
        if restrict_relations:
            relation_query = relation_query.filter(
                Relation.from_entity_id.in_(entity_ids),
                Relation.to_entity_id.in_(entity_ids),
            )
        relation_rows = relation_query.order_by(
            from_entity.name,
            to_entity.name,
            Relation.relation_type,
        ).all()

        return KnowledgeGraph(
            entities=tuple(
                EntityRecord(
                    name=row.name,
                    entity_type=row.entity_type,
                    observations=tuple(observations_by_entity.get(row.id, ())),
                )
                for row in entities
            ),
            relations=tuple(
                RelationRecord(from_name=from_name, to_name=to_name, relation_type=relation_type)
                for from_name, to_name, relation_type in relation_rows
            ),
        )


__all__ = ["GraphStore", "search_condition"]

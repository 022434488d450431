"""
MemoryGraph Database Models
Normalized knowledge graph schema (entities, observations, relations)
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


Base = declarative_base()


# =============================================================================
# Entities
# =============================================================================

class Entity(Base):
    __tablename__ = "entities"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)  # Case-sensitive natural key
    entity_type = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    observations = relationship(
        "Observation",
        back_populates="entity",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Observation.id",
    )
    outgoing_relations = relationship(
        "Relation",
        foreign_keys="Relation.from_entity_id",
        back_populates="from_entity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    incoming_relations = relationship(
        "Relation",
        foreign_keys="Relation.to_entity_id",
        back_populates="to_entity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_entities_name"),
        Index("ix_entities_entity_type", "entity_type"),
    )


# =============================================================================
# Observations
# =============================================================================

class Observation(Base):
    __tablename__ = "observations"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    entity = relationship("Entity", back_populates="observations")

    __table_args__ = (
        Index("ix_observations_entity_id", "entity_id"),
    )


# =============================================================================
# Relations (directed, typed edges)
# =============================================================================

class Relation(Base):
    __tablename__ = "relations"

    id = Column(Integer, primary_key=True)
    from_entity_id = Column(Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False)
    to_entity_id = Column(Integer, ForeignKey("entities.id", ondelete="CASCADE"), nullable=False)
    relation_type = Column(Text, nullable=False)  # knows/works_at/part_of/...
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    from_entity = relationship("Entity", foreign_keys=[from_entity_id], back_populates="outgoing_relations")
    to_entity = relationship("Entity", foreign_keys=[to_entity_id], back_populates="incoming_relations")

    __table_args__ = (
        UniqueConstraint(
            "from_entity_id",
            "to_entity_id",
            "relation_type",
            name="uq_relations_from_to_type",
        ),
        Index("ix_relations_from_entity_id", "from_entity_id"),
        Index("ix_relations_to_entity_id", "to_entity_id"),
        Index("ix_relations_relation_type", "relation_type"),
    )


__all__ = [
    "Base",
    "Entity",
    "Observation",
    "Relation",
]

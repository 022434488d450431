"""Create knowledge graph tables.

Revision ID: 0001_graph_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_graph_schema"
down_revision = None
branch_labels = None
depends_on = None


FTS_LANGUAGE = "english"


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    now = sa.text("CURRENT_TIMESTAMP")

    op.create_table(
        "entities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.UniqueConstraint("name", name="uq_entities_name"),
    )
    op.create_index("ix_entities_entity_type", "entities", ["entity_type"])

    op.create_table(
        "observations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "entity_id",
            sa.Integer(),
            sa.ForeignKey("entities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
    )
    op.create_index("ix_observations_entity_id", "observations", ["entity_id"])

    op.create_table(
        "relations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "from_entity_id",
            sa.Integer(),
            sa.ForeignKey("entities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "to_entity_id",
            sa.Integer(),
            sa.ForeignKey("entities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("relation_type", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=now),
        sa.UniqueConstraint(
            "from_entity_id",
            "to_entity_id",
            "relation_type",
            name="uq_relations_from_to_type",
        ),
    )
    op.create_index("ix_relations_from_entity_id", "relations", ["from_entity_id"])
    op.create_index("ix_relations_to_entity_id", "relations", ["to_entity_id"])
    op.create_index("ix_relations_relation_type", "relations", ["relation_type"])

    if not is_postgres:
        return

    # Full-text indexes back the lexical branch of search_nodes
    op.create_index(
        "ix_observations_content_fts",
        "observations",
        [sa.text(f"to_tsvector('{FTS_LANGUAGE}', content)")],
        postgresql_using="gin",
    )
    op.create_index(
        "ix_entities_name_fts",
        "entities",
        [sa.text(f"to_tsvector('{FTS_LANGUAGE}', name)")],
        postgresql_using="gin",
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ language 'plpgsql';
        """
    )
    op.execute("DROP TRIGGER IF EXISTS update_entities_updated_at ON entities")
    op.execute(
        """
        CREATE TRIGGER update_entities_updated_at BEFORE UPDATE ON entities
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """
    )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS update_entities_updated_at ON entities")
        op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")
        op.drop_index("ix_entities_name_fts", table_name="entities")
        op.drop_index("ix_observations_content_fts", table_name="observations")
    op.drop_index("ix_relations_relation_type", table_name="relations")
    op.drop_index("ix_relations_to_entity_id", table_name="relations")
    op.drop_index("ix_relations_from_entity_id", table_name="relations")
    op.drop_table("relations")
    op.drop_index("ix_observations_entity_id", table_name="observations")
    op.drop_table("observations")
    op.drop_index("ix_entities_entity_type", table_name="entities")
    op.drop_table("entities")

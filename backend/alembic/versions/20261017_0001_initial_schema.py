"""Initial circuit schema.

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "circuits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, server_default="Main"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("nodes", sa.JSON(), nullable=False),
        sa.Column("edges", sa.JSON(), nullable=False),
        sa.Column("viewport", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_circuits_updated_at", "circuits", ["updated_at"])


def downgrade() -> None:
    op.drop_index("ix_circuits_updated_at", table_name="circuits")
    op.drop_table("circuits")

"""generations table

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "generations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("model_owner", sa.String(length=255), nullable=False),
        sa.Column("model_name", sa.String(length=255), nullable=False),
        sa.Column("model_version", sa.String(length=255), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("parameters_json", sa.JSON(), nullable=False),
        sa.Column("replicate_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("output_json", sa.JSON(), nullable=True),
        sa.Column("image_urls_json", sa.JSON(), nullable=False),
        sa.Column("blob_urls_json", sa.JSON(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_generations_model_owner", "generations", ["model_owner"], unique=False)
    op.create_index("ix_generations_model_name", "generations", ["model_name"], unique=False)
    op.create_index("ix_generations_replicate_id", "generations", ["replicate_id"], unique=True)
    op.create_index("ix_generations_status", "generations", ["status"], unique=False)
    op.create_index("ix_generations_created_at", "generations", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_generations_created_at", table_name="generations")
    op.drop_index("ix_generations_status", table_name="generations")
    op.drop_index("ix_generations_replicate_id", table_name="generations")
    op.drop_index("ix_generations_model_name", table_name="generations")
    op.drop_index("ix_generations_model_owner", table_name="generations")
    op.drop_table("generations")

"""Create relationships table for the follow graph."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261002_0003"
down_revision: str | None = "20261001_0002"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

TIMESTAMP_DEFAULT = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    op.create_table(
        "relationships",
        sa.Column("follower_id", sa.String(length=36), nullable=False),
        sa.Column("followed_id", sa.String(length=36), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=TIMESTAMP_DEFAULT,
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["follower_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followed_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("follower_id", "followed_id"),
    )
    op.create_index(
        "ix_relationships_followed_created_at",
        "relationships",
        ["followed_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_relationships_followed_created_at", table_name="relationships")
    op.drop_table("relationships")

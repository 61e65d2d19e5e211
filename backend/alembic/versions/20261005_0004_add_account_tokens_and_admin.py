"""Add remember/reset token digests, admin flag and post images."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261005_0004"
down_revision: str | None = "20261002_0003"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.add_column(sa.Column("remember_digest", sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column("reset_digest", sa.String(length=64), nullable=True))
        batch_op.add_column(sa.Column("reset_sent_at", sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(
            sa.Column(
                "is_admin",
                sa.Boolean(),
                server_default=sa.text("false"),
                nullable=False,
            )
        )

    with op.batch_alter_table("posts") as batch_op:
        batch_op.add_column(sa.Column("image_key", sa.String(length=255), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("posts") as batch_op:
        batch_op.drop_column("image_key")

    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_column("is_admin")
        batch_op.drop_column("reset_sent_at")
        batch_op.drop_column("reset_digest")
        batch_op.drop_column("remember_digest")

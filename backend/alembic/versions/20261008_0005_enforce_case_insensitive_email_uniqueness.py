"""Normalize user emails and enforce case-insensitive uniqueness."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261008_0005"
down_revision: str | None = "20261005_0004"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def _deduplicate_email(canonical: str, user_id: str, seen: set[str]) -> str:
    """Return a canonical email that is unique within the migration run."""
    if canonical not in seen:
        return canonical

    local_part, _, domain_part = canonical.partition("@")
    suffix_base = f"+dup-{user_id}".lower()
    counter = 0
    while True:
        suffix = suffix_base if counter == 0 else f"{suffix_base}-{counter}"
        max_local_len = max(1, 255 - len(domain_part) - len(suffix) - 1)
        candidate = f"{local_part[:max_local_len]}{suffix}@{domain_part}"
        if candidate not in seen:
            return candidate
        counter += 1


def _normalize_existing_emails() -> None:
    bind = op.get_bind()
    rows = list(
        bind.execute(
            sa.text("SELECT id, email FROM users ORDER BY created_at ASC, id ASC")
        ).mappings()
    )

    seen: set[str] = set()
    updates: list[tuple[str, str, str]] = []
    for row in rows:
        user_id = str(row["id"])
        current_email = str(row["email"] or "")
        final_email = _deduplicate_email(_normalize_email(current_email), user_id, seen)
        seen.add(final_email)
        if final_email != current_email:
            updates.append((user_id, current_email, final_email))

    # Two-phase rewrite avoids transient collisions with the existing unique(email).
    for user_id, _, _ in updates:
        bind.execute(
            sa.text("UPDATE users SET email = :email WHERE id = :id"),
            {"id": user_id, "email": f"__tmp__{user_id}@migration.local"},
        )
    for user_id, _, final_email in updates:
        bind.execute(
            sa.text("UPDATE users SET email = :email WHERE id = :id"),
            {"id": user_id, "email": final_email},
        )


def upgrade() -> None:
    _normalize_existing_emails()
    op.create_index(
        "ux_users_email_lower",
        "users",
        [sa.text("lower(email)")],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ux_users_email_lower", table_name="users")

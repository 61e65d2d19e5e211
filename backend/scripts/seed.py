"""Database seed script for local development.

Usage:
    python scripts/seed.py

Creates a few named accounts (``michael`` is an admin) plus generated users,
gives the first users a batch of posts and wires up a follow graph. Every
write goes through the service layer, so seeding obeys the same validation
and uniqueness rules as the API. Re-running the script is safe.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from models import User  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from services import posts as post_store  # noqa: E402
from services import relationships as graph  # noqa: E402
from services import users as user_directory  # noqa: E402

DEFAULT_PASSWORD = "password"
GENERATED_USER_COUNT = 46
POSTS_PER_AUTHOR = 50
POSTING_AUTHORS = 6


@dataclass(frozen=True)
class SeedUser:
    name: str
    email: str
    is_admin: bool = False


@dataclass(frozen=True)
class SeedPlan:
    users: list[SeedUser]
    follows: list[tuple[str, str]]


@dataclass(frozen=True)
class SeedResult:
    users: int
    posts_created: int
    follows_created: int


BASE_USERS: Sequence[SeedUser] = [
    SeedUser(name="Michael Example", email="michael@example.com", is_admin=True),
    SeedUser(name="Sterling Archer", email="duchess@example.gov"),
    SeedUser(name="Lana Kane", email="hands@example.gov"),
    SeedUser(name="Malory Archer", email="boss@example.gov"),
]

POST_LINES: Sequence[str] = [
    "Shipping a small fix before lunch.",
    "That coffee really tied the room together.",
    "Reading about query planners again.",
    "Weekend plans: nothing at all.",
    "Just learned something neat about indexes.",
]


def _generated_users(count: int) -> list[SeedUser]:
    return [
        SeedUser(name=f"Example User {index}", email=f"example-{index}@example.org")
        for index in range(1, count + 1)
    ]


def _build_seed_follows(emails: Sequence[str]) -> list[tuple[str, str]]:
    """First user follows users 3..51, users 4..41 follow the first user."""
    if not emails:
        return []
    anchor = emails[0]
    following = [(anchor, email) for email in emails[2:51]]
    followers = [(email, anchor) for email in emails[3:41]]
    return following + followers


def build_seed_plan() -> SeedPlan:
    users = [*BASE_USERS, *_generated_users(GENERATED_USER_COUNT)]
    follows = _build_seed_follows([user.email for user in users])
    return SeedPlan(users=users, follows=follows)


async def get_or_create_user(session: AsyncSession, payload: SeedUser) -> User:
    user = await user_directory.find_by_email(session, payload.email)
    if user is not None:
        return user
    return await user_directory.create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=DEFAULT_PASSWORD,
        is_admin=payload.is_admin,
    )


async def ensure_posts(session: AsyncSession, authors: Sequence[User]) -> int:
    created = 0
    for author in authors:
        if await post_store.count_by_owner(session, author) > 0:
            continue
        for index in range(POSTS_PER_AUTHOR):
            content = f"{POST_LINES[index % len(POST_LINES)]} #{index + 1}"
            await post_store.create_post(session, author, content)
            created += 1
    return created


async def ensure_follows(
    session: AsyncSession,
    users: dict[str, User],
    follows: Sequence[tuple[str, str]],
) -> int:
    created = 0
    for follower_email, followed_email in follows:
        if await graph.follow(session, users[follower_email], users[followed_email]):
            created += 1
    return created


async def seed(
    session_maker: async_sessionmaker[AsyncSession] = AsyncSessionMaker,
) -> SeedResult:
    plan = build_seed_plan()

    async with session_maker() as session:
        users: dict[str, User] = {}
        for payload in plan.users:
            users[payload.email] = await get_or_create_user(session, payload)

        ordered = [users[payload.email] for payload in plan.users]
        posts_created = await ensure_posts(session, ordered[:POSTING_AUTHORS])
        follows_created = await ensure_follows(session, users, plan.follows)

    return SeedResult(
        users=len(plan.users),
        posts_created=posts_created,
        follows_created=follows_created,
    )


async def main() -> None:
    result = await seed()
    print("Seed data inserted.")
    print("   Users:", result.users)
    print("   Admin:", BASE_USERS[0].email)
    print("   Default password:", DEFAULT_PASSWORD)
    print("   Posts created:", result.posts_created)
    print("   Follows created:", result.follows_created)


if __name__ == "__main__":
    asyncio.run(main())

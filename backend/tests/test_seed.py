"""Tests for the development seed script."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Post, Relationship, User
from scripts import seed as seed_script
from services import users as user_directory


async def count_rows(session: AsyncSession, model: type) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return int(result.scalar_one())


def test_seed_plan_follow_graph_has_no_self_follows():
    plan = seed_script.build_seed_plan()

    assert len(plan.users) == len(seed_script.BASE_USERS) + seed_script.GENERATED_USER_COUNT
    assert all(follower != followed for follower, followed in plan.follows)
    assert len(set(plan.follows)) == len(plan.follows)


@pytest.mark.asyncio
async def test_seed_populates_database(session_maker, db_session: AsyncSession):
    result = await seed_script.seed(session_maker)

    expected_posts = seed_script.POSTING_AUTHORS * seed_script.POSTS_PER_AUTHOR
    expected_follows = len(seed_script.build_seed_plan().follows)
    assert result.posts_created == expected_posts
    assert result.follows_created == expected_follows
    assert await count_rows(db_session, User) == result.users
    assert await count_rows(db_session, Post) == expected_posts
    assert await count_rows(db_session, Relationship) == expected_follows

    admin = await user_directory.find_by_email(db_session, seed_script.BASE_USERS[0].email)
    assert admin is not None
    assert admin.is_admin is True
    assert await user_directory.authenticate(
        db_session, admin.email, seed_script.DEFAULT_PASSWORD
    ) is not None


@pytest.mark.asyncio
async def test_seed_is_idempotent(session_maker, db_session: AsyncSession):
    await seed_script.seed(session_maker)
    counts = [
        await count_rows(db_session, User),
        await count_rows(db_session, Post),
        await count_rows(db_session, Relationship),
    ]

    rerun = await seed_script.seed(session_maker)

    assert rerun.posts_created == 0
    assert rerun.follows_created == 0
    assert [
        await count_rows(db_session, User),
        await count_rows(db_session, Post),
        await count_rows(db_session, Relationship),
    ] == counts

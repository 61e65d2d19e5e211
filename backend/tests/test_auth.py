"""End-to-end tests for authentication endpoints."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, cast
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import create_access_token
from models import User
from services import users as user_directory


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def build_payload() -> dict[str, str]:
    suffix = uuid4().hex[:8]
    return {
        "name": "Alice",
        "email": f"alice_{suffix}@example.com",
        "password": "Sup3rSecret!",
        "password_confirmation": "Sup3rSecret!",
    }


async def fetch_user(session: AsyncSession, email: str) -> User:
    result = await session.execute(select(User).where(_eq(User.email, email.lower())))
    user = result.scalar_one()
    await session.refresh(user)
    return user


@pytest.mark.asyncio
async def test_signup_creates_user_and_logs_in(async_client, db_session: AsyncSession):
    payload = build_payload()
    response = await async_client.post("/api/v1/auth/signup", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == payload["email"]
    assert data["user"]["is_admin"] is False
    assert data["redirect_to"] == f"/users/{data['user']['id']}"
    assert async_client.cookies.get("access_token")

    user = await fetch_user(db_session, payload["email"])
    assert user.password_hash != payload["password"]

    me = await async_client.get("/api/v1/me")
    assert me.json()["id"] == data["user"]["id"]


@pytest.mark.asyncio
async def test_signup_normalizes_email_to_lowercase(async_client):
    payload = build_payload()
    payload["email"] = "Mixed.Case+alias@Example.COM"
    response = await async_client.post("/api/v1/auth/signup", json=payload)

    assert response.status_code == 201
    assert response.json()["user"]["email"] == "mixed.case+alias@example.com"


@pytest.mark.asyncio
async def test_signup_rejects_password_mismatch(async_client, db_session: AsyncSession):
    payload = build_payload()
    payload["password_confirmation"] = "Something-else"
    response = await async_client.post("/api/v1/auth/signup", json=payload)

    assert response.status_code == 422
    assert response.json()["errors"] == {"password_confirmation": ["doesn't match Password"]}
    result = await db_session.execute(select(User))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_signup_rejects_blank_name(async_client):
    payload = build_payload()
    payload["name"] = "   "
    response = await async_client.post("/api/v1/auth/signup", json=payload)

    assert response.status_code == 422
    assert response.json()["errors"]["name"] == ["can't be blank"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("name", "x" * 51, "is too long (maximum is 50 characters)"),
        ("password", "abc", "is too short (minimum is 6 characters)"),
        ("password", "p" * 129, "is too long (maximum is 128 characters)"),
    ],
)
async def test_signup_reports_length_errors_per_field(
    async_client, db_session: AsyncSession, field: str, value: str, message: str
):
    payload = build_payload()
    payload[field] = value
    if field == "password":
        payload["password_confirmation"] = value
    response = await async_client.post("/api/v1/auth/signup", json=payload)

    assert response.status_code == 422
    assert response.json()["errors"] == {field: [message]}
    result = await db_session.execute(select(User))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_signup_conflict_for_case_variant_email(async_client):
    payload = build_payload()
    payload["email"] = "User.Mixed@Example.com"
    first = await async_client.post("/api/v1/auth/signup", json=payload)
    assert first.status_code == 201

    second_payload = build_payload()
    second_payload["email"] = "user.mixed@example.com"
    second = await async_client.post("/api/v1/auth/signup", json=second_payload)
    assert second.status_code == 409
    assert second.json()["errors"] == {"email": ["has already been taken"]}


@pytest.mark.asyncio
async def test_signup_conflict_under_concurrency(async_client):
    payload = build_payload()

    first, second = await asyncio.gather(
        async_client.post("/api/v1/auth/signup", json=payload),
        async_client.post("/api/v1/auth/signup", json=payload),
    )
    statuses = sorted([first.status_code, second.status_code])
    assert statuses == [201, 409]


@pytest.mark.asyncio
async def test_email_uniqueness_is_enforced_by_the_database(db_session: AsyncSession):
    db_session.add(User(name="One", email="dup@example.com", password_hash="x"))
    await db_session.commit()

    db_session.add(User(name="Two", email="DUP@example.com", password_hash="x"))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_login_with_valid_credentials(async_client):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"].upper(), "password": payload["password"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["redirect_to"] == f"/users/{data['user']['id']}"
    assert async_client.cookies.get("access_token")
    assert async_client.cookies.get("remember_token") is None


@pytest.mark.asyncio
async def test_login_with_invalid_credentials(async_client):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": "wrong-password"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email/password combination"
    assert async_client.cookies.get("access_token") is None


@pytest.mark.asyncio
async def test_login_forwards_to_remembered_page(async_client):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()

    blocked = await async_client.get("/api/v1/feed?page=2")
    assert blocked.status_code == 401
    assert blocked.json()["redirect_to"] == "/login?next=%2Fapi%2Fv1%2Ffeed%3Fpage%3D2"

    response = await async_client.post(
        "/api/v1/auth/login",
        json={
            "email": payload["email"],
            "password": payload["password"],
            "next": "/api/v1/feed?page=2",
        },
    )
    assert response.json()["redirect_to"] == "/api/v1/feed?page=2"


@pytest.mark.asyncio
@pytest.mark.parametrize("unsafe", ["https://evil.example", "//evil.example", "javascript:x"])
async def test_login_ignores_offsite_next(async_client, unsafe: str):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": payload["password"], "next": unsafe},
    )

    assert response.json()["redirect_to"] == "/"


@pytest.mark.asyncio
async def test_bearer_token_authenticates(async_client):
    payload = build_payload()
    signup = await async_client.post("/api/v1/auth/signup", json=payload)
    token = signup.json()["access_token"]
    async_client.cookies.clear()

    response = await async_client.get(
        "/api/v1/me", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert response.json()["email"] == payload["email"]


@pytest.mark.asyncio
async def test_invalid_access_token_is_rejected(async_client):
    response = await async_client.get(
        "/api/v1/me", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_access_token_for_deleted_user_is_rejected(async_client):
    response = await async_client.get(
        "/api/v1/me",
        headers={"Authorization": f"Bearer {create_access_token(str(uuid4()))}"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_remember_me_restores_session(async_client, db_session: AsyncSession):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()

    response = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": payload["password"], "remember_me": True},
    )
    assert response.status_code == 200
    assert async_client.cookies.get("remember_token")
    user = await fetch_user(db_session, payload["email"])
    assert user.remember_digest is not None

    async_client.cookies.delete("access_token")
    me = await async_client.get("/api/v1/me")

    assert me.status_code == 200
    assert me.json()["email"] == payload["email"]
    assert async_client.cookies.get("access_token")


@pytest.mark.asyncio
async def test_login_without_remember_me_forgets_previous_token(
    async_client, db_session: AsyncSession
):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    credentials = {"email": payload["email"], "password": payload["password"]}
    await async_client.post("/api/v1/auth/login", json={**credentials, "remember_me": True})
    stale_cookie = async_client.cookies.get("remember_token")

    await async_client.post("/api/v1/auth/login", json=credentials)
    user = await fetch_user(db_session, payload["email"])
    assert user.remember_digest is None

    assert async_client.cookies.get("remember_token") is None

    async_client.cookies.clear()
    async_client.cookies.set("remember_token", stale_cookie)
    me = await async_client.get("/api/v1/me")
    assert me.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_session(async_client, db_session: AsyncSession):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": payload["password"], "remember_me": True},
    )

    response = await async_client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"detail": "Logged out", "redirect_to": "/"}
    assert async_client.cookies.get("access_token") is None
    assert async_client.cookies.get("remember_token") is None
    user = await fetch_user(db_session, payload["email"])
    assert user.remember_digest is None

    assert (await async_client.get("/api/v1/me")).status_code == 401
    # A second logout, e.g. from another tab, is harmless.
    assert (await async_client.post("/api/v1/auth/logout")).status_code == 200


@pytest.mark.asyncio
async def test_password_reset_flow(async_client, db_session: AsyncSession, mailer):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()

    requested = await async_client.post(
        "/api/v1/auth/password-resets", json={"email": payload["email"]}
    )
    assert requested.status_code == 202
    assert len(mailer.password_resets) == 1
    token = mailer.password_resets[0]["token"]

    user = await fetch_user(db_session, payload["email"])
    assert user.reset_digest is not None
    assert user.reset_digest != token

    confirmed = await async_client.patch(
        f"/api/v1/auth/password-resets/{token}",
        json={
            "email": payload["email"],
            "password": "BrandNew123",
            "password_confirmation": "BrandNew123",
        },
    )
    assert confirmed.status_code == 200
    assert async_client.cookies.get("access_token")

    old_login = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": payload["password"]},
    )
    assert old_login.status_code == 401
    new_login = await async_client.post(
        "/api/v1/auth/login",
        json={"email": payload["email"], "password": "BrandNew123"},
    )
    assert new_login.status_code == 200

    reused = await async_client.patch(
        f"/api/v1/auth/password-resets/{token}",
        json={
            "email": payload["email"],
            "password": "Another123",
            "password_confirmation": "Another123",
        },
    )
    assert reused.status_code == 400


@pytest.mark.asyncio
async def test_password_reset_for_unknown_email_sends_nothing(async_client, mailer):
    response = await async_client.post(
        "/api/v1/auth/password-resets", json={"email": "nobody@example.com"}
    )

    assert response.status_code == 202
    assert mailer.password_resets == []


@pytest.mark.asyncio
async def test_expired_password_reset_is_rejected(
    async_client, db_session: AsyncSession, mailer
):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    await async_client.post("/api/v1/auth/password-resets", json={"email": payload["email"]})
    token = mailer.password_resets[0]["token"]

    user = await fetch_user(db_session, payload["email"])
    user.reset_sent_at = datetime.now(timezone.utc) - timedelta(hours=3)
    db_session.add(user)
    await db_session.commit()

    response = await async_client.patch(
        f"/api/v1/auth/password-resets/{token}",
        json={
            "email": payload["email"],
            "password": "BrandNew123",
            "password_confirmation": "BrandNew123",
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Token is invalid or has expired"


def test_reset_token_validity_window():
    sent_at = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    user = User(
        name="Reset",
        email="reset@example.com",
        password_hash="x",
        reset_digest=user_directory.digest_token("token"),
        reset_sent_at=sent_at,
    )

    assert user_directory.is_reset_token_valid(user, "token", now=sent_at + timedelta(minutes=119))
    assert not user_directory.is_reset_token_valid(
        user, "token", now=sent_at + timedelta(minutes=121)
    )
    assert not user_directory.is_reset_token_valid(user, "other", now=sent_at)


@pytest.mark.asyncio
async def test_password_reset_rejects_short_password(
    async_client, db_session: AsyncSession, mailer
):
    payload = build_payload()
    await async_client.post("/api/v1/auth/signup", json=payload)
    async_client.cookies.clear()
    await async_client.post("/api/v1/auth/password-resets", json={"email": payload["email"]})
    token = mailer.password_resets[0]["token"]

    response = await async_client.patch(
        f"/api/v1/auth/password-resets/{token}",
        json={"email": payload["email"], "password": "abc", "password_confirmation": "abc"},
    )

    assert response.status_code == 422
    assert response.json()["errors"] == {"password": ["is too short (minimum is 6 characters)"]}
    user = await fetch_user(db_session, payload["email"])
    assert user.reset_digest is not None

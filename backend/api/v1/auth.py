"""Authentication endpoints: signup, login/logout and password resets."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_optional_user
from core import create_access_token, hash_password, needs_rehash
from models import User
from services import users as user_directory
from services.auth import (
    clear_remember_cookie,
    clear_session_cookies,
    issue_remember_token,
    set_access_cookie,
    set_remember_cookie,
)
from services.errors import PasswordMismatch, ServiceError, safe_redirect_path
from services.mailer import get_mailer

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    password_confirmation: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr
    is_admin: bool = False


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    remember_me: bool = False
    next: str | None = Field(default=None, max_length=2048)


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    redirect_to: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    password: str
    password_confirmation: str


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid email/password combination"


async def _start_session(
    session: AsyncSession,
    response: Response,
    user: User,
    *,
    remember_me: bool,
) -> str:
    access_token = create_access_token(user.id)
    set_access_cookie(response, access_token)
    if remember_me:
        set_remember_cookie(response, await issue_remember_token(session, user))
    else:
        await user_directory.forget(session, user)
        clear_remember_cookie(response)
    return access_token


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=LoginResponse)
async def signup(
    payload: SignupRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> LoginResponse:
    if payload.password != payload.password_confirmation:
        raise PasswordMismatch()

    user = await user_directory.create_user(
        session,
        name=payload.name,
        email=str(payload.email),
        password=payload.password,
    )
    access_token = await _start_session(session, response, user, remember_me=False)
    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        redirect_to=f"/users/{user.id}",
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> LoginResponse:
    user = await user_directory.authenticate(session, payload.email, payload.password)
    if user is None:
        raise InvalidCredentials()

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        session.add(user)
        await session.commit()

    access_token = await _start_session(
        session,
        response,
        user,
        remember_me=payload.remember_me,
    )
    # Friendly forwarding: resume the page that required a login.
    redirect_to = safe_redirect_path(payload.next) if payload.next else f"/users/{user.id}"
    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        redirect_to=redirect_to,
    )


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    session: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
) -> dict[str, Any]:
    # Logging out twice (e.g. from two tabs) is harmless.
    if current_user is not None:
        await user_directory.forget(session, current_user)

    clear_session_cookies(response)
    return {"detail": "Logged out", "redirect_to": "/"}


@router.post("/password-resets", status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(
    payload: PasswordResetRequest,
    session: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    user = await user_directory.find_by_email(session, str(payload.email))
    if user is not None:
        token = await user_directory.create_reset_token(session, user)
        get_mailer().send_password_reset(email=user.email, name=user.name, token=token)
    # Same answer either way so the endpoint does not reveal which emails exist.
    return {"detail": "Email sent with password reset instructions"}


@router.patch("/password-resets/{token}", response_model=LoginResponse)
async def confirm_password_reset(
    token: str,
    payload: PasswordResetConfirm,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> LoginResponse:
    if payload.password != payload.password_confirmation:
        raise PasswordMismatch()

    user = await user_directory.reset_password(
        session,
        email=str(payload.email),
        token=token,
        password=payload.password,
    )
    access_token = await _start_session(session, response, user, remember_me=False)
    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        redirect_to=f"/users/{user.id}",
    )

"""User directory and follow graph endpoints."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_page
from core import settings
from models import User
from services import posts as post_store
from services import relationships as graph
from services import users as user_directory
from services.errors import Forbidden, PasswordMismatch
from .pagination import set_page_headers
from .post_views import PostResponse, build_post_responses

router = APIRouter(tags=["users"])


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_admin: bool = False


class UserPrivate(UserSummary):
    email: EmailStr


class UserProfile(UserSummary):
    posts_count: int = 0
    following_count: int = 0
    followers_count: int = 0


class UserUpdateRequest(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = None
    password_confirmation: str | None = None


class FollowMutationResponse(BaseModel):
    detail: str
    state: Literal["none", "following"]


class FollowStatusResponse(BaseModel):
    is_following: bool
    is_followed_by: bool


class UserDeletionResponse(BaseModel):
    detail: str
    posts_deleted: int
    relationships_deleted: int
    redirect_to: str = "/users"


@router.get("/me", response_model=UserPrivate)
async def get_me(current_user: User = Depends(get_current_user)) -> UserPrivate:
    """Return the authenticated user's own record."""
    return UserPrivate.model_validate(current_user)


@router.get("/users", response_model=list[UserSummary])
async def list_users(
    response: Response,
    page: int = Depends(get_page),
    session: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[UserSummary]:
    result = await user_directory.list_users(session, page=page, page_size=settings.page_size)
    set_page_headers(response, result)
    return [UserSummary.model_validate(user) for user in result.items]


@router.get("/users/{user_id}", response_model=UserProfile)
async def get_user_profile(
    user_id: str,
    session: AsyncSession = Depends(get_db),
) -> UserProfile:
    """Public profile with post and follow counts."""
    user = await user_directory.get_user(session, user_id)
    following_count, followers_count = await graph.follow_counts(session, user)
    return UserProfile(
        id=user.id,
        name=user.name,
        is_admin=user.is_admin,
        posts_count=await post_store.count_by_owner(session, user),
        following_count=following_count,
        followers_count=followers_count,
    )


@router.patch("/users/{user_id}", response_model=UserPrivate)
async def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserPrivate:
    if current_user.id != user_id:
        raise Forbidden()
    if payload.password and payload.password != payload.password_confirmation:
        raise PasswordMismatch()

    user = await user_directory.update_user(
        session,
        current_user,
        name=payload.name,
        email=str(payload.email) if payload.email is not None else None,
        password=payload.password,
    )
    return UserPrivate.model_validate(user)


@router.delete("/users/{user_id}", response_model=UserDeletionResponse)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserDeletionResponse:
    deletion = await user_directory.delete_user(session, actor=current_user, target_id=user_id)
    return UserDeletionResponse(
        detail="User deleted",
        posts_deleted=deletion.posts_deleted,
        relationships_deleted=deletion.relationships_deleted,
    )


@router.get("/users/{user_id}/posts", response_model=list[PostResponse])
async def list_user_posts(
    user_id: str,
    response: Response,
    page: int = Depends(get_page),
    session: AsyncSession = Depends(get_db),
) -> list[PostResponse]:
    """Posts authored by the user, newest first."""
    owner = await user_directory.get_user(session, user_id)
    result = await post_store.list_by_owner(
        session,
        owner,
        page=page,
        page_size=settings.page_size,
    )
    set_page_headers(response, result)
    return await build_post_responses(session, result.items)


@router.get("/users/{user_id}/following", response_model=list[UserSummary])
async def list_following(
    user_id: str,
    response: Response,
    page: int = Depends(get_page),
    session: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[UserSummary]:
    user = await user_directory.get_user(session, user_id)
    result = await graph.following_of(session, user, page=page, page_size=settings.page_size)
    set_page_headers(response, result)
    return [UserSummary.model_validate(followed) for followed in result.items]


@router.get("/users/{user_id}/followers", response_model=list[UserSummary])
async def list_followers(
    user_id: str,
    response: Response,
    page: int = Depends(get_page),
    session: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> list[UserSummary]:
    user = await user_directory.get_user(session, user_id)
    result = await graph.followers_of(session, user, page=page, page_size=settings.page_size)
    set_page_headers(response, result)
    return [UserSummary.model_validate(follower) for follower in result.items]


@router.post(
    "/users/{user_id}/follow",
    response_model=FollowMutationResponse,
    status_code=status.HTTP_200_OK,
)
async def follow_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FollowMutationResponse:
    target = await user_directory.get_user(session, user_id)
    created = await graph.follow(session, current_user, target)
    return FollowMutationResponse(
        detail="Followed" if created else "Already following",
        state="following",
    )


@router.delete(
    "/users/{user_id}/follow",
    response_model=FollowMutationResponse,
    status_code=status.HTTP_200_OK,
)
async def unfollow_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FollowMutationResponse:
    target = await user_directory.get_user(session, user_id)
    removed = await graph.unfollow(session, current_user, target)
    return FollowMutationResponse(
        detail="Unfollowed" if removed else "Not following",
        state="none",
    )


@router.get("/users/{user_id}/follow-status", response_model=FollowStatusResponse)
async def get_follow_status(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FollowStatusResponse:
    target = await user_directory.get_user(session, user_id)
    return FollowStatusResponse(
        is_following=await graph.is_following(
            session,
            follower_id=current_user.id,
            followed_id=target.id,
        ),
        is_followed_by=await graph.is_following(
            session,
            follower_id=target.id,
            followed_id=current_user.id,
        ),
    )

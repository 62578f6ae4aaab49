"""User listing, pagination, search and deletion endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request, Response, status

from user_directory.api.schemas import ShouldLoadMorePayload, UserListPayload

if TYPE_CHECKING:
    from user_directory.containers import AppContainer

router = APIRouter(prefix="/users", tags=["users"])

_MAX_PAGE_SIZE = 5000


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("")
async def get_users(
    request: Request,
    count: int | None = Query(default=None, ge=1, le=_MAX_PAGE_SIZE),
) -> UserListPayload:
    """Return the first page, served from memory or storage when possible."""
    container = _container(request)
    resolved = count or container.settings.default_page_size
    users = await container.user_repository.get_users(resolved)
    return UserListPayload.from_domain(users)


@router.post("/load-more")
async def load_more(
    request: Request,
    count: int | None = Query(default=None, ge=1, le=_MAX_PAGE_SIZE),
) -> UserListPayload:
    """Fetch the next page from the remote source."""
    container = _container(request)
    resolved = count or container.settings.default_page_size
    users = await container.user_repository.load_more(resolved)
    return UserListPayload.from_domain(users)


@router.post("/reload")
async def reload(request: Request) -> UserListPayload:
    """Retry the last first-page request."""
    users = await _container(request).user_repository.reload()
    return UserListPayload.from_domain(users)


@router.get("/saved")
async def saved_users(request: Request) -> UserListPayload:
    """Return every persisted user."""
    users = await _container(request).user_repository.get_saved_users()
    return UserListPayload.from_domain(users)


@router.get("/search")
async def search_users(request: Request, q: str = "") -> UserListPayload:
    """Search users by name or email."""
    users = await _container(request).user_repository.search(q)
    return UserListPayload.from_domain(users)


@router.get("/should-load-more")
async def should_load_more(
    request: Request,
    current_index: int = Query(ge=0),
    total_count: int = Query(ge=0),
) -> ShouldLoadMorePayload:
    """Tell the client whether it should request the next page."""
    repository = _container(request).user_repository
    return ShouldLoadMorePayload(
        should_load_more=repository.should_load_more(current_index, total_count)
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, request: Request) -> Response:
    """Delete a user from storage and memory."""
    await _container(request).user_repository.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

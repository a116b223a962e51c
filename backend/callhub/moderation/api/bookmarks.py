"""Saved chants and call charts for the current user."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from callhub.infra.auth import get_actor
from callhub.moderation.domain.bookmarks import BookmarkService
from callhub.moderation.domain.container import get_bookmarks
from callhub.moderation.domain.exceptions import ValidationError
from callhub.moderation.domain.models import Actor, Bookmark, BookmarkCategory, TargetType

router = APIRouter(prefix="/api/v1/bookmarks", tags=["bookmarks"])


class BookmarkTargetIn(BaseModel):
    target_type: str
    target_id: str


class BookmarkToggleIn(BookmarkTargetIn):
    # the saved state the client is showing, if any
    assume_saved: Optional[bool] = None


class BookmarkStateOut(BaseModel):
    target_type: str
    target_id: str
    state: str


class BookmarkOut(BaseModel):
    id: str
    target_type: str
    target_id: str
    category: str
    created_at: datetime

    @classmethod
    def from_model(cls, bookmark: Bookmark) -> "BookmarkOut":
        return cls(
            id=bookmark.id,
            target_type=bookmark.target_type.value,
            target_id=bookmark.target_id,
            category=bookmark.category.value,
            created_at=bookmark.created_at,
        )


class BookmarkRemovedOut(BaseModel):
    id: str
    removed: bool


def get_bookmarks_dep() -> BookmarkService:
    return get_bookmarks()


def _target(payload: BookmarkTargetIn) -> TargetType:
    try:
        return TargetType.parse(payload.target_type)
    except ValueError as exc:
        raise ValidationError("target_type") from exc


@router.put("/toggle", response_model=BookmarkStateOut)
async def toggle_bookmark(
    payload: BookmarkToggleIn,
    service: BookmarkService = Depends(get_bookmarks_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> BookmarkStateOut:
    target_type = _target(payload)
    state = await service.toggle(actor, target_type, payload.target_id, assume_saved=payload.assume_saved)
    return BookmarkStateOut(target_type=target_type.value, target_id=payload.target_id, state=state.value)


@router.post("/promote", response_model=BookmarkStateOut)
async def promote_bookmark(
    payload: BookmarkTargetIn,
    service: BookmarkService = Depends(get_bookmarks_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> BookmarkStateOut:
    target_type = _target(payload)
    state = await service.promote(actor, target_type, payload.target_id)
    return BookmarkStateOut(target_type=target_type.value, target_id=payload.target_id, state=state.value)


@router.get("", response_model=list[BookmarkOut])
async def list_bookmarks(
    category: Optional[BookmarkCategory] = Query(default=None),
    service: BookmarkService = Depends(get_bookmarks_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> list[BookmarkOut]:
    bookmarks = await service.list_for_user(actor, category=category)
    return [BookmarkOut.from_model(bookmark) for bookmark in bookmarks]


@router.delete("/{bookmark_id}", response_model=BookmarkRemovedOut)
async def remove_bookmark(
    bookmark_id: str,
    service: BookmarkService = Depends(get_bookmarks_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> BookmarkRemovedOut:
    removed = await service.remove(actor, bookmark_id)
    return BookmarkRemovedOut(id=bookmark_id, removed=removed)

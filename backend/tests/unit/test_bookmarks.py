from __future__ import annotations

import asyncio

import pytest

from callhub.moderation.domain.bookmarks import BookmarkService, BookmarkState
from callhub.moderation.domain.exceptions import AuthError, ForbiddenError, InvalidTransitionError, StoreError
from callhub.moderation.domain.models import BookmarkCategory, Collection, TargetType


@pytest.fixture
def bookmarks(store):
    return BookmarkService(store=store)


@pytest.mark.asyncio
async def test_toggle_saves_then_removes(bookmarks, store, user):
    assert await bookmarks.toggle(user, TargetType.CHANT, "chant-1") is BookmarkState.PRACTICE
    [row] = store.snapshot(Collection.BOOKMARKS)
    assert row["category"] == "practice"
    assert row["chant_id"] == "chant-1"

    assert await bookmarks.toggle(user, TargetType.CHANT, "chant-1") is BookmarkState.ABSENT
    assert store.snapshot(Collection.BOOKMARKS) == []


@pytest.mark.asyncio
async def test_rapid_double_toggle_from_absent_creates_one_row(bookmarks, store, user):
    results = await asyncio.gather(
        bookmarks.toggle(user, TargetType.CALL_CHART, "chart-1"),
        bookmarks.toggle(user, TargetType.CALL_CHART, "chart-1"),
    )

    assert results == [BookmarkState.PRACTICE, BookmarkState.PRACTICE]
    rows = store.snapshot(Collection.BOOKMARKS)
    assert len(rows) == 1
    assert rows[0]["category"] == "practice"


@pytest.mark.asyncio
async def test_toggle_with_stale_assumption_swallows_conflict(bookmarks, store, user):
    await bookmarks.toggle(user, TargetType.CHANT, "chant-1")

    state = await bookmarks.toggle(user, TargetType.CHANT, "chant-1", assume_saved=False)

    assert state is BookmarkState.PRACTICE
    assert len(store.snapshot(Collection.BOOKMARKS)) == 1


@pytest.mark.asyncio
async def test_toggle_assumed_saved_removes_any_category(bookmarks, store, user):
    await bookmarks.toggle(user, TargetType.CHANT, "chant-1")
    await bookmarks.promote(user, TargetType.CHANT, "chant-1")

    state = await bookmarks.toggle(user, TargetType.CHANT, "chant-1", assume_saved=True)

    assert state is BookmarkState.ABSENT
    assert store.snapshot(Collection.BOOKMARKS) == []


@pytest.mark.asyncio
async def test_toggle_store_failure_is_surfaced(bookmarks, store, user):
    store.inject_failure(Collection.BOOKMARKS, "insert")

    with pytest.raises(StoreError):
        await bookmarks.toggle(user, TargetType.CHANT, "chant-1")
    assert store.snapshot(Collection.BOOKMARKS) == []


@pytest.mark.asyncio
async def test_promote_transitions(bookmarks, store, user):
    with pytest.raises(InvalidTransitionError):
        await bookmarks.promote(user, TargetType.CHANT, "chant-1")
    assert store.snapshot(Collection.BOOKMARKS) == []

    await bookmarks.toggle(user, TargetType.CHANT, "chant-1")
    assert await bookmarks.promote(user, TargetType.CHANT, "chant-1") is BookmarkState.FAVORITE
    # promoting a favorite is a no-op and never regresses or duplicates
    assert await bookmarks.promote(user, TargetType.CHANT, "chant-1") is BookmarkState.FAVORITE

    rows = store.snapshot(Collection.BOOKMARKS)
    assert len(rows) == 1
    assert rows[0]["category"] == "favorite"
    assert await bookmarks.state(user, TargetType.CHANT, "chant-1") is BookmarkState.FAVORITE


@pytest.mark.asyncio
async def test_bookmarks_are_per_user(bookmarks, store, user, other_user):
    await bookmarks.toggle(user, TargetType.CHANT, "chant-1")
    await bookmarks.toggle(other_user, TargetType.CHANT, "chant-1")
    await bookmarks.toggle(user, TargetType.CALL_CHART, "chart-1")
    await bookmarks.promote(user, TargetType.CALL_CHART, "chart-1")

    mine = await bookmarks.list_for_user(user)
    favorites = await bookmarks.list_for_user(user, category=BookmarkCategory.FAVORITE)

    assert {(b.target_type, b.target_id) for b in mine} == {
        (TargetType.CHANT, "chant-1"),
        (TargetType.CALL_CHART, "chart-1"),
    }
    assert [b.target_id for b in favorites] == ["chart-1"]
    assert len(store.snapshot(Collection.BOOKMARKS)) == 3


@pytest.mark.asyncio
async def test_remove_checks_ownership(bookmarks, user, other_user):
    await bookmarks.toggle(user, TargetType.CHANT, "chant-1")
    [bookmark] = await bookmarks.list_for_user(user)

    with pytest.raises(ForbiddenError):
        await bookmarks.remove(other_user, bookmark.id)

    assert await bookmarks.remove(user, bookmark.id) is True
    assert await bookmarks.remove(user, bookmark.id) is False


@pytest.mark.asyncio
async def test_bookmarks_require_identity(bookmarks):
    with pytest.raises(AuthError):
        await bookmarks.toggle(None, TargetType.CHANT, "chant-1")

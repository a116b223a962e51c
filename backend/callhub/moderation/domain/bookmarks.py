"""Per-user saved state for chants and call charts.

States per (user, target): absent, practice, favorite. ``toggle`` saves into
practice or removes whatever is there; ``promote`` moves practice to
favorite. Uniqueness of (user, target) is enforced by the store and a
conflicting insert counts as a successful save.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from callhub.moderation.domain.exceptions import ConflictError, ForbiddenError, InvalidTransitionError
from callhub.moderation.domain.models import (
    Actor,
    Bookmark,
    BookmarkCategory,
    Collection,
    TargetType,
    bookmark_target_filter,
    require_actor,
    utcnow,
)
from callhub.moderation.domain.store import ContentStore
from callhub.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class BookmarkState(str, Enum):
    ABSENT = "absent"
    PRACTICE = "practice"
    FAVORITE = "favorite"


@dataclass
class BookmarkService:
    store: ContentStore

    async def _find(self, user_id: str, target_type: TargetType, target_id: str) -> Optional[dict[str, Any]]:
        rows = await self.store.query(
            Collection.BOOKMARKS,
            {"user_id": user_id, **bookmark_target_filter(target_type, target_id)},
            limit=1,
        )
        return rows[0] if rows else None

    async def state(self, actor: Optional[Actor], target_type: TargetType, target_id: str) -> BookmarkState:
        actor = require_actor(actor)
        row = await self._find(actor.id, target_type, target_id)
        if row is None:
            return BookmarkState.ABSENT
        return BookmarkState(row["category"])

    async def toggle(
        self,
        actor: Optional[Actor],
        target_type: TargetType,
        target_id: str,
        *,
        assume_saved: bool | None = None,
    ) -> BookmarkState:
        """Save or unsave ``target``. Returns the resulting state.

        ``assume_saved`` lets a client that already shows the saved state skip
        the lookup; when omitted the current row is read from the store.
        """
        actor = require_actor(actor)
        target_filter = bookmark_target_filter(target_type, target_id)
        if assume_saved is None:
            row = await self._find(actor.id, target_type, target_id)
            saved = row is not None
        else:
            row = None
            saved = assume_saved

        if saved:
            if row is None:
                row = await self._find(actor.id, target_type, target_id)
            if row is not None:
                await self.store.delete(Collection.BOOKMARKS, row["id"])
            obs_metrics.inc_bookmark_transition("remove")
            logger.info(
                "bookmark removed",
                extra={"user_id": actor.id, "target_type": target_type.value, "target_id": target_id},
            )
            return BookmarkState.ABSENT

        try:
            await self.store.insert(
                Collection.BOOKMARKS,
                {
                    "user_id": actor.id,
                    **target_filter,
                    "category": BookmarkCategory.PRACTICE.value,
                    "created_at": utcnow(),
                },
            )
        except ConflictError:
            # a concurrent save already created the row
            obs_metrics.inc_bookmark_transition("save_duplicate")
            existing = await self._find(actor.id, target_type, target_id)
            return BookmarkState(existing["category"]) if existing else BookmarkState.PRACTICE
        obs_metrics.inc_bookmark_transition("save")
        return BookmarkState.PRACTICE

    async def promote(self, actor: Optional[Actor], target_type: TargetType, target_id: str) -> BookmarkState:
        actor = require_actor(actor)
        row = await self._find(actor.id, target_type, target_id)
        if row is None:
            raise InvalidTransitionError(BookmarkState.ABSENT.value, "promote")
        if row["category"] == BookmarkCategory.FAVORITE.value:
            obs_metrics.inc_bookmark_transition("promote_noop")
            return BookmarkState.FAVORITE
        updated = await self.store.update(
            Collection.BOOKMARKS, row["id"], {"category": BookmarkCategory.FAVORITE.value}
        )
        if updated is None:
            raise InvalidTransitionError(BookmarkState.ABSENT.value, "promote")
        obs_metrics.inc_bookmark_transition("promote")
        return BookmarkState.FAVORITE

    async def list_for_user(
        self, actor: Optional[Actor], *, category: BookmarkCategory | None = None
    ) -> list[Bookmark]:
        actor = require_actor(actor)
        filters: dict[str, Any] = {"user_id": actor.id}
        if category is not None:
            filters["category"] = category.value
        rows = await self.store.query(Collection.BOOKMARKS, filters)
        return [Bookmark.from_record(row) for row in rows]

    async def remove(self, actor: Optional[Actor], bookmark_id: str) -> bool:
        actor = require_actor(actor)
        row = await self.store.get(Collection.BOOKMARKS, bookmark_id)
        if row is None:
            return False
        if str(row["user_id"]) != actor.id:
            raise ForbiddenError("not_bookmark_owner")
        deleted = await self.store.delete(Collection.BOOKMARKS, bookmark_id)
        if deleted:
            obs_metrics.inc_bookmark_transition("remove")
        return deleted

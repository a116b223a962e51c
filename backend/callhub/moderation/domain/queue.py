"""Operator-facing read side of the pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from callhub.moderation.domain.models import (
    Actor,
    BulletinPost,
    BulletinStatus,
    ChantSubmission,
    Collection,
    InquiryCategory,
    Reply,
    Report,
    ReportStatus,
    SongSubmission,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    require_operator,
    submission_from_record,
)
from callhub.moderation.domain.store import ContentStore

logger = logging.getLogger(__name__)

UNSET_ARTIST = "unset"


@dataclass(slots=True)
class QueueEntry:
    """A submission plus display values resolved from referenced records."""

    submission: Submission
    display: dict[str, Any] = field(default_factory=dict)


def _report_status_filter(status: ReportStatus | None) -> dict[str, Any]:
    if status is None:
        return {}
    if status is ReportStatus.PENDING:
        # rows written before statuses existed have null status
        return {"status": (ReportStatus.PENDING.value, None)}
    return {"status": status.value}


def _inquiry_category_filter(category: InquiryCategory | None) -> dict[str, Any]:
    if category is None:
        return {}
    if category is InquiryCategory.FEATURE_REQUEST:
        # legacy rows say "request"
        return {"category": (category.value, "request")}
    return {"category": (category.value, "", None)}


@dataclass
class ModerationQueue:
    store: ContentStore

    async def list_submissions(
        self,
        actor: Optional[Actor],
        *,
        kind: SubmissionKind | None = None,
        status: SubmissionStatus | None = SubmissionStatus.PENDING,
        category: InquiryCategory | None = None,
        limit: int | None = None,
    ) -> list[QueueEntry]:
        require_operator(actor)
        filters: dict[str, Any] = {}
        if kind is not None:
            filters["kind"] = kind.value
        if status is not None:
            filters["status"] = status.value
        filters.update(_inquiry_category_filter(category))
        rows = await self.store.query(Collection.SUBMISSIONS, filters, limit=limit)
        entries = [QueueEntry(submission=submission_from_record(row)) for row in rows]
        await self._resolve_display(entries)
        return entries

    async def _resolve_display(self, entries: list[QueueEntry]) -> None:
        artist_names: dict[str, str] = {}
        song_titles: dict[str, Optional[str]] = {}
        for entry in entries:
            submission = entry.submission
            if isinstance(submission, SongSubmission):
                artist_id = submission.related_artist_id
                if not artist_id:
                    entry.display["artist_name"] = UNSET_ARTIST
                    continue
                if artist_id not in artist_names:
                    artist = await self.store.get(Collection.ARTISTS, artist_id)
                    artist_names[artist_id] = artist["name"] if artist else f"ID: {artist_id}"
                entry.display["artist_name"] = artist_names[artist_id]
            elif isinstance(submission, ChantSubmission) and submission.song_id:
                if submission.song_id not in song_titles:
                    song = await self.store.get(Collection.SONGS, submission.song_id)
                    song_titles[submission.song_id] = song["title"] if song else None
                entry.display["song_title"] = song_titles[submission.song_id]

    async def list_bulletin_posts(
        self,
        actor: Optional[Actor],
        *,
        status: BulletinStatus | None = BulletinStatus.PENDING,
        limit: int | None = None,
    ) -> list[BulletinPost]:
        require_operator(actor)
        filters = {"status": status.value} if status is not None else {}
        rows = await self.store.query(Collection.BULLETIN_POSTS, filters, limit=limit)
        return [BulletinPost.from_record(row) for row in rows]

    async def list_reports(
        self,
        actor: Optional[Actor],
        *,
        status: ReportStatus | None = ReportStatus.PENDING,
        limit: int | None = None,
    ) -> list[Report]:
        require_operator(actor)
        rows = await self.store.query(Collection.REPORTS, _report_status_filter(status), limit=limit)
        return [Report.from_record(row) for row in rows]

    async def pending_counts(self, actor: Optional[Actor]) -> dict[str, int]:
        """Badge counts of everything still waiting on an operator."""
        require_operator(actor)
        counts: dict[str, int] = {}
        for kind in SubmissionKind:
            counts[kind.value] = await self.store.count(
                Collection.SUBMISSIONS,
                {"kind": kind.value, "status": SubmissionStatus.PENDING.value},
            )
        counts["bulletin"] = await self.store.count(
            Collection.BULLETIN_POSTS, {"status": BulletinStatus.PENDING.value}
        )
        counts["report"] = await self.store.count(Collection.REPORTS, _report_status_filter(ReportStatus.PENDING))
        return counts

    async def list_replies(self, *, category: InquiryCategory | None = None, limit: int | None = None) -> list[Reply]:
        rows = await self.store.query(Collection.REPLIES, _inquiry_category_filter(category), limit=limit)
        return [Reply.from_record(row) for row in rows]

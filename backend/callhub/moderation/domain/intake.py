"""Submission intake: validates user drafts and writes them as pending rows."""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence

from callhub.moderation.domain.exceptions import ValidationError
from callhub.moderation.domain.models import (
    Actor,
    ArtistSubmission,
    BoardCategory,
    BulletinPost,
    BulletinStatus,
    ChantSubmission,
    Collection,
    InquiryCategory,
    InquirySubmission,
    Report,
    ReportCategory,
    ReportReason,
    ReportStatus,
    SongSubmission,
    Submission,
    SubmissionStatus,
    TargetType,
    require_actor,
    utcnow,
)
from callhub.moderation.domain.store import ContentStore
from callhub.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required(field: str, value: Any) -> str:
    text = _clean(value)
    if text is None:
        raise ValidationError(field)
    return text


def parse_measures(value: Any) -> int:
    """Parse a bar-count; accepts ints and digit strings, must be positive."""
    if isinstance(value, bool):
        raise ValidationError("measures")
    if isinstance(value, int):
        measures = value
    else:
        text = _clean(value)
        if text is None:
            raise ValidationError("measures")
        try:
            measures = int(text)
        except ValueError as exc:
            raise ValidationError("measures") from exc
    if measures <= 0:
        raise ValidationError("measures")
    return measures


def _parse_enum(enum_cls, field: str, value: Any, *, parser=None):
    text = _clean(value)
    if text is None:
        raise ValidationError(field)
    try:
        return (parser or enum_cls)(text)
    except ValueError as exc:
        raise ValidationError(field) from exc


@dataclass
class SubmissionIntake:
    store: ContentStore
    max_board_images: int = 2

    async def _write(self, submission: Submission) -> Submission:
        await self.store.insert(Collection.SUBMISSIONS, submission.to_record())
        obs_metrics.inc_submission(submission.kind.value)
        logger.info(
            "submission accepted",
            extra={"submission_id": submission.id, "kind": submission.kind.value, "owner_id": submission.owner_id},
        )
        return submission

    def _base(self, actor: Actor) -> dict[str, Any]:
        return {
            "id": str(uuid.uuid4()),
            "status": SubmissionStatus.PENDING,
            "owner_id": actor.id,
            "created_at": utcnow(),
        }

    async def submit_artist(
        self,
        actor: Optional[Actor],
        *,
        name: Any,
        profile_url: Any,
        reading: Any = None,
    ) -> ArtistSubmission:
        actor = require_actor(actor)
        submission = ArtistSubmission(
            **self._base(actor),
            name=_required("name", name),
            reading=_clean(reading),
            profile_url=_required("profile_url", profile_url),
        )
        return await self._write(submission)

    async def submit_song(
        self,
        actor: Optional[Actor],
        *,
        title: Any,
        related_artist_id: Any,
        youtube_url: Any = None,
        apple_music_url: Any = None,
        amazon_music_url: Any = None,
    ) -> SongSubmission:
        actor = require_actor(actor)
        submission = SongSubmission(
            **self._base(actor),
            title=_required("title", title),
            related_artist_id=_required("related_artist_id", related_artist_id),
            youtube_url=_clean(youtube_url),
            apple_music_url=_clean(apple_music_url),
            amazon_music_url=_clean(amazon_music_url),
        )
        return await self._write(submission)

    async def submit_chant(
        self,
        actor: Optional[Actor],
        *,
        title: Any,
        content: Any,
        measures: Any,
        reference_url: Any = None,
        remarks: Any = None,
        song_id: Any = None,
    ) -> ChantSubmission:
        actor = require_actor(actor)
        submission = ChantSubmission(
            **self._base(actor),
            title=_required("title", title),
            content=_required("content", content),
            measures=parse_measures(measures),
            reference_url=_clean(reference_url),
            remarks=_clean(remarks),
            song_id=_clean(song_id),
        )
        return await self._write(submission)

    async def submit_inquiry(
        self,
        actor: Optional[Actor],
        *,
        content: Any,
        category: Any = None,
    ) -> InquirySubmission:
        actor = require_actor(actor)
        try:
            parsed_category = InquiryCategory.parse(_clean(category))
        except ValueError as exc:
            raise ValidationError("category") from exc
        submission = InquirySubmission(
            **self._base(actor),
            content=_required("content", content),
            category=parsed_category,
        )
        return await self._write(submission)

    async def submit_bulletin_post(
        self,
        actor: Optional[Actor],
        *,
        event_date: Any,
        event_time: Any,
        category: Any,
        group_name: Any,
        location: Any,
        live_title: Any = None,
        description: Any = None,
        x_id: Any = None,
        images: Sequence[str] | None = None,
    ) -> BulletinPost:
        actor = require_actor(actor)
        raw_date = _required("event_date", event_date)
        try:
            date.fromisoformat(raw_date)
        except ValueError as exc:
            raise ValidationError("event_date") from exc
        raw_time = _required("event_time", event_time)
        if not _TIME_RE.match(raw_time):
            raise ValidationError("event_time")
        image_paths = [path for path in (_clean(item) for item in images or ()) if path]
        if len(image_paths) > self.max_board_images:
            raise ValidationError("images", f"too_many_images:{self.max_board_images}")
        x_handle = _clean(x_id)
        post = BulletinPost(
            id=str(uuid.uuid4()),
            owner_id=actor.id,
            event_date=raw_date,
            event_time=raw_time,
            category=_parse_enum(BoardCategory, "category", category),
            group_name=_required("group_name", group_name),
            location=_required("location", location),
            status=BulletinStatus.PENDING,
            created_at=utcnow(),
            live_title=_clean(live_title),
            description=_clean(description),
            x_id=x_handle.lstrip("@") if x_handle else None,
            images=image_paths,
        )
        await self.store.insert(
            Collection.BULLETIN_POSTS,
            {
                "id": post.id,
                "owner_id": post.owner_id,
                "event_date": post.event_date,
                "event_time": post.event_time,
                "category": post.category.value,
                "group_name": post.group_name,
                "location": post.location,
                "status": post.status.value,
                "created_at": post.created_at,
                "live_title": post.live_title,
                "description": post.description,
                "x_id": post.x_id,
                "images": post.images,
            },
        )
        obs_metrics.inc_submission("bulletin")
        logger.info("bulletin post accepted", extra={"post_id": post.id, "owner_id": actor.id})
        return post

    async def submit_report(
        self,
        actor: Optional[Actor],
        *,
        target_type: Any,
        target_id: Any,
        category: Any,
        reason: Any = None,
        details: Any = None,
    ) -> Report:
        actor = require_actor(actor)
        parsed_target = _parse_enum(TargetType, "target_type", target_type, parser=TargetType.parse)
        parsed_category = _parse_enum(ReportCategory, "category", category, parser=ReportCategory.parse)
        parsed_reason: ReportReason | None = None
        clean_details = _clean(details)
        if parsed_category is ReportCategory.CORRECTION:
            if clean_details is None:
                raise ValidationError("details")
        else:
            parsed_reason = _parse_enum(ReportReason, "reason", reason)
        report = Report(
            id=str(uuid.uuid4()),
            reporter_id=actor.id,
            target_type=parsed_target,
            target_id=_required("target_id", target_id),
            category=parsed_category,
            status=ReportStatus.PENDING,
            created_at=utcnow(),
            reason=parsed_reason,
            details=clean_details,
        )
        await self.store.insert(
            Collection.REPORTS,
            {
                "id": report.id,
                "reporter_id": report.reporter_id,
                "target_type": report.target_type.value,
                "target_id": report.target_id,
                "category": report.category.value,
                "reason": report.reason.value if report.reason else None,
                "details": report.details,
                "status": report.status.value,
                "created_at": report.created_at,
            },
        )
        obs_metrics.inc_submission("report")
        logger.info(
            "report filed",
            extra={"report_id": report.id, "target_type": report.target_type.value, "target_id": report.target_id},
        )
        return report

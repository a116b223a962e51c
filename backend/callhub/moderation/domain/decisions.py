"""Decision engine: applies operator decisions to pending submissions.

Every accepting transition publishes first and retires the submission
second. When the publish write fails the submission row is left untouched
so the operator can retry the same decision. Rejection has no publish half
and deleting an id that is already gone is reported as a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

from callhub.moderation.domain.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PipelineError,
    ValidationError,
)
from callhub.moderation.domain.models import (
    Actor,
    ArtistSubmission,
    BulletinStatus,
    ChantSubmission,
    Collection,
    Decision,
    InquirySubmission,
    SongSubmission,
    Submission,
    SubmissionStatus,
    require_operator,
    submission_from_record,
    utcnow,
)
from callhub.moderation.domain.store import ContentStore
from callhub.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DecisionOutcome:
    record_id: str
    kind: str
    decision: Decision
    applied: bool
    published_id: Optional[str] = None


@dataclass
class KeyedLocks:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    _locks: dict[str, asyncio.Lock] = field(default_factory=dict)
    _users: dict[str, int] = field(default_factory=dict)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                self._users.pop(key, None)
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


def publication_for(submission: Submission) -> tuple[Collection, dict[str, Any]]:
    """Map an accepted submission onto the master record it publishes."""
    if isinstance(submission, ArtistSubmission):
        return Collection.ARTISTS, {
            "name": submission.name,
            "reading": submission.reading,
            "profile_url": submission.profile_url,
        }
    if isinstance(submission, SongSubmission):
        return Collection.SONGS, {
            "title": submission.title,
            "artist_id": submission.related_artist_id,
            "youtube_url": submission.youtube_url,
            "apple_music_url": submission.apple_music_url,
            "amazon_music_url": submission.amazon_music_url,
        }
    if isinstance(submission, ChantSubmission):
        return Collection.CHANT_TEMPLATES, {
            "title": submission.title,
            "content": submission.content,
            "bars": submission.bar_count(),
            "song_id": submission.song_id,
            "reference_url": submission.reference_url,
            "url": submission.reference_url,
            "author_id": submission.owner_id,
            "bookmark_count": 0,
        }
    raise InvalidTransitionError(SubmissionStatus.PENDING.value, Decision.APPROVE.value)


@dataclass
class DecisionEngine:
    store: ContentStore
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    async def _load(self, submission_id: str, decision: Decision) -> Submission:
        record = await self.store.get(Collection.SUBMISSIONS, submission_id)
        if record is None:
            obs_metrics.inc_decision("unknown", decision.value, "not_found")
            raise NotFoundError(Collection.SUBMISSIONS.value, submission_id)
        submission = submission_from_record(record)
        if submission.status is not SubmissionStatus.PENDING:
            obs_metrics.inc_decision(submission.kind.value, decision.value, "invalid")
            raise InvalidTransitionError(submission.status.value, decision.value)
        return submission

    async def _publish(self, submission: Submission, decision: Decision, collection: Collection, payload: dict[str, Any]) -> str:
        try:
            return await self.store.insert(collection, payload)
        except PipelineError as exc:
            obs_metrics.inc_decision(submission.kind.value, decision.value, "publish_failed")
            logger.error(
                "publish failed; submission kept for retry",
                extra={
                    "submission_id": submission.id,
                    "kind": submission.kind.value,
                    "decision": decision.value,
                    "cause": str(getattr(exc, "cause", exc)),
                },
            )
            raise

    async def _retire(self, submission: Submission, decision: Decision, published_id: str | None) -> bool:
        try:
            return await self.store.delete(Collection.SUBMISSIONS, submission.id)
        except PipelineError as exc:
            obs_metrics.inc_decision(submission.kind.value, decision.value, "retire_failed")
            logger.error(
                "retire failed after publish",
                extra={
                    "submission_id": submission.id,
                    "kind": submission.kind.value,
                    "decision": decision.value,
                    "published_id": published_id,
                    "cause": str(getattr(exc, "cause", exc)),
                },
            )
            raise

    def _applied(self, submission: Submission, decision: Decision, started: float, published_id: str | None) -> DecisionOutcome:
        obs_metrics.inc_decision(submission.kind.value, decision.value, "applied")
        obs_metrics.observe_decision(decision.value, time.perf_counter() - started)
        logger.info(
            "decision applied",
            extra={
                "submission_id": submission.id,
                "kind": submission.kind.value,
                "decision": decision.value,
                "published_id": published_id,
            },
        )
        return DecisionOutcome(
            record_id=submission.id,
            kind=submission.kind.value,
            decision=decision,
            applied=True,
            published_id=published_id,
        )

    async def approve(self, actor: Optional[Actor], submission_id: str) -> DecisionOutcome:
        require_operator(actor)
        async with self.locks.hold(submission_id):
            started = time.perf_counter()
            submission = await self._load(submission_id, Decision.APPROVE)
            if isinstance(submission, InquirySubmission):
                obs_metrics.inc_decision(submission.kind.value, Decision.APPROVE.value, "invalid")
                raise InvalidTransitionError(submission.kind.value, Decision.APPROVE.value)
            collection, payload = publication_for(submission)
            published_id = await self._publish(submission, Decision.APPROVE, collection, payload)
            await self._retire(submission, Decision.APPROVE, published_id)
            return self._applied(submission, Decision.APPROVE, started, published_id)

    async def reject(self, actor: Optional[Actor], submission_id: str) -> DecisionOutcome:
        require_operator(actor)
        async with self.locks.hold(submission_id):
            started = time.perf_counter()
            record = await self.store.get(Collection.SUBMISSIONS, submission_id)
            if record is None:
                obs_metrics.inc_decision("unknown", Decision.REJECT.value, "noop")
                logger.info("reject on absent submission", extra={"submission_id": submission_id})
                return DecisionOutcome(
                    record_id=submission_id,
                    kind="unknown",
                    decision=Decision.REJECT,
                    applied=False,
                )
            submission = submission_from_record(record)
            deleted = await self._retire(submission, Decision.REJECT, None)
            if not deleted:
                obs_metrics.inc_decision(submission.kind.value, Decision.REJECT.value, "noop")
                return DecisionOutcome(
                    record_id=submission.id,
                    kind=submission.kind.value,
                    decision=Decision.REJECT,
                    applied=False,
                )
            return self._applied(submission, Decision.REJECT, started, None)

    async def reply(self, actor: Optional[Actor], submission_id: str, text: Any) -> DecisionOutcome:
        require_operator(actor)
        response = str(text).strip() if text is not None else ""
        if not response:
            raise ValidationError("response")
        async with self.locks.hold(submission_id):
            started = time.perf_counter()
            submission = await self._load(submission_id, Decision.REPLY)
            if not isinstance(submission, InquirySubmission):
                obs_metrics.inc_decision(submission.kind.value, Decision.REPLY.value, "invalid")
                raise InvalidTransitionError(submission.kind.value, Decision.REPLY.value)
            payload = {
                "content": submission.content,
                "response": response,
                "category": submission.category.value,
                "created_at": utcnow(),
            }
            reply_id = await self._publish(submission, Decision.REPLY, Collection.REPLIES, payload)
            await self._retire(submission, Decision.REPLY, reply_id)
            return self._applied(submission, Decision.REPLY, started, reply_id)


@dataclass
class BulletinReview:
    """Approve flips a post's status in place; reject removes the row."""

    store: ContentStore

    async def approve(self, actor: Optional[Actor], post_id: str) -> DecisionOutcome:
        require_operator(actor)
        record = await self.store.get(Collection.BULLETIN_POSTS, post_id)
        if record is None:
            obs_metrics.inc_decision("bulletin", Decision.APPROVE.value, "not_found")
            raise NotFoundError(Collection.BULLETIN_POSTS.value, post_id)
        if record.get("status") == BulletinStatus.APPROVED.value:
            obs_metrics.inc_decision("bulletin", Decision.APPROVE.value, "noop")
            return DecisionOutcome(record_id=post_id, kind="bulletin", decision=Decision.APPROVE, applied=False)
        updated = await self.store.update(
            Collection.BULLETIN_POSTS, post_id, {"status": BulletinStatus.APPROVED.value}
        )
        if updated is None:
            obs_metrics.inc_decision("bulletin", Decision.APPROVE.value, "not_found")
            raise NotFoundError(Collection.BULLETIN_POSTS.value, post_id)
        obs_metrics.inc_decision("bulletin", Decision.APPROVE.value, "applied")
        logger.info("bulletin post approved", extra={"post_id": post_id})
        return DecisionOutcome(record_id=post_id, kind="bulletin", decision=Decision.APPROVE, applied=True)

    async def reject(self, actor: Optional[Actor], post_id: str) -> DecisionOutcome:
        require_operator(actor)
        deleted = await self.store.delete(Collection.BULLETIN_POSTS, post_id)
        obs_metrics.inc_decision("bulletin", Decision.REJECT.value, "applied" if deleted else "noop")
        if deleted:
            logger.info("bulletin post rejected", extra={"post_id": post_id})
        return DecisionOutcome(record_id=post_id, kind="bulletin", decision=Decision.REJECT, applied=deleted)

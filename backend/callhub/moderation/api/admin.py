"""Operator endpoints: review queues, decisions and report triage."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from callhub.infra.auth import get_operator_actor
from callhub.moderation.api.board import BulletinPostOut
from callhub.moderation.api.reports import ReportOut
from callhub.moderation.domain.container import (
    get_bulletin_review,
    get_decision_engine,
    get_queue,
    get_triage,
)
from callhub.moderation.domain.decisions import BulletinReview, DecisionEngine, DecisionOutcome
from callhub.moderation.domain.exceptions import ValidationError
from callhub.moderation.domain.models import (
    Actor,
    BulletinStatus,
    InquiryCategory,
    ReportStatus,
    SubmissionKind,
    SubmissionStatus,
)
from callhub.moderation.domain.queue import ModerationQueue, QueueEntry
from callhub.moderation.domain.triage import ReportTriage

router = APIRouter(prefix="/api/admin/v1", tags=["moderation-admin"])


class QueueEntryOut(BaseModel):
    id: str
    kind: str
    status: str
    owner_id: Optional[str]
    created_at: datetime
    payload: Dict[str, Any]
    display: Dict[str, Any]

    @classmethod
    def from_entry(cls, entry: QueueEntry) -> "QueueEntryOut":
        submission = entry.submission
        payload = {attr: getattr(submission, attr) for attr in submission.columns}
        if "category" in payload:
            payload["category"] = submission.category.value
        return cls(
            id=submission.id,
            kind=submission.kind.value,
            status=submission.status.value,
            owner_id=submission.owner_id,
            created_at=submission.created_at,
            payload=payload,
            display=dict(entry.display),
        )


class DecisionOut(BaseModel):
    id: str
    kind: str
    decision: str
    applied: bool
    published_id: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: DecisionOutcome) -> "DecisionOut":
        return cls(
            id=outcome.record_id,
            kind=outcome.kind,
            decision=outcome.decision.value,
            applied=outcome.applied,
            published_id=outcome.published_id,
        )


class ReplyIn(BaseModel):
    response: str = ""


def get_queue_dep() -> ModerationQueue:
    return get_queue()


def get_decision_engine_dep() -> DecisionEngine:
    return get_decision_engine()


def get_bulletin_review_dep() -> BulletinReview:
    return get_bulletin_review()


def get_triage_dep() -> ReportTriage:
    return get_triage()


def _parse(enum_cls, field: str, value: Optional[str], parser=None):
    if value in (None, "", "all"):
        return None
    try:
        return (parser or enum_cls)(value)
    except ValueError as exc:
        raise ValidationError(field) from exc


@router.get("/queue/submissions", response_model=list[QueueEntryOut])
async def list_submissions(
    kind: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=SubmissionStatus.PENDING.value),
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    queue: ModerationQueue = Depends(get_queue_dep),
    actor: Actor = Depends(get_operator_actor),
) -> list[QueueEntryOut]:
    entries = await queue.list_submissions(
        actor,
        kind=_parse(SubmissionKind, "kind", kind),
        status=_parse(SubmissionStatus, "status", status),
        category=_parse(InquiryCategory, "category", category, InquiryCategory.parse),
        limit=limit,
    )
    return [QueueEntryOut.from_entry(entry) for entry in entries]


@router.get("/queue/board", response_model=list[BulletinPostOut])
async def list_board_posts(
    status: Optional[str] = Query(default=BulletinStatus.PENDING.value),
    limit: int = Query(default=100, ge=1, le=500),
    queue: ModerationQueue = Depends(get_queue_dep),
    actor: Actor = Depends(get_operator_actor),
) -> list[BulletinPostOut]:
    posts = await queue.list_bulletin_posts(actor, status=_parse(BulletinStatus, "status", status), limit=limit)
    return [BulletinPostOut.from_model(post) for post in posts]


@router.get("/queue/reports", response_model=list[ReportOut])
async def list_reports(
    status: Optional[str] = Query(default=ReportStatus.PENDING.value),
    limit: int = Query(default=100, ge=1, le=500),
    queue: ModerationQueue = Depends(get_queue_dep),
    actor: Actor = Depends(get_operator_actor),
) -> list[ReportOut]:
    reports = await queue.list_reports(actor, status=_parse(ReportStatus, "status", status), limit=limit)
    return [ReportOut.from_model(report) for report in reports]


@router.get("/queue/counts", response_model=Dict[str, int])
async def pending_counts(
    queue: ModerationQueue = Depends(get_queue_dep),
    actor: Actor = Depends(get_operator_actor),
) -> Dict[str, int]:
    return await queue.pending_counts(actor)


@router.post("/submissions/{submission_id}/approve", response_model=DecisionOut)
async def approve_submission(
    submission_id: str,
    engine: DecisionEngine = Depends(get_decision_engine_dep),
    actor: Actor = Depends(get_operator_actor),
) -> DecisionOut:
    return DecisionOut.from_outcome(await engine.approve(actor, submission_id))


@router.post("/submissions/{submission_id}/reject", response_model=DecisionOut)
async def reject_submission(
    submission_id: str,
    engine: DecisionEngine = Depends(get_decision_engine_dep),
    actor: Actor = Depends(get_operator_actor),
) -> DecisionOut:
    return DecisionOut.from_outcome(await engine.reject(actor, submission_id))


@router.post("/submissions/{submission_id}/reply", response_model=DecisionOut)
async def reply_submission(
    submission_id: str,
    payload: ReplyIn,
    engine: DecisionEngine = Depends(get_decision_engine_dep),
    actor: Actor = Depends(get_operator_actor),
) -> DecisionOut:
    return DecisionOut.from_outcome(await engine.reply(actor, submission_id, payload.response))


@router.post("/board/{post_id}/approve", response_model=DecisionOut)
async def approve_board_post(
    post_id: str,
    review: BulletinReview = Depends(get_bulletin_review_dep),
    actor: Actor = Depends(get_operator_actor),
) -> DecisionOut:
    return DecisionOut.from_outcome(await review.approve(actor, post_id))


@router.post("/board/{post_id}/reject", response_model=DecisionOut)
async def reject_board_post(
    post_id: str,
    review: BulletinReview = Depends(get_bulletin_review_dep),
    actor: Actor = Depends(get_operator_actor),
) -> DecisionOut:
    return DecisionOut.from_outcome(await review.reject(actor, post_id))


@router.post("/reports/{report_id}/resolve", response_model=ReportOut)
async def resolve_report(
    report_id: str,
    triage: ReportTriage = Depends(get_triage_dep),
    actor: Actor = Depends(get_operator_actor),
) -> ReportOut:
    return ReportOut.from_model(await triage.resolve(actor, report_id))


@router.post("/reports/{report_id}/ignore", response_model=ReportOut)
async def ignore_report(
    report_id: str,
    triage: ReportTriage = Depends(get_triage_dep),
    actor: Actor = Depends(get_operator_actor),
) -> ReportOut:
    return ReportOut.from_model(await triage.ignore(actor, report_id))

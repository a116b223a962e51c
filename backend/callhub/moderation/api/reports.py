"""Reports filed by users against published chants and call charts."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from callhub.infra.auth import get_actor
from callhub.moderation.domain.container import get_intake
from callhub.moderation.domain.intake import SubmissionIntake
from callhub.moderation.domain.models import Actor, Report

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


class ReportIn(BaseModel):
    target_type: str
    target_id: str
    category: str
    reason: Optional[str] = None
    details: Optional[str] = None


class ReportOut(BaseModel):
    id: str
    target_type: str
    target_id: str
    category: str
    reason: Optional[str]
    details: Optional[str]
    status: str
    created_at: datetime

    @classmethod
    def from_model(cls, report: Report) -> "ReportOut":
        return cls(
            id=report.id,
            target_type=report.target_type.value,
            target_id=report.target_id,
            category=report.category.value,
            reason=report.reason.value if report.reason else None,
            details=report.details,
            status=report.status.value,
            created_at=report.created_at,
        )


def get_intake_dep() -> SubmissionIntake:
    return get_intake()


@router.post("", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
async def create_report(
    report: ReportIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> ReportOut:
    created = await intake.submit_report(actor, **report.model_dump())
    return ReportOut.from_model(created)

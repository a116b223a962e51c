"""Public intake endpoints for artist, song, chant and inquiry submissions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from callhub.infra.auth import get_actor
from callhub.moderation.domain.container import get_intake
from callhub.moderation.domain.intake import SubmissionIntake
from callhub.moderation.domain.models import Actor, Submission

router = APIRouter(prefix="/api/v1/submissions", tags=["submissions"])


class ArtistSubmissionIn(BaseModel):
    name: str = ""
    reading: Optional[str] = None
    profile_url: str = ""


class SongSubmissionIn(BaseModel):
    title: str = ""
    related_artist_id: Optional[str] = None
    youtube_url: Optional[str] = None
    apple_music_url: Optional[str] = None
    amazon_music_url: Optional[str] = None


class ChantSubmissionIn(BaseModel):
    title: str = ""
    content: str = ""
    # digits as text are accepted, matching the submission form
    measures: int | str | None = None
    reference_url: Optional[str] = None
    remarks: Optional[str] = None
    song_id: Optional[str] = None


class InquirySubmissionIn(BaseModel):
    content: str = ""
    category: Optional[str] = None


class SubmissionOut(BaseModel):
    id: str
    kind: str
    status: str
    owner_id: Optional[str]
    created_at: datetime

    @classmethod
    def from_model(cls, submission: Submission) -> "SubmissionOut":
        return cls(
            id=submission.id,
            kind=submission.kind.value,
            status=submission.status.value,
            owner_id=submission.owner_id,
            created_at=submission.created_at,
        )


def get_intake_dep() -> SubmissionIntake:
    return get_intake()


@router.post("/artist", response_model=SubmissionOut, status_code=status.HTTP_201_CREATED)
async def submit_artist(
    payload: ArtistSubmissionIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> SubmissionOut:
    submission = await intake.submit_artist(actor, **payload.model_dump())
    return SubmissionOut.from_model(submission)


@router.post("/song", response_model=SubmissionOut, status_code=status.HTTP_201_CREATED)
async def submit_song(
    payload: SongSubmissionIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> SubmissionOut:
    submission = await intake.submit_song(actor, **payload.model_dump())
    return SubmissionOut.from_model(submission)


@router.post("/chant", response_model=SubmissionOut, status_code=status.HTTP_201_CREATED)
async def submit_chant(
    payload: ChantSubmissionIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> SubmissionOut:
    submission = await intake.submit_chant(actor, **payload.model_dump())
    return SubmissionOut.from_model(submission)


@router.post("/inquiry", response_model=SubmissionOut, status_code=status.HTTP_201_CREATED)
async def submit_inquiry(
    payload: InquirySubmissionIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> SubmissionOut:
    submission = await intake.submit_inquiry(actor, **payload.model_dump())
    return SubmissionOut.from_model(submission)

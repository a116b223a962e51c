"""Bulletin board event posts."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from callhub.infra.auth import get_actor
from callhub.moderation.domain.container import get_intake
from callhub.moderation.domain.intake import SubmissionIntake
from callhub.moderation.domain.models import Actor, BulletinPost

router = APIRouter(prefix="/api/v1/board", tags=["board"])


class BulletinPostIn(BaseModel):
    event_date: str = ""
    event_time: str = ""
    category: str = ""
    group_name: str = ""
    location: str = ""
    live_title: Optional[str] = None
    description: Optional[str] = None
    x_id: Optional[str] = None
    images: List[str] = Field(default_factory=list)


class BulletinPostOut(BaseModel):
    id: str
    owner_id: Optional[str]
    event_date: str
    event_time: str
    category: str
    group_name: str
    location: str
    status: str
    live_title: Optional[str]
    description: Optional[str]
    x_id: Optional[str]
    images: List[str]
    created_at: datetime

    @classmethod
    def from_model(cls, post: BulletinPost) -> "BulletinPostOut":
        return cls(
            id=post.id,
            owner_id=post.owner_id,
            event_date=post.event_date,
            event_time=post.event_time,
            category=post.category.value,
            group_name=post.group_name,
            location=post.location,
            status=post.status.value,
            live_title=post.live_title,
            description=post.description,
            x_id=post.x_id,
            images=list(post.images),
            created_at=post.created_at,
        )


def get_intake_dep() -> SubmissionIntake:
    return get_intake()


@router.post("/posts", response_model=BulletinPostOut, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: BulletinPostIn,
    intake: SubmissionIntake = Depends(get_intake_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> BulletinPostOut:
    post = await intake.submit_bulletin_post(actor, **payload.model_dump())
    return BulletinPostOut.from_model(post)

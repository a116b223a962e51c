"""Call chart publication and the public replies board."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from callhub.infra.auth import get_actor
from callhub.moderation.domain.charts import ChartPublisher
from callhub.moderation.domain.container import get_charts, get_queue
from callhub.moderation.domain.exceptions import ValidationError
from callhub.moderation.domain.models import Actor, CallChart, InquiryCategory, Reply
from callhub.moderation.domain.queue import ModerationQueue

router = APIRouter(prefix="/api/v1", tags=["charts"])


class SectionIn(BaseModel):
    section_name: Optional[str] = None
    content: str = ""
    chant_id: Optional[str] = None


class CallChartIn(BaseModel):
    song_id: str = ""
    title: Optional[str] = None
    comment: Optional[str] = None
    sections: List[SectionIn] = Field(default_factory=list)


class SectionOut(BaseModel):
    id: str
    section_name: str
    content: str
    chant_id: Optional[str]
    order_index: int


class CallChartOut(BaseModel):
    id: str
    song_id: str
    author_id: Optional[str]
    author_name: str
    title: Optional[str]
    comment: Optional[str]
    status: str
    created_at: datetime
    sections: List[SectionOut]

    @classmethod
    def from_model(cls, chart: CallChart) -> "CallChartOut":
        return cls(
            id=chart.id,
            song_id=chart.song_id,
            author_id=chart.author_id,
            author_name=chart.author_name,
            title=chart.title,
            comment=chart.comment,
            status=chart.status,
            created_at=chart.created_at,
            sections=[
                SectionOut(
                    id=section.id,
                    section_name=section.section_name,
                    content=section.content,
                    chant_id=section.chant_id,
                    order_index=section.order_index,
                )
                for section in chart.sections
            ],
        )


class ReplyOut(BaseModel):
    id: str
    content: str
    response: str
    category: str
    created_at: datetime

    @classmethod
    def from_model(cls, reply: Reply) -> "ReplyOut":
        return cls(
            id=reply.id,
            content=reply.content,
            response=reply.response,
            category=reply.category.value,
            created_at=reply.created_at,
        )


def get_charts_dep() -> ChartPublisher:
    return get_charts()


def get_queue_dep() -> ModerationQueue:
    return get_queue()


@router.post("/charts", response_model=CallChartOut, status_code=status.HTTP_201_CREATED)
async def publish_chart(
    payload: CallChartIn,
    charts: ChartPublisher = Depends(get_charts_dep),
    actor: Optional[Actor] = Depends(get_actor),
) -> CallChartOut:
    chart = await charts.publish(
        actor,
        song_id=payload.song_id,
        title=payload.title,
        comment=payload.comment,
        sections=[section.model_dump() for section in payload.sections],
    )
    return CallChartOut.from_model(chart)


@router.get("/replies", response_model=list[ReplyOut])
async def list_replies(
    category: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    queue: ModerationQueue = Depends(get_queue_dep),
) -> list[ReplyOut]:
    try:
        parsed = InquiryCategory.parse(category) if category else None
    except ValueError as exc:
        raise ValidationError("category") from exc
    replies = await queue.list_replies(category=parsed, limit=limit)
    return [ReplyOut.from_model(reply) for reply in replies]

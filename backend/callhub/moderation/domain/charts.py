"""Call chart publication.

Charts skip the moderation queue and are written as ``approved`` straight
away by their author. The chart row and its sections are separate writes,
so a failed section insert removes what was already written before the
error is raised.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from callhub.moderation.domain.exceptions import PipelineError, StoreError, ValidationError
from callhub.moderation.domain.models import (
    Actor,
    CallChart,
    Collection,
    Section,
    require_actor,
    utcnow,
)
from callhub.moderation.domain.store import ContentStore

logger = logging.getLogger(__name__)

BLANK_SECTION_LABEL = "—"
ANONYMOUS_AUTHOR = "Anonymous"


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


@dataclass
class ChartPublisher:
    store: ContentStore

    async def _author_name(self, actor: Actor) -> str:
        profile = await self.store.get(Collection.PROFILES, actor.id)
        if profile and _text(profile.get("username")):
            return _text(profile["username"])
        return ANONYMOUS_AUTHOR

    async def publish(
        self,
        actor: Optional[Actor],
        *,
        song_id: Any,
        sections: Sequence[Mapping[str, Any]],
        title: Any = None,
        comment: Any = None,
    ) -> CallChart:
        actor = require_actor(actor)
        song = _text(song_id)
        if not song:
            raise ValidationError("song_id")
        rows = [row for row in sections if _text(row.get("content"))]
        if not rows:
            raise ValidationError("sections")

        chart_id = str(uuid.uuid4())
        chart_record = {
            "id": chart_id,
            "song_id": song,
            "author_id": actor.id,
            "author_name": await self._author_name(actor),
            "title": _text(title) or None,
            "comment": _text(comment) or None,
            "status": "approved",
            "created_at": utcnow(),
        }
        await self.store.insert(Collection.CALL_CHARTS, chart_record)

        written: list[Section] = []
        try:
            for index, row in enumerate(rows):
                section = Section(
                    id=str(uuid.uuid4()),
                    call_chart_id=chart_id,
                    section_name=_text(row.get("section_name")) or BLANK_SECTION_LABEL,
                    content=_text(row.get("content")),
                    order_index=index,
                    chant_id=_text(row.get("chant_id")) or None,
                )
                await self.store.insert(
                    Collection.SECTIONS,
                    {
                        "id": section.id,
                        "call_chart_id": section.call_chart_id,
                        "section_name": section.section_name,
                        "content": section.content,
                        "chant_id": section.chant_id,
                        "order_index": section.order_index,
                    },
                )
                written.append(section)
        except PipelineError as exc:
            await self._discard(chart_id, written)
            logger.error(
                "chart sections failed; chart discarded",
                extra={"chart_id": chart_id, "sections_written": len(written), "cause": str(exc)},
            )
            if isinstance(exc, StoreError):
                raise
            raise StoreError(Collection.SECTIONS.value, "insert", str(exc)) from exc

        logger.info("chart published", extra={"chart_id": chart_id, "song_id": song, "sections": len(written)})
        return CallChart.from_record(chart_record, written)

    async def _discard(self, chart_id: str, written: Sequence[Section]) -> None:
        for section in written:
            try:
                await self.store.delete(Collection.SECTIONS, section.id)
            except PipelineError:
                logger.exception("section cleanup failed", extra={"section_id": section.id})
        try:
            await self.store.delete(Collection.CALL_CHARTS, chart_id)
        except PipelineError:
            logger.exception("chart cleanup failed", extra={"chart_id": chart_id})

"""Report triage: pending reports end as resolved or ignored."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from callhub.moderation.domain.exceptions import InvalidTransitionError, NotFoundError
from callhub.moderation.domain.models import Actor, Collection, Report, ReportStatus, require_operator
from callhub.moderation.domain.store import ContentStore
from callhub.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


@dataclass
class ReportTriage:
    """Only the report row is written; the reported content is never read or changed."""

    store: ContentStore

    async def resolve(self, actor: Optional[Actor], report_id: str) -> Report:
        return await self._transition(actor, report_id, ReportStatus.RESOLVED)

    async def ignore(self, actor: Optional[Actor], report_id: str) -> Report:
        return await self._transition(actor, report_id, ReportStatus.IGNORED)

    async def _transition(self, actor: Optional[Actor], report_id: str, target: ReportStatus) -> Report:
        actor = require_operator(actor)
        record = await self.store.get(Collection.REPORTS, report_id)
        if record is None:
            raise NotFoundError(Collection.REPORTS.value, report_id)
        current = ReportStatus.parse(record.get("status"))
        if current is target:
            return Report.from_record(record)
        if current is not ReportStatus.PENDING:
            raise InvalidTransitionError(current.value, target.value)
        updated = await self.store.update(Collection.REPORTS, report_id, {"status": target.value})
        if updated is None:
            raise NotFoundError(Collection.REPORTS.value, report_id)
        obs_metrics.inc_report_transition(target.value)
        logger.info(
            "report triaged",
            extra={"report_id": report_id, "status": target.value, "operator_id": actor.id},
        )
        return Report.from_record(updated)

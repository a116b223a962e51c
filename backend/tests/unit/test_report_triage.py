from __future__ import annotations

import pytest

from callhub.moderation.domain.exceptions import ForbiddenError, InvalidTransitionError, NotFoundError
from callhub.moderation.domain.intake import SubmissionIntake
from callhub.moderation.domain.models import Collection, ReportStatus
from callhub.moderation.domain.triage import ReportTriage
from callhub.obs import metrics


@pytest.fixture
def triage(store):
    return ReportTriage(store=store)


async def _published_chant(store) -> tuple[str, dict]:
    chant_id = await store.insert(
        Collection.CHANT_TEMPLATES,
        {"title": "t", "content": "Hey!", "bars": 8, "author_id": "user-9", "bookmark_count": 3},
    )
    return chant_id, await store.get(Collection.CHANT_TEMPLATES, chant_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("transition, expected", [("resolve", ReportStatus.RESOLVED), ("ignore", ReportStatus.IGNORED)])
async def test_triage_never_touches_target(triage, store, user, operator, transition, expected):
    chant_id, before = await _published_chant(store)
    report = await SubmissionIntake(store=store).submit_report(
        user, target_type="chant", target_id=chant_id, category="correction", details="typo"
    )
    counter_before = metrics.REPORT_TRANSITIONS_TOTAL.labels(status=expected.value)._value.get()

    updated = await getattr(triage, transition)(operator, report.id)

    assert updated.status is expected
    assert updated.target_id == chant_id
    assert await store.get(Collection.CHANT_TEMPLATES, chant_id) == before
    assert metrics.REPORT_TRANSITIONS_TOTAL.labels(status=expected.value)._value.get() == counter_before + 1


@pytest.mark.asyncio
async def test_legacy_null_status_counts_as_pending(triage, store, operator):
    report_id = await store.insert(
        Collection.REPORTS,
        {"target_type": "mix", "target_id": "c1", "category": "report", "reason": "abuse", "status": None},
    )

    updated = await triage.ignore(operator, report_id)

    assert updated.status is ReportStatus.IGNORED
    assert (await store.get(Collection.REPORTS, report_id))["status"] == "ignored"


@pytest.mark.asyncio
async def test_repeat_is_noop_and_switching_terminal_is_invalid(triage, store, operator):
    report_id = await store.insert(
        Collection.REPORTS,
        {"target_type": "chant", "target_id": "c1", "category": "correction", "details": "x", "status": "pending"},
    )

    await triage.resolve(operator, report_id)
    again = await triage.resolve(operator, report_id)
    assert again.status is ReportStatus.RESOLVED

    with pytest.raises(InvalidTransitionError):
        await triage.ignore(operator, report_id)
    assert (await store.get(Collection.REPORTS, report_id))["status"] == "resolved"


@pytest.mark.asyncio
async def test_triage_requires_operator_and_existing_report(triage, user, operator):
    with pytest.raises(ForbiddenError):
        await triage.resolve(user, "r1")
    with pytest.raises(NotFoundError):
        await triage.resolve(operator, "r1")

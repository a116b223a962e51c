"""Lightweight service container shared by moderation modules."""

from __future__ import annotations

from typing import Optional

import asyncpg

from callhub.moderation.domain.bookmarks import BookmarkService
from callhub.moderation.domain.charts import ChartPublisher
from callhub.moderation.domain.decisions import BulletinReview, DecisionEngine
from callhub.moderation.domain.intake import SubmissionIntake
from callhub.moderation.domain.queue import ModerationQueue
from callhub.moderation.domain.store import ContentStore, InMemoryContentStore
from callhub.moderation.domain.triage import ReportTriage
from callhub.moderation.infra.postgres_store import PostgresContentStore
from callhub.settings import settings

_store: ContentStore = InMemoryContentStore()
_intake = SubmissionIntake(store=_store, max_board_images=settings.board_max_images)
_queue = ModerationQueue(store=_store)
_decisions = DecisionEngine(store=_store)
_bulletins = BulletinReview(store=_store)
_bookmarks = BookmarkService(store=_store)
_triage = ReportTriage(store=_store)
_charts = ChartPublisher(store=_store)


def configure(
    *,
    store: Optional[ContentStore] = None,
    max_board_images: Optional[int] = None,
) -> None:
    """Rebuild every service around ``store`` (a fresh in-memory store when omitted)."""
    global _store, _intake, _queue, _decisions, _bulletins, _bookmarks, _triage, _charts
    _store = store if store is not None else InMemoryContentStore()
    _intake = SubmissionIntake(
        store=_store,
        max_board_images=max_board_images if max_board_images is not None else settings.board_max_images,
    )
    _queue = ModerationQueue(store=_store)
    _decisions = DecisionEngine(store=_store)
    _bulletins = BulletinReview(store=_store)
    _bookmarks = BookmarkService(store=_store)
    _triage = ReportTriage(store=_store)
    _charts = ChartPublisher(store=_store)


def configure_postgres(pool: asyncpg.Pool) -> None:
    configure(store=PostgresContentStore(pool))


def get_store() -> ContentStore:
    return _store


def get_intake() -> SubmissionIntake:
    return _intake


def get_queue() -> ModerationQueue:
    return _queue


def get_decision_engine() -> DecisionEngine:
    return _decisions


def get_bulletin_review() -> BulletinReview:
    return _bulletins


def get_bookmarks() -> BookmarkService:
    return _bookmarks


def get_triage() -> ReportTriage:
    return _triage


def get_charts() -> ChartPublisher:
    return _charts

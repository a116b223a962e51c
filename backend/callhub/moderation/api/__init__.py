"""Moderation API routers."""

from fastapi import APIRouter

from . import admin, board, bookmarks, charts, reports, submissions

router = APIRouter()
router.include_router(submissions.router)
router.include_router(board.router)
router.include_router(reports.router)
router.include_router(charts.router)
router.include_router(bookmarks.router)
router.include_router(admin.router)

__all__ = ["router"]

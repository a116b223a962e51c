"""Moderation and publication pipeline: intake, review queue, decisions, bookmarks and triage."""

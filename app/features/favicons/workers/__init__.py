"""Celery workers module - imports all task modules for autodiscovery."""

from app.features.favicons.workers import tasks  # noqa: F401

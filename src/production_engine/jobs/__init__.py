"""Celery job definitions."""

from production_engine.jobs.tasks import check_late_videos_task, recompute_views_task

__all__ = ["check_late_videos_task", "recompute_views_task"]

"""Celery task definitions for the production engine."""

from datetime import UTC, datetime, timedelta
from typing import Any

from production_engine.config import get_settings
from production_engine.db.snapshot import DatabaseSnapshotLoader
from production_engine.db.store import SqlLateVideoStore
from production_engine.domain.engine_config import EngineConfig
from production_engine.logging import bind_context, clear_context, get_logger
from production_engine.services.alerting import LateVideoNotifier
from production_engine.services.late_videos import LateVideoService
from production_engine.services.recompute import CollectionChanged, RecomputeDispatcher
from production_engine.services.view_cache import view_cache_from_settings
from production_engine.worker import celery_app

logger = get_logger(__name__)


def build_late_video_service() -> LateVideoService:
    """Wire the late video check to the database and notification channels."""
    settings = get_settings()
    notifier = LateVideoNotifier(settings) if settings.alert_on_late_video else None
    return LateVideoService(
        store=SqlLateVideoStore(
            lease=timedelta(seconds=settings.late_notification_lease_seconds)
        ),
        config=EngineConfig.from_settings(settings),
        notifier=notifier,
    )


def summarize(view: str, result: Any) -> dict[str, Any]:
    """Compact description of a published view for task results and logs."""
    if isinstance(result, list):
        return {"view": view, "items": len(result)}
    return {"view": view, "partial": getattr(result, "partial", False)}


@celery_app.task(bind=True, name="check_late_videos")
def check_late_videos_task(self: Any) -> dict[str, Any]:
    """Flag newly late videos and notify their assignees once."""
    task_id = self.request.id
    clear_context()
    bind_context(task_id=task_id, task="check_late_videos")
    logger.info("late_check_started")

    snapshot = DatabaseSnapshotLoader().load(datetime.now(UTC))
    report = build_late_video_service().run(snapshot)

    return {"task_id": task_id, **report.to_dict()}


@celery_app.task(bind=True, name="recompute_views")
def recompute_views_task(self: Any, collection: str) -> dict[str, Any]:
    """Rebuild every view that reads the changed collection."""
    task_id = self.request.id
    clear_context()
    bind_context(task_id=task_id, task="recompute_views", collection=collection)
    try:
        event = CollectionChanged.from_name(collection)
    except ValueError:
        logger.error("unknown_collection")
        return {"task_id": task_id, "success": False, "error": f"Unknown collection: {collection}"}

    settings = get_settings()
    views = view_cache_from_settings(settings)
    published: list[dict[str, Any]] = []

    def publish(view: str, result: Any) -> None:
        summary = summarize(view, result)
        # Partial builds never replace a published copy
        if views is not None and not summary.get("partial", False):
            summary["cached"] = views.publish(view, result)
        published.append(summary)
        logger.info("view_published", **summary)

    dispatcher = RecomputeDispatcher(
        loader=DatabaseSnapshotLoader(),
        publish=publish,
        config=EngineConfig.from_settings(settings),
        late_service=build_late_video_service(),
    )
    dispatcher.dispatch(event)

    return {"task_id": task_id, "success": True, "collection": collection, "views": published}

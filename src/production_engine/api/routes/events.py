"""Change notification endpoint that triggers view recomputation."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from production_engine.domain.enums import Collection
from production_engine.logging import get_logger
from production_engine.services.recompute import affected_views

router = APIRouter(prefix="/events", tags=["Events"])
logger = get_logger(__name__)


class CollectionChangedRequest(BaseModel):
    """A record collection changed upstream."""

    collection: str = Field(..., min_length=1, description="Name of the changed collection")


class RecomputeQueuedResponse(BaseModel):
    """Response for a queued recomputation."""

    task_id: str
    status: str
    views: list[str]


@router.post(
    "/collection-changed",
    response_model=RecomputeQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Notify a collection change",
    description="Queue a full recomputation of the views that read the collection.",
)
async def collection_changed(request: CollectionChangedRequest) -> RecomputeQueuedResponse:
    """Queue recomputation for a changed collection."""
    try:
        collection = Collection(request.collection)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown collection: {request.collection}",
        )

    from production_engine.jobs.tasks import recompute_views_task

    result = recompute_views_task.delay(collection.value)
    logger.info("recompute_queued", collection=collection.value, task_id=result.id)

    return RecomputeQueuedResponse(
        task_id=result.id,
        status="queued",
        views=[v.value for v in affected_views(collection)],
    )

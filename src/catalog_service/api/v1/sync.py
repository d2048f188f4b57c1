"""Feed synchronization endpoints."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from catalog_service.api.deps import get_product_repository
from catalog_service.infrastructure.database.repository import ProductRepository
from shared.constants import PRODUCT_SYNC_ID, SYNC_QUEUE

logger = structlog.get_logger()

router = APIRouter()


class SyncTriggerResponse(BaseModel):
    status: str
    task_id: str


class SyncStatusResponse(BaseModel):
    id: str
    status: str
    records_synced: int
    records_failed: int
    last_sync_at: datetime | None = None
    error_message: str | None = None


@router.post("", response_model=SyncTriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_sync() -> SyncTriggerResponse:
    """
    Queue one sync pass on the sync worker.

    The pass runs asynchronously on the single sync worker, so it never
    overlaps with a scheduled pass.
    """
    from sync_worker.main import SYNC_TASK_NAME, app as celery_app

    result = celery_app.send_task(SYNC_TASK_NAME, queue=SYNC_QUEUE)
    logger.info("Product sync queued", task_id=result.id)
    return SyncTriggerResponse(status="Product sync started", task_id=str(result.id))


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    repository: ProductRepository = Depends(get_product_repository),
) -> SyncStatusResponse:
    """Outcome of the most recent sync pass."""
    record = await repository.get_sync_status(PRODUCT_SYNC_ID)
    if record is None:
        raise HTTPException(status_code=404, detail="No sync pass has been recorded yet")
    return SyncStatusResponse(**record)

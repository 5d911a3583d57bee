from fastapi import APIRouter, Depends, Query, status
from typing import List

from warehouse.inventory import get_notifier
from warehouse.schemas.stock_in import Notification
from warehouse.services.notifications import Notifier

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "/",
    response_model=List[Notification],
    summary="Recent notifications",
    description="Success, validation and failure messages, newest first."
)
def list_notifications(
    limit: int = Query(20, ge=1, le=100, description="Maximum number of notifications"),
    notifier: Notifier = Depends(get_notifier)
):
    return notifier.recent(limit)


@router.delete(
    "/",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear notifications",
)
def clear_notifications(notifier: Notifier = Depends(get_notifier)):
    notifier.clear()
    return None

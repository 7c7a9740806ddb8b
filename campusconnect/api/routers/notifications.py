"""In-app notification API endpoints."""

from typing import List, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from campusconnect.api.deps import get_db, get_current_principal
from campusconnect.api.schemas.common import SuccessResponse
from campusconnect.core.rbac import require_permission
from campusconnect.core.security import Principal
from campusconnect.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


# Schemas
class NotificationResponse(BaseModel):
    id: UUID
    user_id: str
    title: str
    message: str
    type: str
    link: Optional[str]
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: bool


# Endpoints
@router.get("", response_model=List[NotificationResponse])
@require_permission("notifications:read")
async def list_notifications(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """List the caller's notifications, newest first."""
    notifications = NotificationService(db).get_notifications(current_user.user_id)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
@require_permission("notifications:read")
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Count the caller's unread notifications."""
    return UnreadCountResponse(count=NotificationService(db).get_unread_count(current_user.user_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
@require_permission("notifications:update")
async def mark_all_read(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Mark all of the caller's notifications as read."""
    updated = NotificationService(db).mark_all_as_read(current_user.user_id)
    db.commit()
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=SuccessResponse)
@require_permission("notifications:update")
async def mark_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Mark one notification as read."""
    if not NotificationService(db).mark_as_read(current_user.user_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")

    db.commit()
    return SuccessResponse(message="Notification marked as read")


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
@require_permission("notifications:delete")
async def delete_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Delete one notification."""
    if not NotificationService(db).delete_notification(current_user.user_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")

    db.commit()

from typing import List, Optional
from uuid import UUID
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from huda.core.records import NotificationKind, UserRole
from huda.crud.notifications import mark_read, notifications_for_user
from huda.database import get_db
from huda.models.all_models import User
from huda.utils.auth import get_current_user

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: UUID
    user_id: str
    role: Optional[UserRole] = None
    title: str
    message: str
    kind: NotificationKind
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Notifications addressed to the caller, directly or through their role.
    """
    return notifications_for_user(db, current_user, unread_only)

@router.post("/{notification_id}/read", response_model=NotificationResponse)
def read_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = mark_read(db, current_user, notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification

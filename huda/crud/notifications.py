# crud/notifications.py

from datetime import timedelta
from typing import Iterable, List, Set
from uuid import UUID
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from huda.config import settings
from huda.core.records import ALL_USERS, NotificationKey, NotificationRequest
from huda.models.all_models import Notification, SentNotificationKey, User, local_now


def sent_keys(db: Session) -> Set[NotificationKey]:
    """Idempotency keys of every notification emitted so far"""
    keys = set()
    for (value,) in db.query(SentNotificationKey.key).all():
        key = NotificationKey.parse(value)
        if key is not None:
            keys.add(key)
    return keys


def record_keys(db: Session, keys: Iterable[NotificationKey]) -> None:
    """Add keys to the ledger, skipping those already recorded. Does not commit."""
    values = {key.as_string(): key for key in keys}
    if not values:
        return
    known = {
        value for (value,) in db.query(SentNotificationKey.key).filter(
            SentNotificationKey.key.in_(list(values))
        ).all()
    }
    for value, key in values.items():
        if value not in known:
            db.add(SentNotificationKey(key=value, kind=key.kind))


def append_notifications(
    db: Session,
    requests: Iterable[NotificationRequest],
    cap: int = None,
) -> List[Notification]:
    """Append to the sink and evict the oldest entries above the cap. Keys go
    to the ledger, which is never evicted. Does not commit."""
    cap = settings.NOTIFICATION_CAP if cap is None else cap
    requests = list(requests)
    created = []
    now = local_now()
    # one microsecond apart so insertion order survives the eviction sort
    for index, request in enumerate(requests):
        notification = Notification(
            user_id=request.user_id,
            role=request.role,
            title=request.title,
            message=request.message,
            kind=request.kind,
            dedup_key=request.key.as_string() if request.key else None,
            is_read=False,
            created_at=now + timedelta(microseconds=index),
        )
        db.add(notification)
        created.append(notification)
    record_keys(db, [r.key for r in requests if r.key is not None])
    db.flush()

    overflow = db.query(Notification).order_by(
        Notification.created_at.desc()
    ).offset(cap).all()
    for stale in overflow:
        db.delete(stale)
    if overflow:
        db.flush()
    return created


def audience_filter(user: User):
    return or_(
        Notification.user_id == str(user.id),
        and_(
            Notification.user_id == ALL_USERS,
            or_(Notification.role.is_(None), Notification.role == user.role),
        ),
    )


def notifications_for_user(db: Session, user: User, unread_only: bool = False) -> List[Notification]:
    query = db.query(Notification).filter(audience_filter(user))
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.order_by(Notification.created_at.desc()).all()


def mark_read(db: Session, user: User, notification_id: UUID) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        audience_filter(user)
    ).first()
    if notification:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification

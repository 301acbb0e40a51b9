from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core import notification_store
from app.core.security import current_user_id
from app.schemas.notifications import NotificationCenterResponse, NotificationPreferences, NotificationState

router = APIRouter()


def _center(state: NotificationState) -> NotificationCenterResponse:
    return NotificationCenterResponse(
        items=state.items,
        unread_count=notification_store.unread_count(state),
        preferences=state.preferences,
    )


@router.get("/notifications", response_model=NotificationCenterResponse)
def get_notifications(user_id: str = Depends(current_user_id)):
    return _center(notification_store.load_notifications(user_id))


@router.post("/notifications/{notification_id}/read", response_model=NotificationCenterResponse)
def mark_read(notification_id: str, user_id: str = Depends(current_user_id)):
    state = notification_store.update_notifications(
        user_id, lambda current: notification_store.mark_read(current, notification_id)
    )
    return _center(state)


@router.post("/notifications/read-all", response_model=NotificationCenterResponse)
def mark_all_read(user_id: str = Depends(current_user_id)):
    return _center(notification_store.update_notifications(user_id, notification_store.mark_all_read))


@router.delete("/notifications/{notification_id}", response_model=NotificationCenterResponse)
def dismiss(notification_id: str, user_id: str = Depends(current_user_id)):
    state = notification_store.update_notifications(
        user_id, lambda current: notification_store.dismiss(current, notification_id)
    )
    return _center(state)


@router.put("/notifications/preferences", response_model=NotificationCenterResponse)
def update_preferences(payload: NotificationPreferences, user_id: str = Depends(current_user_id)):
    state = notification_store.update_notifications(
        user_id, lambda current: current.model_copy(update={"preferences": payload})
    )
    return _center(state)

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

NotificationType = Literal["system", "analysis", "reminder", "achievement"]
NotificationPriority = Literal["low", "medium", "high"]


class Notification(BaseModel):
    id: str
    type: NotificationType
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(max_length=2000)
    timestamp: int
    read: bool = False
    priority: NotificationPriority = "medium"
    action_url: str | None = None


class NotificationPreferences(BaseModel):
    analysis: bool = True
    reminder: bool = True
    achievement: bool = True
    system: bool = True


class NotificationState(BaseModel):
    """Everything the notification center shows for one user, loaded and saved as a unit."""

    items: list[Notification] = Field(default_factory=list)
    preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)


class NotificationCenterResponse(BaseModel):
    items: list[Notification]
    unread_count: int = Field(ge=0)
    preferences: NotificationPreferences

from __future__ import annotations

import sqlite3
from typing import Callable

from app.core.db import fetch_one, new_id, now_ms, transaction
from app.schemas.notifications import (
    Notification,
    NotificationPriority,
    NotificationState,
    NotificationType,
)

MAX_NOTIFICATIONS = 100

_SELECT_STATE = "SELECT state_json FROM notification_states WHERE user_id = ?"


def _parse_state(row: sqlite3.Row | None) -> NotificationState:
    if not row:
        return NotificationState()
    return NotificationState.model_validate_json(row["state_json"])


def _read_state(conn: sqlite3.Connection, user_id: str) -> NotificationState:
    return _parse_state(conn.execute(_SELECT_STATE, (user_id,)).fetchone())


def _write_state(conn: sqlite3.Connection, user_id: str, state: NotificationState) -> NotificationState:
    trimmed = state.model_copy(update={"items": state.items[:MAX_NOTIFICATIONS]})
    conn.execute(
        """
        INSERT INTO notification_states (user_id, state_json, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET state_json = excluded.state_json, updated_at = excluded.updated_at
        """,
        (user_id, trimmed.model_dump_json(), now_ms()),
    )
    return trimmed


def load_notifications(user_id: str) -> NotificationState:
    return _parse_state(fetch_one(_SELECT_STATE, (user_id,)))


def save_notifications(user_id: str, state: NotificationState) -> None:
    with transaction() as conn:
        _write_state(conn, user_id, state)


def update_notifications(
    user_id: str,
    change: Callable[[NotificationState], NotificationState],
) -> NotificationState:
    """Apply ``change`` to the stored state and write the result back.

    The read and the write share one ``BEGIN IMMEDIATE`` transaction, so concurrent
    updates for the same user are applied one after another.
    """
    with transaction() as conn:
        return _write_state(conn, user_id, change(_read_state(conn, user_id)))


def push(
    state: NotificationState,
    *,
    type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = "medium",
    action_url: str | None = None,
    timestamp: int | None = None,
) -> NotificationState:
    if not getattr(state.preferences, type):
        return state
    item = Notification(
        id=new_id(),
        type=type,
        title=title,
        message=message,
        timestamp=now_ms() if timestamp is None else timestamp,
        priority=priority,
        action_url=action_url,
    )
    return state.model_copy(update={"items": [item, *state.items]})


def mark_read(state: NotificationState, notification_id: str) -> NotificationState:
    items = [
        item.model_copy(update={"read": True}) if item.id == notification_id else item
        for item in state.items
    ]
    return state.model_copy(update={"items": items})


def mark_all_read(state: NotificationState) -> NotificationState:
    return state.model_copy(update={"items": [item.model_copy(update={"read": True}) for item in state.items]})


def dismiss(state: NotificationState, notification_id: str) -> NotificationState:
    return state.model_copy(update={"items": [item for item in state.items if item.id != notification_id]})


def unread_count(state: NotificationState) -> int:
    return sum(1 for item in state.items if not item.read)


def notify(
    user_id: str,
    *,
    type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = "medium",
    action_url: str | None = None,
) -> None:
    update_notifications(
        user_id,
        lambda state: push(state, type=type, title=title, message=message, priority=priority, action_url=action_url),
    )

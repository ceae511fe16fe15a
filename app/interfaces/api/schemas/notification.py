"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.entities import (
    ChannelKind,
    DigestFrequency,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)


class NotificationActionSchema(BaseModel):
    label: str = Field(..., min_length=1)
    url: str | None = None
    action: str | None = None
    primary: bool = False


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    type: NotificationType
    category: NotificationCategory
    title: str
    message: str
    priority: NotificationPriority
    data: dict[str, Any] | None = None
    actions: list[NotificationActionSchema] = Field(default_factory=list)
    read: bool
    read_at: datetime | None = None
    group_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationRead]
    total: int
    unread_count: int
    page: int
    limit: int


class NotificationStatsRead(BaseModel):
    total: int
    unread: int
    by_type: dict[str, int]
    by_priority: dict[str, int]


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[int]:
        """Return the identifiers without duplicates, preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationSendRequest(BaseModel):
    """Notification to fan out; exactly one of the targeting fields is set."""

    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    user_id: int | None = None
    user_ids: list[int] | None = None
    role_ids: list[int] | None = None
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: dict[str, Any] | None = None
    actions: list[NotificationActionSchema] = Field(default_factory=list)
    expires_at: datetime | None = None
    group_id: str | None = Field(default=None, max_length=100)


class NotificationSendResponse(BaseModel):
    success: bool = True
    sent: int


class NotificationTestRequest(BaseModel):
    channel: ChannelKind


class SuccessResponse(BaseModel):
    success: bool = True


class EmailPreferencesSchema(BaseModel):
    enabled: bool
    frequency: DigestFrequency = DigestFrequency.IMMEDIATE
    types: list[NotificationType] = Field(default_factory=list)


class SmsPreferencesSchema(BaseModel):
    enabled: bool
    types: list[NotificationType] = Field(default_factory=list)


class InAppPreferencesSchema(BaseModel):
    enabled: bool
    sound: bool = True
    desktop: bool = False


class NotificationPreferencesRead(BaseModel):
    email: EmailPreferencesSchema
    sms: SmsPreferencesSchema
    in_app: InAppPreferencesSchema
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; only the fields present in the request are changed."""

    email: EmailPreferencesSchema | None = None
    sms: SmsPreferencesSchema | None = None
    in_app: InAppPreferencesSchema | None = None
    quiet_hours_start: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}$")
    quiet_hours_end: str | None = Field(default=None, pattern=r"^\d{1,2}:\d{2}$")
    timezone: str | None = Field(default=None, min_length=1)

    def changes(self) -> dict[str, Any]:
        """Return the explicitly provided fields as plain values."""

        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            result[name] = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        return result


__all__ = [
    "EmailPreferencesSchema",
    "InAppPreferencesSchema",
    "NotificationActionSchema",
    "NotificationListResponse",
    "NotificationMarkReadRequest",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "NotificationSendRequest",
    "NotificationSendResponse",
    "NotificationStatsRead",
    "NotificationTestRequest",
    "SmsPreferencesSchema",
    "SuccessResponse",
]

from .notification import (
    EmailPreferencesSchema,
    InAppPreferencesSchema,
    NotificationActionSchema,
    NotificationListResponse,
    NotificationMarkReadRequest,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationStatsRead,
    NotificationTestRequest,
    SmsPreferencesSchema,
    SuccessResponse,
)

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

"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .notification_preferences import NotificationPreferencesModel
from .role import RoleModel
from .user import UserModel

__all__ = [
    "NotificationModel",
    "NotificationPreferencesModel",
    "RoleModel",
    "UserModel",
]

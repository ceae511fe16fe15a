"""Repository implementations for infrastructure layer."""

from .notification_preferences_repository import NotificationPreferencesRepository
from .notification_repository import NotificationRepository
from .role_repository import RoleRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "RoleRepository",
    "UserRepository",
]

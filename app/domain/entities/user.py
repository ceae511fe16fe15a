"""Domain entity representing a platform user."""

from dataclasses import dataclass

from .role import Role


@dataclass
class User:
    """Attributes of a user that the notification pipeline depends on."""

    id: int | None
    role: Role
    name: str
    email: str | None
    phone_number: str | None = None
    is_active: bool = True
    deleted: bool = False

    def is_admin(self) -> bool:
        return self.role.grants_admin

    def can_receive(self) -> bool:
        """Return ``True`` when the user may be targeted by a notification."""

        return self.is_active and not self.deleted


__all__ = ["User"]

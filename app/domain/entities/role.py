"""Domain entity representing a user role."""

from dataclasses import dataclass

ADMIN_ROLE_ALIASES = frozenset({"administrator", "admin"})


@dataclass
class Role:
    """Role assigned to a user; notifications may target every holder of a role."""

    id: int
    name: str
    alias: str

    @property
    def grants_admin(self) -> bool:
        return self.alias.lower() in ADMIN_ROLE_ALIASES


__all__ = ["ADMIN_ROLE_ALIASES", "Role"]

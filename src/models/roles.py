"""Actor roles and the permission table."""

from enum import Enum

from src.utils.errors import UnauthorizedError


class UserRole(str, Enum):
    """Roles an actor can hold."""
    ADMIN = "Admin"
    USER = "User"
    AGENT = "Agent"


class Permission(str, Enum):
    """Operations guarded by role."""
    CREATE_LISTING = "create_listing"
    CHANGE_STATUS = "change_status"
    DELETE_LISTING = "delete_listing"
    VIEW_HISTORY = "view_history"


# Every role must appear here; a role missing from the table has no permissions.
ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.ADMIN: frozenset(Permission),
    UserRole.USER: frozenset({
        Permission.CREATE_LISTING,
        Permission.VIEW_HISTORY,
    }),
    UserRole.AGENT: frozenset({
        Permission.VIEW_HISTORY,
    }),
}


def parse_role(role: "str | UserRole") -> UserRole:
    """Convert a raw role string into a UserRole, rejecting unknown roles."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        raise UnauthorizedError(f"Unknown role: {role!r}")


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check whether a role grants a permission."""
    return permission in ROLE_PERMISSIONS.get(role, frozenset())

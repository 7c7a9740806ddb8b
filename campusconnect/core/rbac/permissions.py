"""Permission model for CampusConnect RBAC.

Defines all resources, actions, and permission combinations.
Uses a matrix approach: permissions = actions × resources.

Permission string format: "resource:action"
Examples:
  - clearance:submit
  - clearance:decide
  - notifications:read
"""

from enum import Enum
from typing import NamedTuple, FrozenSet


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    CLEARANCE = "clearance"           # Clearance requests and their steps
    NOTIFICATIONS = "notifications"   # In-app notifications


class Action(str, Enum):
    """Actions that can be performed on resources."""

    READ = "read"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"

    SUBMIT = "submit"     # Submit own request
    REVIEW = "review"     # See work waiting on the caller
    DECIDE = "decide"     # Approve or reject a step


class Permission(NamedTuple):
    """A permission is a combination of resource and action."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse a permission string like 'clearance:read'."""
        parts = perm_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid permission format: {perm_str}")
        return cls(Resource(parts[0]), Action(parts[1]))


PERMISSION_MATRIX: dict[Resource, FrozenSet[Action]] = {
    Resource.CLEARANCE: frozenset([
        Action.SUBMIT, Action.READ, Action.LIST, Action.REVIEW, Action.DECIDE,
    ]),
    Resource.NOTIFICATIONS: frozenset([
        Action.READ, Action.UPDATE, Action.DELETE,
    ]),
}


def _generate_permission_definitions() -> dict[str, Permission]:
    """Generate all valid permission combinations from the matrix."""
    permissions = {}
    for resource, actions in PERMISSION_MATRIX.items():
        for action in actions:
            perm = Permission(resource, action)
            permissions[str(perm)] = perm
    return permissions


# All valid permissions as a dictionary: "resource:action" -> Permission
PERMISSION_DEFINITIONS = _generate_permission_definitions()


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string is valid."""
    return perm_str in PERMISSION_DEFINITIONS


def get_permissions_for_resource(resource: Resource) -> list[str]:
    """Get all valid permission strings for a resource."""
    return [
        str(Permission(resource, action))
        for action in PERMISSION_MATRIX.get(resource, set())
    ]

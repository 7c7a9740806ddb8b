"""Default role definitions for CampusConnect.

Roles come from the identity provider as plain strings; this module maps
each one to its permission set:
1. Admin - Full system access
2. Faculty - Decides Library and HoD steps for their department
3. Student - Submits and tracks their own clearance
4. Clearance Officer - Decides steps for their department
5. Print Cell - Notifications only
"""

from typing import Dict, List
from .permissions import Resource, Action, Permission


def _build_permissions(*perms: tuple) -> List[str]:
    """Build permission strings from (Resource, Action) tuples."""
    return [str(Permission(r, a)) for r, a in perms]


NOTIFICATION_PERMISSIONS = [
    (Resource.NOTIFICATIONS, Action.READ),
    (Resource.NOTIFICATIONS, Action.UPDATE),
    (Resource.NOTIFICATIONS, Action.DELETE),
]

# Admin: Full access to everything
ADMIN_PERMISSIONS = [
    "*:*"  # Global wildcard - all permissions
]

FACULTY_PERMISSIONS = _build_permissions(
    (Resource.CLEARANCE, Action.READ),
    (Resource.CLEARANCE, Action.REVIEW),
    (Resource.CLEARANCE, Action.DECIDE),
    *NOTIFICATION_PERMISSIONS,
)

STUDENT_PERMISSIONS = _build_permissions(
    (Resource.CLEARANCE, Action.SUBMIT),
    (Resource.CLEARANCE, Action.READ),
    *NOTIFICATION_PERMISSIONS,
)

CLEARANCE_OFFICER_PERMISSIONS = _build_permissions(
    (Resource.CLEARANCE, Action.REVIEW),
    (Resource.CLEARANCE, Action.DECIDE),
    *NOTIFICATION_PERMISSIONS,
)

PRINT_CELL_PERMISSIONS = _build_permissions(
    *NOTIFICATION_PERMISSIONS,
)


DEFAULT_ROLES: Dict[str, dict] = {
    "admin": {
        "name": "Administrator",
        "permissions": ADMIN_PERMISSIONS,
    },
    "faculty": {
        "name": "Faculty",
        "permissions": FACULTY_PERMISSIONS,
    },
    "student": {
        "name": "Student",
        "permissions": STUDENT_PERMISSIONS,
    },
    "clearance_officer": {
        "name": "Clearance Officer",
        "permissions": CLEARANCE_OFFICER_PERMISSIONS,
    },
    "print_cell": {
        "name": "Print Cell",
        "permissions": PRINT_CELL_PERMISSIONS,
    },
}


def get_role_permissions(role_key: str) -> List[str]:
    """Get permissions list for a role. Unknown roles get nothing."""
    role = DEFAULT_ROLES.get(role_key)
    if not role:
        return []
    return role["permissions"]

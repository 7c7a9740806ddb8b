"""RBAC (Role-Based Access Control) module for CampusConnect.

This module defines the permission model, role definitions, and access control utilities.
"""

from .permissions import Permission, Resource, Action, PERMISSION_DEFINITIONS
from .checker import PermissionChecker, has_permission, require_permission
from .roles import get_role_permissions

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "PERMISSION_DEFINITIONS",
    "PermissionChecker",
    "has_permission",
    "require_permission",
    "get_role_permissions",
]

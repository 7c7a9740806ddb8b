"""Permission checks for principals and FastAPI endpoints."""

from functools import wraps
from typing import Callable, Iterable, Union, List

from fastapi import HTTPException, status

from .permissions import Permission, Resource, Action

PermissionLike = Union[str, Permission]


def _as_string(permission: PermissionLike) -> str:
    return str(permission) if isinstance(permission, Permission) else permission


class PermissionChecker:
    """Answers permission questions for one set of granted permissions.

    Grants may use wildcards: ``clearance:*`` covers every clearance action
    and ``*:*`` covers everything.
    """

    def __init__(self, user_permissions: Iterable[str]):
        self.permissions = frozenset(user_permissions)

    def has_permission(self, permission: PermissionLike) -> bool:
        wanted = _as_string(permission)
        if wanted in self.permissions or "*:*" in self.permissions:
            return True

        resource, sep, _ = wanted.partition(":")
        return bool(sep) and f"{resource}:*" in self.permissions

    def has_any_permission(self, permissions: List[PermissionLike]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List[PermissionLike]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    def can_access_resource(self, resource: Resource, action: Action) -> bool:
        return self.has_permission(Permission(resource, action))


def has_permission(principal, permission: PermissionLike) -> bool:
    """True if ``principal`` (anything with a ``permissions`` list) holds ``permission``."""
    if not principal:
        return False
    return PermissionChecker(principal.permissions).has_permission(permission)


def require_permission(*permissions: PermissionLike, require_all: bool = False):
    """
    Guard a FastAPI endpoint by permission.

    The endpoint must take the caller as a ``current_user`` keyword argument.
    Any one of ``permissions`` is enough unless ``require_all`` is set.

    Usage:
        @router.get("/clearance")
        @require_permission("clearance:list")
        async def list_requests(current_user: Principal = Depends(get_current_principal)):
            ...
    """
    required = [_as_string(p) for p in permissions]

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = kwargs.get("current_user")
            if not current_user:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required",
                )

            checker = PermissionChecker(current_user.permissions)
            allowed = (
                checker.has_all_permissions(required) if require_all
                else checker.has_any_permission(required)
            )
            if not allowed:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Insufficient permissions. Required: {', '.join(required)}",
                )

            return await func(*args, **kwargs)

        return wrapper
    return decorator

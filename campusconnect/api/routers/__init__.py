"""API routers for CampusConnect."""

from . import clearance
from . import notifications
from . import health

__all__ = [
    "clearance",
    "notifications",
    "health",
]

"""Clearance workflow module for CampusConnect.

Implements the per-step clearance state machine and the service around it.
"""

from .states import StepStatus, OverallStatus, StepAction, VALID_TRANSITIONS
from .machine import StepStateMachine, TransitionError, PermissionDeniedError
from .results import ClearanceResult, ClearanceError, ClearanceErrorKind
from .service import ClearanceService

__all__ = [
    "StepStatus",
    "OverallStatus",
    "StepAction",
    "VALID_TRANSITIONS",
    "StepStateMachine",
    "TransitionError",
    "PermissionDeniedError",
    "ClearanceResult",
    "ClearanceError",
    "ClearanceErrorKind",
    "ClearanceService",
]

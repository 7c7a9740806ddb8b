"""Step state machine implementation.

Handles step transitions with validation and approver scope checking.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from .states import (
    StepStatus,
    StepAction,
    can_transition,
    get_transition_rule,
)


class TransitionError(Exception):
    """Raised when a step transition is invalid (the step was already decided)."""

    def __init__(self, message: str, from_state: StepStatus, action: StepAction):
        super().__init__(message)
        self.from_state = from_state
        self.action = action


class PermissionDeniedError(Exception):
    """Raised when the acting principal may not decide this step."""

    def __init__(self, reason: str):
        super().__init__(f"Permission denied: {reason}")
        self.reason = reason


def approver_matches_step(
    step_role: str,
    step_department: str,
    role: Optional[str],
    department: Optional[str],
    *,
    finance_department: str = "Finance",
) -> bool:
    """Role and department scope rule shared by the pending query and actions.

    Faculty approvals are department scoped; the finance step is handled by
    any admin regardless of the admin's own department.
    """
    if role != step_role:
        return False
    if step_department == department:
        return True
    return role == "admin" and step_department == finance_department


class StepStateMachine:
    """
    State machine for one clearance step.

    Manages transitions between step states with:
    - Validation of valid transitions
    - Approver role/department scope checking
    - Transition history for the lifetime of the machine
    """

    def __init__(
        self,
        step_id: uuid.UUID,
        current_state: StepStatus,
        *,
        approver_role: str,
        department: str,
        finance_department: str = "Finance",
    ):
        """
        Initialize the state machine.

        Args:
            step_id: ID of the step
            current_state: Current step status
            approver_role: Role required to act on the step
            department: Department responsible for the step
            finance_department: Department any admin may act on
        """
        self.step_id = step_id
        self._state = current_state
        self.approver_role = approver_role
        self.department = department
        self.finance_department = finance_department
        self._transition_history: list[Dict[str, Any]] = []

    @property
    def state(self) -> StepStatus:
        """Current state of the step."""
        return self._state

    def transition(
        self,
        action: StepAction,
        *,
        role: Optional[str],
        department: Optional[str],
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
        comments: Optional[str] = None,
    ) -> StepStatus:
        """
        Perform a step transition.

        Returns:
            The new state after transition

        Raises:
            TransitionError: If the step is not pending
            PermissionDeniedError: If the principal is outside the step's scope
        """
        if not can_transition(self._state, action):
            raise TransitionError(
                f"Step already {self._state.value}; cannot {action.value.lower()}",
                self._state,
                action,
            )

        rule = get_transition_rule(self._state, action)
        if not rule:
            raise TransitionError(
                f"No rule found for action {action.value}",
                self._state,
                action,
            )

        if not self._in_scope(role, department):
            raise PermissionDeniedError(
                f"step requires role '{self.approver_role}' in department '{self.department}'"
            )

        from_state = self._state
        to_state = rule.to_state

        transition_record = {
            "id": uuid.uuid4(),
            "step_id": self.step_id,
            "from_state": from_state.value,
            "to_state": to_state.value,
            "action": action.value,
            "user_id": user_id,
            "user_name": user_name,
            "comments": comments,
            "timestamp": datetime.utcnow(),
        }
        self._transition_history.append(transition_record)

        self._state = to_state

        return self._state

    def get_history(self) -> list[Dict[str, Any]]:
        """Get the transitions performed through this machine."""
        return self._transition_history.copy()

    def _in_scope(self, role: Optional[str], department: Optional[str]) -> bool:
        return approver_matches_step(
            self.approver_role,
            self.department,
            role,
            department,
            finance_department=self.finance_department,
        )


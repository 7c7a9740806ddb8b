"""Clearance workflow states and transitions.

Each department step runs its own tiny state machine:

    ┌──────────┐   approve   ┌──────────┐
    │ PENDING  │────────────►│ APPROVED │
    └────┬─────┘             └──────────┘
         │      reject       ┌──────────┐
         └──────────────────►│ REJECTED │
                             └──────────┘

A request fans out into several steps and fans back in through
``derive_overall_status``, which is the only place the overall status of a
request is computed.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional, NamedTuple, Set


class StepStatus(str, Enum):
    """States of a single department approval step."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class OverallStatus(str, Enum):
    """Aggregate state of a clearance request, derived from its steps."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class StepAction(str, Enum):
    """Actions an approver can take on a step."""

    APPROVE = "Approve"
    REJECT = "Reject"


class TransitionRule(NamedTuple):
    """Defines a valid step transition."""
    from_state: StepStatus
    to_state: StepStatus
    action: StepAction


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(StepStatus.PENDING, StepStatus.APPROVED, StepAction.APPROVE),
    TransitionRule(StepStatus.PENDING, StepStatus.REJECTED, StepAction.REJECT),
]

VALID_TRANSITIONS: Dict[StepStatus, Set[StepAction]] = {}
TRANSITION_TARGETS: Dict[tuple[StepStatus, StepAction], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.action)
    TRANSITION_TARGETS[(rule.from_state, rule.action)] = rule


TERMINAL_STATES: Set[StepStatus] = {
    StepStatus.APPROVED,
    StepStatus.REJECTED,
}


def can_transition(from_state: StepStatus, action: StepAction) -> bool:
    """Check if an action is valid from the given step state."""
    return action in VALID_TRANSITIONS.get(from_state, set())


def get_transition_rule(from_state: StepStatus, action: StepAction) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, action))


def get_target_state(from_state: StepStatus, action: StepAction) -> Optional[StepStatus]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, action)
    return rule.to_state if rule else None


def _status_of(step: Any) -> StepStatus:
    # Accepts ORM steps, step dicts, or bare statuses.
    if isinstance(step, dict):
        step = step["status"]
    else:
        step = getattr(step, "status", step)
    return StepStatus(step)


def derive_overall_status(steps: Iterable[Any]) -> OverallStatus:
    """Compute the overall status of a request from its steps.

    A single rejected step blocks the whole clearance, no matter how many
    other steps are approved.
    """
    statuses = [_status_of(s) for s in steps]

    if any(s == StepStatus.REJECTED for s in statuses):
        return OverallStatus.REJECTED
    if statuses and all(s == StepStatus.APPROVED for s in statuses):
        return OverallStatus.APPROVED
    if any(s == StepStatus.APPROVED for s in statuses):
        return OverallStatus.IN_PROGRESS
    return OverallStatus.PENDING


def calculate_progress(steps: Iterable[Any]) -> int:
    """Percentage of steps approved, rounded half up. Rejected steps do not count."""
    statuses = [_status_of(s) for s in steps]
    if not statuses:
        return 0
    approved = sum(1 for s in statuses if s == StepStatus.APPROVED)
    return (200 * approved + len(statuses)) // (2 * len(statuses))

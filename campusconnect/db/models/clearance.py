"""Clearance workflow database models.

Stores clearance requests, their department steps, and the step transition
history. The overall status of a request is never stored.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from campusconnect.db.base import Base
from campusconnect.core.clearance.states import (
    StepStatus,
    OverallStatus,
    derive_overall_status,
    calculate_progress,
)


class ClearanceRequest(Base):
    """
    A student's application to be cleared by every required department.

    Each student can have exactly one clearance request.
    """
    __tablename__ = "clearance_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Student snapshot at submission time
    student_id = Column(String(64), unique=True, nullable=False, index=True)
    student_name = Column(String(255), nullable=False)
    student_department = Column(String(255), nullable=True, index=True)
    student_roll_no = Column(String(64), nullable=True)

    # Account that submitted the request; notifications are addressed to it
    student_user_id = Column(String(64), nullable=True, index=True)

    # Timestamps
    submission_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    steps = relationship(
        "ClearanceStep",
        back_populates="request",
        order_by="ClearanceStep.position",
        cascade="all, delete-orphan",
    )
    history = relationship(
        "ClearanceHistory",
        back_populates="request",
        order_by="ClearanceHistory.created_at",
        cascade="all, delete-orphan",
    )

    @property
    def overall_status(self) -> OverallStatus:
        return derive_overall_status(self.steps)

    @property
    def progress(self) -> int:
        return calculate_progress(self.steps)

    def __repr__(self) -> str:
        return f"<ClearanceRequest {self.student_id} [{self.overall_status.value}]>"


class ClearanceStep(Base):
    """
    One department's approval decision within a clearance request.

    Starts Pending and is decided exactly once.
    """
    __tablename__ = "clearance_steps"
    __table_args__ = (
        UniqueConstraint("request_id", "key", name="uq_clearance_steps_request_key"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, ForeignKey("clearance_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)

    # Template identity
    key = Column(String(50), nullable=False)
    title = Column(String(100), nullable=False)

    # Who may act
    department = Column(String(255), nullable=False, index=True)
    approver_role = Column(String(50), nullable=False, index=True)

    # Decision
    status = Column(String(20), nullable=False, default=StepStatus.PENDING.value, index=True)
    approver_id = Column(String(64), nullable=True)
    approver_name = Column(String(255), nullable=True)
    approval_date = Column(DateTime, nullable=True)
    comments = Column(Text, nullable=True)

    request = relationship("ClearanceRequest", back_populates="steps")

    def __repr__(self) -> str:
        return f"<ClearanceStep {self.title}/{self.department} [{self.status}]>"


class ClearanceHistory(Base):
    """
    Records every step decision.

    Provides an append-only audit trail of the clearance workflow.
    """
    __tablename__ = "clearance_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, ForeignKey("clearance_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    step_id = Column(Uuid, ForeignKey("clearance_steps.id", ondelete="CASCADE"), nullable=False)

    # Transition details
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    action = Column(String(20), nullable=False)

    # Actor
    user_id = Column(String(64), nullable=True)
    user_name = Column(String(255), nullable=True)
    comments = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    request = relationship("ClearanceRequest", back_populates="history")

    def __repr__(self) -> str:
        return f"<ClearanceHistory {self.from_status} -> {self.to_status}>"

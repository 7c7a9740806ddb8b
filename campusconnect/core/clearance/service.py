"""Clearance service for managing student clearance workflows.

Provides the high-level API over the step state machine, including database
persistence, approver scoping, history and student notifications.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Union
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy import and_, or_, func
from sqlalchemy.exc import IntegrityError

from campusconnect.core.config import Settings, get_settings
from campusconnect.core.security import Principal
from campusconnect.core.templates import ClearanceTemplates, load_templates

from .states import StepStatus, StepAction, OverallStatus, derive_overall_status
from .machine import StepStateMachine, TransitionError, PermissionDeniedError
from .results import ClearanceResult, ClearanceErrorKind

logger = logging.getLogger(__name__)


class ClearanceService:
    """
    High-level service for managing clearance requests.

    Handles:
    - Submitting a request with its department steps
    - Approving and rejecting steps with persistence and history
    - Querying status, pending work and the admin listing

    Business rule failures are returned as ``ClearanceResult`` failures;
    infrastructure errors propagate.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        templates: Optional[ClearanceTemplates] = None,
        notifier=None,
    ):
        """
        Initialize the clearance service.

        Args:
            db: Database session
            settings: Application settings (defaults to the cached settings)
            templates: Step templates (defaults to the configured templates)
            notifier: Notification service used for student notifications
        """
        self.db = db
        self.settings = settings or get_settings()
        self.templates = templates or load_templates(
            self.settings.clearance_templates_path,
            finance_department=self.settings.finance_department,
        )
        if notifier is None:
            from campusconnect.services.notifications import NotificationService
            notifier = NotificationService(db)
        self.notifier = notifier

    def submit_clearance_request(
        self,
        student_id: str,
        student_details: Dict[str, Any],
    ) -> ClearanceResult:
        """
        Create the clearance request for a student.

        Args:
            student_id: Student identifier (one request per student)
            student_details: Snapshot with ``name``, ``department``, ``roll_no``
                and ``user_id`` (the account notifications go to)

        Returns:
            Result holding the new request, or AlreadyExists / InvalidRequest
        """
        from campusconnect.db.models.clearance import ClearanceRequest, ClearanceStep

        if self._find_by_student(student_id) is not None:
            logger.warning("Duplicate clearance submission for student %s", student_id)
            return ClearanceResult.failure(
                ClearanceErrorKind.ALREADY_EXISTS,
                f"Clearance request already exists for student {student_id}",
            )

        department = student_details.get("department")
        try:
            steps = [
                ClearanceStep(
                    position=position,
                    key=template.key,
                    title=template.title,
                    department=template.resolve_department(department),
                    approver_role=template.approver_role,
                    status=StepStatus.PENDING.value,
                )
                for position, template in enumerate(self.templates.for_department(department))
            ]
        except ValueError as e:
            logger.warning("Cannot build clearance steps for student %s: %s", student_id, e)
            return ClearanceResult.failure(ClearanceErrorKind.INVALID_REQUEST, str(e))

        request = ClearanceRequest(
            student_id=student_id,
            student_name=student_details.get("name") or student_id,
            student_department=department,
            student_roll_no=student_details.get("roll_no"),
            student_user_id=student_details.get("user_id") or student_id,
            steps=steps,
        )

        # The unique index on student_id settles concurrent submissions
        try:
            with self.db.begin_nested():
                self.db.add(request)
                self.db.flush()
        except IntegrityError:
            logger.warning("Concurrent clearance submission for student %s", student_id)
            return ClearanceResult.failure(
                ClearanceErrorKind.ALREADY_EXISTS,
                f"Clearance request already exists for student {student_id}",
            )

        logger.info(
            "Clearance request %s submitted for student %s with %d steps",
            request.id, student_id, len(request.steps),
        )
        return ClearanceResult.success(self._request_to_dict(request))

    def get_student_clearance_status(self, student_id: str) -> Optional[Dict[str, Any]]:
        """Get a student's clearance request, or None if they have not applied."""
        request = self._find_by_student(student_id)
        return self._request_to_dict(request) if request else None

    def get_clearance_request(self, request_id: UUID) -> Optional[Dict[str, Any]]:
        """Get a clearance request by ID."""
        from campusconnect.db.models.clearance import ClearanceRequest

        request = self.db.query(ClearanceRequest).filter(ClearanceRequest.id == request_id).first()
        return self._request_to_dict(request) if request else None

    def get_pending_clearance_actions(
        self,
        approver_id: str,
        approver_role: str,
        approver_department: Optional[str],
    ) -> List[Dict[str, Any]]:
        """
        Get requests with at least one pending step this approver may decide.

        A step matches when its role equals the approver's role and its
        department equals the approver's department. Admins additionally see
        every pending finance step. Oldest submissions first.
        """
        from campusconnect.db.models.clearance import ClearanceRequest, ClearanceStep

        scope = ClearanceStep.department == approver_department
        if approver_role == "admin":
            scope = or_(scope, ClearanceStep.department == self.settings.finance_department)

        requests = self.db.query(ClearanceRequest).filter(
            ClearanceRequest.steps.any(
                and_(
                    ClearanceStep.status == StepStatus.PENDING.value,
                    ClearanceStep.approver_role == approver_role,
                    scope,
                )
            )
        ).order_by(ClearanceRequest.submission_date.asc()).all()

        logger.debug(
            "%d pending clearance requests for %s (%s/%s)",
            len(requests), approver_id, approver_role, approver_department,
        )
        return [self._request_to_dict(r) for r in requests]

    def get_all_clearance_requests(
        self,
        *,
        status: Optional[Union[OverallStatus, str]] = None,
        department: Optional[str] = None,
        search_query: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List every clearance request, newest first.

        Filters compose with AND; empty filters are ignored. ``status``
        matches the derived overall status, so it is applied after loading.
        """
        from campusconnect.db.models.clearance import ClearanceRequest

        query = self.db.query(ClearanceRequest)

        if department:
            query = query.filter(ClearanceRequest.student_department == department)

        if search_query:
            needle = search_query.lower()
            query = query.filter(
                or_(
                    func.lower(ClearanceRequest.student_id).contains(needle, autoescape=True),
                    func.lower(ClearanceRequest.student_name).contains(needle, autoescape=True),
                    func.lower(ClearanceRequest.student_roll_no).contains(needle, autoescape=True),
                )
            )

        requests = query.order_by(ClearanceRequest.submission_date.desc()).all()

        if status:
            wanted = OverallStatus(status)
            requests = [r for r in requests if derive_overall_status(r.steps) == wanted]

        return [self._request_to_dict(r) for r in requests]

    def action_clearance_step(
        self,
        request_id: UUID,
        step_id: UUID,
        action: StepAction,
        approver: Principal,
        comments: Optional[str] = None,
    ) -> ClearanceResult:
        """
        Approve or reject one step of a clearance request.

        Args:
            request_id: ID of the clearance request
            step_id: ID of the step within that request
            action: Approve or Reject
            approver: Principal performing the action
            comments: Optional comment, required by convention for rejections

        Returns:
            Result holding ``request``, ``overall_status`` and ``message``,
            or NotFound / AlreadyActioned / Forbidden
        """
        from campusconnect.db.models.clearance import ClearanceRequest, ClearanceStep, ClearanceHistory

        request = self.db.query(ClearanceRequest).filter(
            ClearanceRequest.id == request_id
        ).with_for_update().first()

        if not request:
            return ClearanceResult.failure(
                ClearanceErrorKind.NOT_FOUND,
                f"Clearance request {request_id} not found",
            )

        step = next((s for s in request.steps if s.id == step_id), None)
        if not step:
            return ClearanceResult.failure(
                ClearanceErrorKind.NOT_FOUND,
                f"Step {step_id} not found in clearance request {request_id}",
            )

        machine = StepStateMachine(
            step_id=step.id,
            current_state=StepStatus(step.status),
            approver_role=step.approver_role,
            department=step.department,
            finance_department=self.settings.finance_department,
        )

        try:
            new_state = machine.transition(
                action,
                role=approver.role,
                department=approver.department,
                user_id=approver.user_id,
                user_name=approver.name,
                comments=comments,
            )
        except TransitionError as e:
            logger.warning("Step %s already %s; %s by %s refused", step.id, e.from_state.value, action.value, approver.user_id)
            return ClearanceResult.failure(
                ClearanceErrorKind.ALREADY_ACTIONED,
                str(e),
                current_status=e.from_state,
            )
        except PermissionDeniedError as e:
            logger.warning("Step %s: %s for %s", step.id, e, approver.user_id)
            return ClearanceResult.failure(ClearanceErrorKind.FORBIDDEN, str(e))

        now = datetime.utcnow()

        # Compare-and-set: only the first decision on a pending step lands
        updated = self.db.query(ClearanceStep).filter(
            and_(
                ClearanceStep.id == step.id,
                ClearanceStep.status == StepStatus.PENDING.value,
            )
        ).update(
            {
                ClearanceStep.status: new_state.value,
                ClearanceStep.approver_id: approver.user_id,
                ClearanceStep.approver_name: approver.name,
                ClearanceStep.approval_date: now,
                ClearanceStep.comments: comments,
            },
            synchronize_session=False,
        )
        self.db.refresh(step)

        if updated == 0:
            logger.warning("Step %s was decided concurrently (now %s)", step.id, step.status)
            return ClearanceResult.failure(
                ClearanceErrorKind.ALREADY_ACTIONED,
                f"Step already {step.status}",
                current_status=StepStatus(step.status),
            )

        record = machine.get_history()[-1]
        self.db.add(
            ClearanceHistory(
                request_id=request.id,
                step_id=step.id,
                from_status=record["from_state"],
                to_status=record["to_state"],
                action=record["action"],
                user_id=approver.user_id,
                user_name=approver.name,
                comments=comments,
                created_at=now,
            )
        )
        request.updated_at = now
        self.db.flush()

        self._notify_student(request, step, new_state, approver, comments)

        overall = request.overall_status
        verb = "approved" if new_state == StepStatus.APPROVED else "rejected"
        logger.info(
            "Step %s (%s) of request %s %s by %s; overall %s",
            step.key, step.department, request.id, verb, approver.user_id, overall.value,
        )

        return ClearanceResult.success({
            "request": self._request_to_dict(request),
            "overall_status": overall.value,
            "message": f"{step.title} clearance {verb} by {approver.name}",
        })

    def get_clearance_history(self, request_id: UUID) -> ClearanceResult:
        """Get the step decision history of a request, oldest first."""
        from campusconnect.db.models.clearance import ClearanceRequest, ClearanceHistory

        exists = self.db.query(ClearanceRequest.id).filter(ClearanceRequest.id == request_id).first()
        if not exists:
            return ClearanceResult.failure(
                ClearanceErrorKind.NOT_FOUND,
                f"Clearance request {request_id} not found",
            )

        history = self.db.query(ClearanceHistory).filter(
            ClearanceHistory.request_id == request_id
        ).order_by(ClearanceHistory.created_at.asc()).all()

        return ClearanceResult.success([
            {
                "id": str(h.id),
                "step_id": str(h.step_id),
                "from_status": h.from_status,
                "to_status": h.to_status,
                "action": h.action,
                "user_id": h.user_id,
                "user_name": h.user_name,
                "comments": h.comments,
                "created_at": h.created_at.isoformat() if h.created_at else None,
            }
            for h in history
        ])

    def _find_by_student(self, student_id: str):
        from campusconnect.db.models.clearance import ClearanceRequest

        return self.db.query(ClearanceRequest).filter(
            ClearanceRequest.student_id == student_id
        ).first()

    def _notify_student(
        self,
        request,
        step,
        new_state: StepStatus,
        approver: Principal,
        comments: Optional[str],
    ) -> None:
        """Send the step decision to the student. Never fails the action."""
        try:
            with self.db.begin_nested():
                self.notifier.notify_step_decided(
                    student_id=request.student_user_id or request.student_id,
                    step_title=step.title,
                    approved=new_state == StepStatus.APPROVED,
                    approver_name=approver.name,
                    comments=comments,
                )
        except Exception:
            logger.exception("Failed to notify student %s about step %s", request.student_id, step.id)

    def _request_to_dict(self, request) -> Dict[str, Any]:
        """Convert a request model to a dictionary."""
        return {
            "id": str(request.id),
            "student_id": request.student_id,
            "student_name": request.student_name,
            "student_department": request.student_department,
            "student_roll_no": request.student_roll_no,
            "student_user_id": request.student_user_id,
            "submission_date": request.submission_date.isoformat() if request.submission_date else None,
            "updated_at": request.updated_at.isoformat() if request.updated_at else None,
            "overall_status": request.overall_status.value,
            "progress": request.progress,
            "steps": [
                {
                    "id": str(s.id),
                    "key": s.key,
                    "title": s.title,
                    "department": s.department,
                    "approver_role": s.approver_role,
                    "status": s.status,
                    "approver_id": s.approver_id,
                    "approver_name": s.approver_name,
                    "approval_date": s.approval_date.isoformat() if s.approval_date else None,
                    "comments": s.comments,
                }
                for s in request.steps
            ],
        }

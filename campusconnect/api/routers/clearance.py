"""Clearance workflow API endpoints."""

from typing import List, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from campusconnect.api.deps import get_db, get_current_principal, require_clearance_module
from campusconnect.api.schemas.common import PaginatedResponse, ErrorResponse
from campusconnect.core.rbac import require_permission, has_permission
from campusconnect.core.security import Principal
from campusconnect.core.clearance import (
    ClearanceService,
    ClearanceResult,
    ClearanceErrorKind,
    StepAction,
    OverallStatus,
)

router = APIRouter(
    prefix="/clearance",
    tags=["clearance"],
    dependencies=[Depends(require_clearance_module)],
)


# Schemas
class ClearanceStepResponse(BaseModel):
    id: UUID
    key: str
    title: str
    department: str
    approver_role: str
    status: str
    approver_id: Optional[str] = None
    approver_name: Optional[str] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None


class ClearanceRequestResponse(BaseModel):
    id: UUID
    student_id: str
    student_name: str
    student_department: Optional[str] = None
    student_roll_no: Optional[str] = None
    student_user_id: Optional[str] = None
    submission_date: datetime
    updated_at: Optional[datetime] = None
    overall_status: str
    progress: int
    steps: List[ClearanceStepResponse]


class ClearanceHistoryResponse(BaseModel):
    id: UUID
    step_id: UUID
    from_status: str
    to_status: str
    action: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    comments: Optional[str] = None
    created_at: datetime


class StepActionRequest(BaseModel):
    comments: Optional[str] = None


class StepActionResponse(BaseModel):
    success: bool = True
    message: str
    overall_status: str
    request: ClearanceRequestResponse


ERROR_STATUS = {
    ClearanceErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ClearanceErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ClearanceErrorKind.ALREADY_ACTIONED: status.HTTP_409_CONFLICT,
    ClearanceErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ClearanceErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
}


def _error_response(result: ClearanceResult) -> JSONResponse:
    """Map a failed service result to its HTTP response."""
    error = result.error
    body = ErrorResponse(
        error=error.kind.value,
        detail=error.message,
        current_status=error.current_status.value if error.current_status else None,
    )
    return JSONResponse(
        status_code=ERROR_STATUS[error.kind],
        content=body.model_dump(exclude_none=True),
    )


def _can_see_all(principal: Principal) -> bool:
    return has_permission(principal, "clearance:list") or has_permission(principal, "clearance:review")


# Endpoints
@router.post(
    "",
    response_model=ClearanceRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@require_permission("clearance:submit")
async def submit_clearance(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """
    Submit the caller's own clearance request.

    The student snapshot (name, department, roll number) comes from the token.
    """
    details = {
        "name": current_user.name,
        "department": current_user.department,
        "roll_no": current_user.roll_no,
        "user_id": current_user.user_id,
    }

    result = ClearanceService(db).submit_clearance_request(current_user.clearance_student_id, details)
    if not result.ok:
        db.rollback()
        return _error_response(result)

    db.commit()
    return result.value


@router.get("/me", response_model=ClearanceRequestResponse)
@require_permission("clearance:read")
async def get_my_clearance(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Get the caller's clearance request."""
    request = ClearanceService(db).get_student_clearance_status(current_user.clearance_student_id)
    if not request:
        raise HTTPException(status_code=404, detail="No clearance request submitted")
    return request


@router.get("/pending", response_model=List[ClearanceRequestResponse])
@require_permission("clearance:review")
async def list_pending_clearance(
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """
    List requests with a step the caller can decide.

    Admins may pass ``department`` to look at another department's queue.
    """
    approver_department = current_user.department
    if department and current_user.role == "admin":
        approver_department = department

    return ClearanceService(db).get_pending_clearance_actions(
        current_user.user_id,
        current_user.role,
        approver_department,
    )


@router.get("/students/{student_id}", response_model=ClearanceRequestResponse)
@require_permission("clearance:list")
async def get_student_clearance(
    student_id: str,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Get any student's clearance request."""
    request = ClearanceService(db).get_student_clearance_status(student_id)
    if not request:
        raise HTTPException(status_code=404, detail="Clearance request not found")
    return request


@router.get("", response_model=PaginatedResponse[ClearanceRequestResponse])
@require_permission("clearance:list")
async def list_clearance_requests(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status_filter: Optional[OverallStatus] = Query(None, alias="status"),
    department: Optional[str] = None,
    search: Optional[str] = None,
):
    """List all clearance requests with filters, newest first."""
    requests = ClearanceService(db).get_all_clearance_requests(
        status=status_filter,
        department=department,
        search_query=search,
    )

    start = (page - 1) * per_page
    return PaginatedResponse[ClearanceRequestResponse].create(
        items=requests[start:start + per_page],
        total=len(requests),
        page=page,
        per_page=per_page,
    )


@router.get("/{request_id}/history", response_model=List[ClearanceHistoryResponse])
@require_permission("clearance:read", "clearance:review")
async def get_clearance_history(
    request_id: UUID,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Get the step decision history for a clearance request."""
    service = ClearanceService(db)

    # Students only see their own request
    if not _can_see_all(current_user):
        request = service.get_clearance_request(request_id)
        if not request or request["student_id"] != current_user.clearance_student_id:
            raise HTTPException(status_code=404, detail="Clearance request not found")

    result = service.get_clearance_history(request_id)
    if not result.ok:
        return _error_response(result)
    return result.value


async def _action_step(
    request_id: UUID,
    step_id: UUID,
    action: StepAction,
    body: StepActionRequest,
    db: Session,
    current_user: Principal,
):
    service = ClearanceService(db)

    try:
        result = service.action_clearance_step(
            request_id,
            step_id,
            action,
            current_user,
            comments=body.comments,
        )
    except Exception:
        db.rollback()
        raise

    if not result.ok:
        db.rollback()
        return _error_response(result)

    db.commit()
    return result.value


@router.post(
    "/{request_id}/steps/{step_id}/approve",
    response_model=StepActionResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@require_permission("clearance:decide")
async def approve_step(
    request_id: UUID,
    step_id: UUID,
    body: Optional[StepActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Approve a pending clearance step."""
    return await _action_step(request_id, step_id, StepAction.APPROVE, body or StepActionRequest(), db, current_user)


@router.post(
    "/{request_id}/steps/{step_id}/reject",
    response_model=StepActionResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@require_permission("clearance:decide")
async def reject_step(
    request_id: UUID,
    step_id: UUID,
    body: Optional[StepActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_principal),
):
    """Reject a pending clearance step."""
    return await _action_step(request_id, step_id, StepAction.REJECT, body or StepActionRequest(), db, current_user)

"""
Procurement request routes: CRUD, submission and approval status.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.procurement_request import ProcurementRequest, RequestStatus
from ..models.user import User
from ..auth import get_current_user, get_required_user
from ..responses import success, deleted, paginated, not_found, validation_error
from ..schemas.procurement_request import RequestCreate, RequestUpdate, RequestResponse
from ..schemas.approval import ApprovalStepResponse, ApprovalHistoryResponse, ApprovalResponse
from ..services.notifications import EmailNotifier, get_notifier
from ..services.workflow import WorkflowEngine

router = APIRouter(prefix="/api/requests", tags=["requests"])


def _get_request(db: Session, request_id: int) -> ProcurementRequest:
    request = db.get(ProcurementRequest, request_id)
    if not request:
        not_found("Request", request_id)
    return request


def _dump(request: ProcurementRequest) -> dict:
    return RequestResponse.model_validate(request).model_dump(mode="json")


@router.get("")
def list_requests(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """List requests, newest first, with an optional status filter."""
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = db.query(ProcurementRequest)
    if status:
        query = query.filter(ProcurementRequest.status == status)

    total = query.count()
    rows = (
        query.order_by(ProcurementRequest.created_at.desc(), ProcurementRequest.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated([_dump(r) for r in rows], total, page, limit)


@router.post("", status_code=201)
def create_request(
    data: RequestCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user),
):
    """Create a draft request."""
    if not data.title.strip():
        validation_error("title is required", {"field": "title"})

    request = ProcurementRequest(
        requester_id=current_user.id if current_user else None,
        status=RequestStatus.DRAFT,
        **data.model_dump(),
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    return success(_dump(request), "Request created")


@router.get("/{request_id}")
def get_request(request_id: int, db: Session = Depends(get_db)):
    return success(_dump(_get_request(db, request_id)))


@router.patch("/{request_id}")
def update_request(
    request_id: int,
    update: RequestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Update a request's descriptive fields. Status only changes through the workflow."""
    request = _get_request(db, request_id)
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(request, key, value)
    db.commit()
    db.refresh(request)
    return success(_dump(request), "Request updated")


@router.delete("/{request_id}")
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    request = _get_request(db, request_id)
    db.delete(request)
    db.commit()
    return deleted("Request deleted")


@router.post("/{request_id}/submit")
def submit_request(
    request_id: int,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Submit a request for approval.

    Builds the approval steps from the master workflow template on first
    submission and emails the first approver. With no template configured
    the request is approved immediately.
    """
    result = WorkflowEngine(db, notifier).submit(request_id)

    data = {"request": _dump(result.request)}
    if result.step is not None:
        data["step"] = ApprovalStepResponse.model_validate(result.step).model_dump(mode="json")
    if result.notification is not None:
        data["notification"] = {
            "to": result.notification.to,
            "sent": result.notification.sent,
        }
    return success(data, result.message)


@router.get("/{request_id}/approval")
def get_request_approval(request_id: int, db: Session = Depends(get_db)):
    """Approval chain of a request: ordered steps plus the decision history."""
    request = _get_request(db, request_id)
    approval = request.approval
    steps = sorted(approval.steps, key=lambda s: s.order) if approval else []
    history = sorted(request.history, key=lambda h: (h.created_at, h.id))

    view = ApprovalResponse(
        request_id=request.id,
        approval_id=approval.id if approval else None,
        steps=[ApprovalStepResponse.model_validate(s) for s in steps],
        history=[ApprovalHistoryResponse.model_validate(h) for h in history],
    )
    return success({"request": _dump(request), **view.model_dump(mode="json")})

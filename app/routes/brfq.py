"""
BRFQ routes: modification requests, BRFQ approval, pause and resume.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.brfq import BRFQ
from ..models.modification import ModificationRequest
from ..models.pause import PauseReason
from ..models.user import User
from ..auth import get_required_user
from ..responses import success, paginated, deleted, bad_request, not_found
from ..schemas.brfq import (
    BRFQDecision,
    BRFQResponse,
    ModificationCreate,
    ModificationDecision,
    ModificationResponse,
)
from ..schemas.pause import (
    PauseActionResponse,
    PauseReasonCreate,
    PauseReasonResponse,
    PauseReasonUpdate,
    PauseRequest,
    ResumeRequest,
)
from ..services.modifications import ModificationService
from ..services.notifications import EmailNotifier, get_notifier
from ..services.pausing import PauseService

router = APIRouter(prefix="/api", tags=["brfq"])


def _modification_dict(modification: ModificationRequest) -> dict:
    return ModificationResponse.model_validate(modification).model_dump(mode="json")


def _brfq_dict(brfq: BRFQ) -> dict:
    return BRFQResponse.model_validate(brfq).model_dump(mode="json")


def _pause_dict(result) -> dict:
    return {
        "brfq_id": result.brfq.id,
        "status": result.brfq.status,
        "action": PauseActionResponse.model_validate(result.action).model_dump(mode="json"),
        "notified": result.notified,
    }


@router.get("/brfq/{brfq_id}")
def get_brfq(brfq_id: int, db: Session = Depends(get_db)):
    brfq = db.get(BRFQ, brfq_id)
    if not brfq:
        not_found("BRFQ", brfq_id)
    return success(_brfq_dict(brfq))


@router.post("/brfq/{brfq_id}/modification-request", status_code=201)
def create_modification_request(
    brfq_id: int,
    data: ModificationCreate,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Request changes to a BRFQ. The BRFQ is unpublished until an admin decides."""
    modification = ModificationService(db, notifier).create(
        brfq_id,
        data.requested_by,
        data.requested_fields,
        data.summary,
        data.note,
    )
    return success(_modification_dict(modification), "Modification request submitted")


# ============================================================
# ADMIN: MODIFICATION REQUESTS
# ============================================================

@router.get("/admin/modification-requests")
def list_modification_requests(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = db.query(ModificationRequest)
    if status:
        query = query.filter(ModificationRequest.status == status)

    total = query.count()
    rows = (
        query.order_by(ModificationRequest.requested_at.desc(), ModificationRequest.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = []
    for row in rows:
        item = _modification_dict(row)
        item["brfq"] = {"id": row.brfq.id, "rfq_id": row.brfq.rfq_id, "title": row.brfq.title}
        items.append(item)
    return paginated(items, total, page, limit)


@router.post("/admin/modification-requests/{modification_id}/approve")
def approve_modification_request(
    modification_id: int,
    data: Optional[ModificationDecision] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    """Apply the requested changes to the BRFQ and notify its suppliers."""
    data = data or ModificationDecision()
    result = ModificationService(db, notifier).approve(
        modification_id,
        acted_by=data.acted_by,
        note=data.note,
        notify_suppliers=data.notify_suppliers,
    )
    return success(
        {
            "modification": _modification_dict(result.modification),
            "brfq": _brfq_dict(result.brfq),
            "notified": result.notified,
        },
        "Modification approved and applied",
    )


@router.post("/admin/modification-requests/{modification_id}/reject")
def reject_modification_request(
    modification_id: int,
    data: Optional[ModificationDecision] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    data = data or ModificationDecision()
    result = ModificationService(db, notifier).reject(modification_id, acted_by=data.acted_by, note=data.note)
    return success({"modification": _modification_dict(result.modification)}, "Modification rejected")


# ============================================================
# ADMIN: BRFQ APPROVAL
# ============================================================

@router.post("/admin/brfqs/{brfq_id}/approve")
def approve_brfq(
    brfq_id: int,
    data: Optional[BRFQDecision] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    """Approve a BRFQ, publishing it when configured, and email the selected suppliers."""
    data = data or BRFQDecision()
    brfq, published, emails = ModificationService(db, notifier).approve_brfq(
        brfq_id,
        approver=data.approver or current_user.email,
        note=data.note,
        publish_override=data.publish_override,
    )
    return success(
        {
            "brfq": _brfq_dict(brfq),
            "published": published,
            "emails": [
                {"supplier_id": e.supplier_id, "email": e.email, "sent": e.sent, "error": e.error}
                for e in emails
            ],
        },
        "BRFQ approved",
    )


@router.post("/admin/brfqs/{brfq_id}/reject")
def reject_brfq(
    brfq_id: int,
    data: Optional[BRFQDecision] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    data = data or BRFQDecision()
    brfq = ModificationService(db, notifier).reject_brfq(
        brfq_id,
        approver=data.approver or current_user.email,
        note=data.note,
    )
    return success({"brfq": _brfq_dict(brfq)}, "BRFQ rejected")


# ============================================================
# ADMIN: PAUSE / RESUME
# ============================================================

@router.get("/admin/pause-reasons")
def list_pause_reasons(
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    query = db.query(PauseReason)
    if active is not None:
        query = query.filter(PauseReason.active == active)
    reasons = query.order_by(PauseReason.created_at.desc(), PauseReason.id.desc()).all()
    return success([PauseReasonResponse.model_validate(r).model_dump(mode="json") for r in reasons])


@router.post("/admin/pause-reasons", status_code=201)
def create_pause_reason(
    data: PauseReasonCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    key = data.key.strip()
    if db.query(PauseReason).filter(PauseReason.key == key).first():
        bad_request("Pause reason key already exists", "DUPLICATE_PAUSE_REASON")

    reason = PauseReason(key=key, label=data.label.strip(), active=data.active)
    db.add(reason)
    db.commit()
    db.refresh(reason)
    return success(PauseReasonResponse.model_validate(reason).model_dump(mode="json"), "Pause reason created")


@router.put("/admin/pause-reasons/{reason_id}")
def update_pause_reason(
    reason_id: int,
    data: PauseReasonUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    reason = db.get(PauseReason, reason_id)
    if not reason:
        not_found("Pause reason", reason_id)

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(reason, key, value)
    db.commit()
    db.refresh(reason)
    return success(PauseReasonResponse.model_validate(reason).model_dump(mode="json"), "Pause reason updated")


@router.delete("/admin/pause-reasons/{reason_id}")
def delete_pause_reason(
    reason_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    reason = db.get(PauseReason, reason_id)
    if not reason:
        not_found("Pause reason", reason_id)
    db.delete(reason)
    db.commit()
    return deleted("Pause reason deleted")


@router.post("/admin/brfqs/{brfq_id}/pause")
def pause_brfq(
    brfq_id: int,
    data: Optional[PauseRequest] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    """Pause a BRFQ immediately and tell its suppliers why."""
    data = data or PauseRequest()
    result = PauseService(db, notifier).pause(
        brfq_id,
        performed_by=data.performed_by or current_user.email,
        reason_id=data.reason_id,
        reason_text=data.reason_text,
        notify_suppliers=data.notify_suppliers,
        notify_internal=data.notify_internal,
    )
    return success(_pause_dict(result), "RFQ paused")


@router.post("/admin/brfqs/{brfq_id}/resume")
def resume_brfq(
    brfq_id: int,
    data: Optional[ResumeRequest] = None,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    data = data or ResumeRequest()
    result = PauseService(db, notifier).resume(
        brfq_id,
        performed_by=data.performed_by or current_user.email,
        notify_suppliers=data.notify_suppliers,
        notify_internal=data.notify_internal,
    )
    return success(_pause_dict(result), "RFQ resumed")


@router.get("/admin/brfqs/{brfq_id}/pause-history")
def pause_history(
    brfq_id: int,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    actions = PauseService(db, notifier).history(brfq_id)
    return success([PauseActionResponse.model_validate(a).model_dump(mode="json") for a in actions])
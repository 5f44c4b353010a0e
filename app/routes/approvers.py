"""
Approver directory routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.approver import Approver
from ..models.user import User
from ..auth import get_required_user
from ..logging_config import workflow_logger as logger
from ..responses import success, deleted, bad_request, not_found
from ..schemas.workflow import ApproverCreate, ApproverResponse

router = APIRouter(prefix="/api/approvers", tags=["approvers"])


@router.get("")
def list_approvers(db: Session = Depends(get_db)):
    approvers = db.query(Approver).order_by(Approver.name).all()
    return success([ApproverResponse.model_validate(a).model_dump(mode="json") for a in approvers])


@router.post("", status_code=201)
def create_approver(
    data: ApproverCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Register an approver. Links the user account with the same email, if any."""
    email = str(data.email)
    if db.query(Approver).filter(Approver.email == email).first():
        bad_request("Approver email already registered", "DUPLICATE_APPROVER")

    user = db.query(User).filter(User.email == email).first()
    approver = Approver(
        name=data.name.strip(),
        email=email,
        role=data.role.strip(),
        user_id=user.id if user else None,
    )
    db.add(approver)
    db.commit()
    db.refresh(approver)

    logger.info("Approver created", approver_id=approver.id, role=approver.role)
    return success(ApproverResponse.model_validate(approver).model_dump(mode="json"), "Approver created")


@router.delete("/{approver_id}")
def delete_approver(
    approver_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    approver = db.get(Approver, approver_id)
    if not approver:
        not_found("Approver", approver_id)
    db.delete(approver)
    db.commit()
    logger.info("Approver deleted", approver_id=approver_id)
    return deleted("Approver deleted")

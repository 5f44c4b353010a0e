"""
Award routes: initiate and approve awards, and the award workflow rules.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.brfq import BRFQ
from ..models.user import User
from ..auth import get_required_user
from ..responses import success, not_found
from ..schemas.award import AwardApprove, AwardInitiate, AwardResponse, AwardWorkflowIn
from ..services.awards import AwardService

router = APIRouter(prefix="/api", tags=["awards"])


def _award_dict(award) -> dict:
    return AwardResponse.model_validate(award).model_dump(mode="json")


@router.post("/awards/initiate")
def initiate_award(
    data: AwardInitiate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """
    Create an award for a BRFQ.

    Auto-approved (and the BRFQ marked awarded) unless an award workflow
    rule fires, in which case the award waits for approval.
    """
    result = AwardService(db).initiate(
        data.brfq_id,
        data.supplier_ids,
        justification=data.justification,
        estimated_value=data.estimated_value,
        split_award=data.split_award,
        winners=data.winners,
        created_by=current_user.email,
    )
    return success(
        {"award": _award_dict(result.award), "approved": result.approved, "warnings": result.warnings},
        result.message,
    )


@router.post("/awards/{award_id}/approve")
def approve_award(
    award_id: int,
    data: Optional[AwardApprove] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    data = data or AwardApprove()
    result = AwardService(db).approve(
        award_id,
        approver=data.approver or current_user.email,
        note=data.note,
        winners=data.winners,
    )
    return success({"award": _award_dict(result.award)}, result.message)


@router.get("/awards/brfq/{brfq_id}")
def list_awards_for_brfq(
    brfq_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    if not db.get(BRFQ, brfq_id):
        not_found("BRFQ", brfq_id)
    return success([_award_dict(a) for a in AwardService(db).for_brfq(brfq_id)])


# ============================================================
# ADMIN: AWARD WORKFLOW
# ============================================================

@router.get("/admin/workflow/award")
def get_award_workflow(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    return success(AwardService(db).get_workflow())


@router.post("/admin/workflow/award")
def save_award_workflow(
    data: AwardWorkflowIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    workflow = AwardService(db).save_workflow(data.rules, data.notification_mapping, saved_by=current_user.email)
    return success(workflow, "Award workflow saved")

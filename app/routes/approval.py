"""
Approval decision routes.

Approvers act either from the token links in their email (no session) or from
the dashboard while signed in. Both paths go through the same engine.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.user import User
from ..auth import get_required_user
from ..responses import success
from ..schemas.approval import ApprovalStepResponse, DashboardAction, VerifyDecision
from ..services.notifications import EmailNotifier, get_notifier
from ..services.workflow import WorkflowEngine, WorkflowResult, normalize_decision

router = APIRouter(prefix="/api/approval", tags=["approval"])


def _step_dict(step) -> dict:
    return ApprovalStepResponse.model_validate(step).model_dump(mode="json")


def _result(result: WorkflowResult) -> dict:
    data = {
        "request_id": result.request.id,
        "request_status": result.request.status,
    }
    if result.step is not None:
        data["step"] = _step_dict(result.step)
    if result.next_step is not None:
        data["next_step"] = _step_dict(result.next_step)
    return success(data, result.message)


@router.get("/verify")
def preview_verify(
    token: str = Query(...),
    action: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Show the step an email link points at without acting on it."""
    step, request = WorkflowEngine(db, notifier).resolve_token(token)
    decision = normalize_decision(action).value if action else None
    return success({
        "request": {
            "id": request.id,
            "title": request.title,
            "description": request.description,
            "status": request.status,
        },
        "step": _step_dict(step),
        "decision": decision,
        "actionable": step.status == "PENDING",
    })


@router.post("/verify")
def verify(
    body: VerifyDecision,
    action: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Decide a step from an email link. The token alone authorizes the decision."""
    decision = body.decision or action
    result = WorkflowEngine(db, notifier).decide_by_token(body.token, decision, body.comments)
    return _result(result)


@router.post("/action")
def dashboard_action(
    body: DashboardAction,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    """Decide a step from the dashboard; the signed-in approver must own it."""
    result = WorkflowEngine(db, notifier).decide_by_dashboard(
        body.step_id,
        body.action,
        current_user,
        body.comments,
    )
    return _result(result)


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
    current_user: User = Depends(get_required_user),
):
    """Pending steps assigned to the signed-in approver."""
    approver, items = WorkflowEngine(db, notifier).pending_for(current_user)
    return success(
        [
            {
                "step": _step_dict(item.step),
                "request": {
                    "id": item.request.id,
                    "title": item.request.title,
                    "status": item.request.status,
                },
            }
            for item in items
        ],
        meta={"approver": approver.name, "role": approver.role, "count": len(items)},
    )

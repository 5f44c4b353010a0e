"""
Administration routes: the master approval workflow and BRFQ approval rules.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.approval_rule import ApprovalRule, ApprovalRuleApprover
from ..models.workflow_template import ApprovalWorkflowTemplate, ApprovalStepTemplate
from ..models.user import User
from ..auth import get_required_user
from ..logging_config import workflow_logger as logger
from ..responses import success, deleted, not_found, validation_error
from ..schemas.workflow import (
    WorkflowTemplateIn,
    WorkflowTemplateResponse,
    ApprovalRuleCreate,
    ApprovalRuleUpdate,
    ApprovalRuleResponse,
    RuleApproverIn,
)

router = APIRouter(prefix="/api/administration", tags=["administration"])


# ============================================================
# WORKFLOW TEMPLATE
# ============================================================

def _master_template(db: Session) -> Optional[ApprovalWorkflowTemplate]:
    return db.query(ApprovalWorkflowTemplate).order_by(ApprovalWorkflowTemplate.id).first()


@router.get("/workflow-template")
def get_workflow_template(db: Session = Depends(get_db)):
    """The master workflow, or an empty step list when none is configured."""
    template = _master_template(db)
    if not template:
        return success({"steps": []})
    return success(WorkflowTemplateResponse.model_validate(template).model_dump(mode="json"))


@router.post("/workflow-template")
def save_workflow_template(
    data: WorkflowTemplateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """
    Create or replace the master workflow.

    Steps are replaced wholesale and renumbered from 1 in the order given.
    Requests that already have steps keep their own copies.
    """
    try:
        template = _master_template(db)
        if template is None:
            template = ApprovalWorkflowTemplate(name="Master Workflow")
            db.add(template)

        template.default_sla = data.default_sla
        template.allow_parallel = data.allow_parallel
        template.send_reminders = data.send_reminders

        template.steps.clear()
        db.flush()
        for index, step in enumerate(data.steps, start=1):
            template.steps.append(ApprovalStepTemplate(order=index, **step.model_dump()))

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(template)
    logger.info("Workflow template saved", template_id=template.id, steps=len(template.steps))
    return success(
        WorkflowTemplateResponse.model_validate(template).model_dump(mode="json"),
        "Workflow saved",
    )


# ============================================================
# APPROVAL RULES
# ============================================================

def _get_rule(db: Session, rule_id: int) -> ApprovalRule:
    rule = db.get(ApprovalRule, rule_id)
    if not rule:
        not_found("Approval rule", rule_id)
    return rule


def _rule_approvers(approvers: List[RuleApproverIn]) -> List[ApprovalRuleApprover]:
    return [
        ApprovalRuleApprover(
            approver_id=a.approver_id,
            role=a.role,
            email=a.email,
            order=a.order if a.order is not None else index,
            is_parallel=a.is_parallel,
        )
        for index, a in enumerate(approvers, start=1)
    ]


def _rule_dict(rule: ApprovalRule) -> dict:
    return ApprovalRuleResponse.model_validate(rule).model_dump(mode="json")


@router.get("/approval-rules")
def list_approval_rules(
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    query = db.query(ApprovalRule)
    if active is not None:
        query = query.filter(ApprovalRule.active == active)
    rules = query.order_by(ApprovalRule.created_at.desc(), ApprovalRule.id.desc()).all()
    return success([_rule_dict(r) for r in rules])


@router.get("/approval-rules/{rule_id}")
def get_approval_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    return success(_rule_dict(_get_rule(db, rule_id)))


@router.post("/approval-rules", status_code=201)
def create_approval_rule(
    data: ApprovalRuleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Create a rule together with its approver chain."""
    if not data.name.strip():
        validation_error("name is required", {"field": "name"})

    rule = ApprovalRule(**data.model_dump(exclude={"approvers"}))
    rule.approvers = _rule_approvers(data.approvers)
    db.add(rule)
    db.commit()
    db.refresh(rule)

    logger.info("Approval rule created", rule_id=rule.id, approvers=len(rule.approvers))
    return success(_rule_dict(rule), "Approval rule created")


@router.put("/approval-rules/{rule_id}")
def update_approval_rule(
    rule_id: int,
    data: ApprovalRuleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Update a rule; its approver chain is replaced only when one is given."""
    rule = _get_rule(db, rule_id)
    try:
        for key, value in data.model_dump(exclude_unset=True, exclude={"approvers"}).items():
            setattr(rule, key, value)

        if data.approvers is not None:
            rule.approvers.clear()
            db.flush()
            rule.approvers.extend(_rule_approvers(data.approvers))

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(rule)
    logger.info("Approval rule updated", rule_id=rule.id)
    return success(_rule_dict(rule), "Approval rule updated")


@router.delete("/approval-rules/{rule_id}")
def delete_approval_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    rule = _get_rule(db, rule_id)
    db.delete(rule)
    db.commit()
    logger.info("Approval rule deleted", rule_id=rule_id)
    return deleted("Approval rule deleted")

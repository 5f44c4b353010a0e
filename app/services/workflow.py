"""
Approval workflow engine.

A request's approval is an ordered list of steps. Submitting materializes the
steps from the master template (or auto-approves when there is none) and
activates the first one. Each decision either rejects the whole request or
activates the next step by ascending ``order``; approving the last step
approves the request. The approver of every newly active step is emailed a
token link.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from urllib.parse import quote

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..logging_config import timed, workflow_logger as logger
from ..models.approval import Approval, ApprovalHistory, ApprovalStep, StepStatus
from ..models.approver import Approver
from ..models.procurement_request import ProcurementRequest, RequestStatus
from ..models.user import User
from ..models.workflow_template import ApprovalWorkflowTemplate
from .errors import ForbiddenError, InvalidToken, NotFoundError, StepConflictError, ValidationFailed
from .notifications import EmailNotifier, approval_email
from .tokens import decode_token, encode_token

DASHBOARD_DEFAULT_COMMENT = "Processed via Dashboard"

_DECISIONS = {
    "approve": StepStatus.APPROVED,
    "approved": StepStatus.APPROVED,
    "reject": StepStatus.REJECTED,
    "rejected": StepStatus.REJECTED,
}


def normalize_decision(value: Optional[str]) -> StepStatus:
    """Map approve/APPROVED/reject/REJECTED (any case) to a terminal step status."""
    if not value:
        raise ValidationFailed("decision is required", {"field": "decision"})
    decision = _DECISIONS.get(str(value).strip().lower())
    if decision is None:
        raise ValidationFailed(f"Unknown decision '{value}'", {"field": "decision"})
    return decision


@dataclass
class Notification:
    to: str
    sent: bool
    approve_link: str
    reject_link: str
    fallback: bool = False


@dataclass
class WorkflowResult:
    message: str
    request: ProcurementRequest
    step: Optional[ApprovalStep] = None
    next_step: Optional[ApprovalStep] = None
    notification: Optional[Notification] = None
    auto_approved: bool = False


@dataclass
class PendingItem:
    step: ApprovalStep
    request: ProcurementRequest


class WorkflowEngine:
    """Drives procurement requests through their approval steps."""

    def __init__(self, db: Session, notifier: EmailNotifier, settings: Optional[Settings] = None):
        self.db = db
        self.notifier = notifier
        self.settings = settings or get_settings()

    # ------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------

    @timed(logger)
    def submit(self, request_id: int) -> WorkflowResult:
        request = self.db.get(ProcurementRequest, request_id)
        if not request:
            raise NotFoundError("Request", request_id)

        approval = request.approval
        steps = sorted(approval.steps, key=lambda s: s.order) if approval else []

        if not steps:
            template = self._master_template()
            if not template or not template.steps:
                request.status = RequestStatus.APPROVED
                self.db.commit()
                logger.info("Request auto-approved, no workflow defined", request_id=request.id)
                return WorkflowResult(
                    message="Auto-approved (no workflow defined)",
                    request=request,
                    auto_approved=True,
                )
            approval = self._instantiate(request, approval, template)
            steps = sorted(approval.steps, key=lambda s: s.order)

        now = datetime.now(timezone.utc)
        first = steps[0]
        for step in steps:
            step.status = StepStatus.PENDING.value if step is first else StepStatus.WAITING.value
            step.activated_at = now if step is first else None
            step.decided_at = None
            step.decided_by = None
            step.comments = None

        request.status = RequestStatus.PENDING_APPROVAL
        self.db.commit()
        self.db.refresh(first)

        logger.info(
            "Request submitted for approval",
            request_id=request.id,
            step_id=first.id,
            steps=len(steps),
        )
        notification = self._notify(request, first)
        return WorkflowResult(
            message="Submitted for approval",
            request=request,
            step=first,
            next_step=first,
            notification=notification,
        )

    def _master_template(self) -> Optional[ApprovalWorkflowTemplate]:
        return self.db.query(ApprovalWorkflowTemplate).order_by(ApprovalWorkflowTemplate.id).first()

    def _instantiate(
        self,
        request: ProcurementRequest,
        approval: Optional[Approval],
        template: ApprovalWorkflowTemplate,
    ) -> Approval:
        """Copy the template's steps into the request's own approval."""
        if approval is None:
            approval = Approval(request=request)
            self.db.add(approval)

        for tstep in sorted(template.steps, key=lambda s: s.order):
            approval.steps.append(ApprovalStep(
                order=tstep.order,
                role=tstep.role,
                approver_name=tstep.approver_name,
                sla_duration=tstep.sla_duration or template.default_sla or self.settings.default_step_sla,
                condition=tstep.condition,
                is_required=bool(tstep.is_required),
                status=StepStatus.WAITING.value,
            ))
        self.db.flush()

        logger.info(
            "Workflow instantiated from template",
            request_id=request.id,
            template_id=template.id,
            steps=len(template.steps),
        )
        return approval

    # ------------------------------------------------------------
    # Decide
    # ------------------------------------------------------------

    def decide_by_token(self, token: str, decision: str, comments: Optional[str] = None) -> WorkflowResult:
        """Public email-link flow: the token alone identifies the step."""
        outcome = normalize_decision(decision)
        step, request = self.resolve_token(token)
        return self._decide(step, request, outcome, actor=step.approver_name, comments=comments, channel="email")

    def decide_by_dashboard(
        self,
        step_id: int,
        action: str,
        user: User,
        comments: Optional[str] = None,
    ) -> WorkflowResult:
        """Authenticated flow: the signed-in approver must own the step."""
        outcome = normalize_decision(action)
        approver = self._approver_for_user(user)

        step = self.db.get(ApprovalStep, step_id)
        if not step:
            raise NotFoundError("Step", step_id)
        if step.approver_name != approver.name:
            raise ForbiddenError("You are not assigned to this step")

        return self._decide(
            step,
            step.approval.request,
            outcome,
            actor=approver.name,
            comments=comments or DASHBOARD_DEFAULT_COMMENT,
            channel="dashboard",
        )

    def resolve_token(self, token: str) -> Tuple[ApprovalStep, ProcurementRequest]:
        payload = decode_token(token)
        try:
            request_id = int(payload["requestId"])
            step_id = int(payload["stepId"])
        except (TypeError, ValueError):
            raise InvalidToken()

        step = self.db.get(ApprovalStep, step_id)
        if not step:
            raise NotFoundError("Approval step", step_id)
        request = step.approval.request
        if request.id != request_id:
            raise InvalidToken()
        return step, request

    @timed(logger)
    def _decide(
        self,
        step: ApprovalStep,
        request: ProcurementRequest,
        outcome: StepStatus,
        actor: Optional[str],
        comments: Optional[str],
        channel: str,
    ) -> WorkflowResult:
        if step.status != StepStatus.PENDING.value:
            raise StepConflictError(f"Step is already {step.status}")

        now = datetime.now(timezone.utc)
        # Conditional update: only one concurrent decider can flip a PENDING step
        updated = (
            self.db.query(ApprovalStep)
            .filter(ApprovalStep.id == step.id, ApprovalStep.status == StepStatus.PENDING.value)
            .update(
                {
                    ApprovalStep.status: outcome.value,
                    ApprovalStep.decided_at: now,
                    ApprovalStep.decided_by: actor,
                    ApprovalStep.comments: comments,
                    ApprovalStep.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            self.db.rollback()
            self.db.refresh(step)
            raise StepConflictError(f"Step is already {step.status}")
        self.db.expire(step)

        self.db.add(ApprovalHistory(
            request_id=request.id,
            step_id=step.id,
            action=outcome.value,
            actor=actor,
            channel=channel,
            comments=comments,
        ))

        if outcome is StepStatus.REJECTED:
            request.status = RequestStatus.REJECTED
            self.db.commit()
            logger.info("Request rejected", request_id=request.id, step_id=step.id, actor=actor)
            return WorkflowResult(message="Request Rejected", request=request, step=step)

        next_step = (
            self.db.query(ApprovalStep)
            .filter(ApprovalStep.approval_id == step.approval_id, ApprovalStep.order > step.order)
            .order_by(ApprovalStep.order.asc())
            .first()
        )

        if next_step is None:
            request.status = RequestStatus.APPROVED
            self.db.commit()
            logger.info("Request fully approved", request_id=request.id, step_id=step.id, actor=actor)
            return WorkflowResult(message="Final Approval Complete.", request=request, step=step)

        next_step.status = StepStatus.PENDING.value
        next_step.activated_at = now
        self.db.commit()
        logger.info(
            "Step approved, next step activated",
            request_id=request.id,
            step_id=step.id,
            next_step_id=next_step.id,
            actor=actor,
        )
        notification = self._notify(request, next_step)
        return WorkflowResult(
            message="Approved. Moved to next step.",
            request=request,
            step=step,
            next_step=next_step,
            notification=notification,
        )

    # ------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------

    def pending_for(self, user: User) -> Tuple[Approver, List[PendingItem]]:
        approver = self._approver_for_user(user)
        steps = (
            self.db.query(ApprovalStep)
            .filter(
                ApprovalStep.status == StepStatus.PENDING.value,
                ApprovalStep.approver_name == approver.name,
            )
            .order_by(ApprovalStep.activated_at.desc(), ApprovalStep.id.desc())
            .all()
        )
        return approver, [PendingItem(step=s, request=s.approval.request) for s in steps]

    def _approver_for_user(self, user: User) -> Approver:
        approver = self.db.query(Approver).filter(Approver.email == user.email).first()
        if not approver:
            raise ForbiddenError("Not an authorized approver")
        return approver

    # ------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------

    def resolve_approver_email(self, step: ApprovalStep) -> Tuple[str, Optional[Approver]]:
        """Approver by exact name, then by role, then the configured fallback."""
        approver = None
        if step.approver_name:
            approver = self.db.query(Approver).filter(Approver.name == step.approver_name).first()
        if not approver and step.role:
            logger.info(
                "Approver not found by name, trying role",
                approver_name=step.approver_name,
                role=step.role,
            )
            approver = self.db.query(Approver).filter(Approver.role == step.role).first()
        if approver:
            return approver.email, approver

        logger.warning(
            "No approver resolved for step, using fallback address",
            step_id=step.id,
            approver_name=step.approver_name,
            role=step.role,
            fallback=self.settings.approval_fallback_email,
        )
        return self.settings.approval_fallback_email, None

    def build_links(self, request_id: int, step_id: int) -> Tuple[str, str]:
        token = quote(encode_token(request_id, step_id), safe="")
        base = self.settings.base_url.rstrip("/")
        approve_link = f"{base}/approval/verify?token={token}"
        reject_link = f"{approve_link}&action=reject"
        return approve_link, reject_link

    def _notify(self, request: ProcurementRequest, step: ApprovalStep) -> Notification:
        email, approver = self.resolve_approver_email(step)
        approve_link, reject_link = self.build_links(request.id, step.id)
        name = step.approver_name or (approver.name if approver else "Approver")

        try:
            sent = self.notifier.send(
                email,
                f"Approval Required: {request.title}",
                approval_email(name, request.title, approve_link, reject_link),
            )
        except Exception as e:
            logger.error("Approval notification failed", error=e, request_id=request.id, step_id=step.id, to=email)
            sent = False

        if not sent:
            logger.warning("Approval email not delivered", request_id=request.id, step_id=step.id, to=email)
        logger.debug("Approval link issued", step_id=step.id, approve_link=approve_link)
        return Notification(
            to=email,
            sent=sent,
            approve_link=approve_link,
            reject_link=reject_link,
            fallback=approver is None,
        )

"""
Award initiation and approval for a BRFQ.

The award workflow is a singleton rule set. Initiating an award evaluates
those rules against the award: when none fire the award is approved at once
and the BRFQ is marked awarded; otherwise the award waits for an explicit
approval. Every transition writes an AwardApprovalHistory row.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..logging_config import workflow_logger as logger
from ..models.award import Award, AwardApprovalHistory, AwardStatus, AwardWinner, AwardWorkflow
from ..models.brfq import BRFQ
from .errors import NotFoundError, ValidationFailed
from .modifications import to_number

WORKFLOW_NAME = "default_award_workflow"

DEFAULT_RULES = [
    {
        "id": "value_threshold",
        "type": "value_threshold",
        "value": 50000,
        "description": "Awards > 50k require approval",
    },
]


@dataclass
class AwardResult:
    award: Award
    approved: bool
    message: str
    warnings: List[str] = field(default_factory=list)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _categories(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(c) for c in raw]
    if isinstance(raw, str):
        return [c.strip() for c in raw.split(",") if c.strip()]
    return []


def evaluate_rules(
    rules: Any,
    estimated_value: Optional[float],
    split_award: bool,
    supplier_count: int,
    brfq_categories: Optional[List[str]] = None,
) -> List[str]:
    """Return one message per rule the award trips. Unknown rule types are ignored."""
    messages = []
    value = estimated_value or 0
    brfq_categories = brfq_categories or []

    for rule in rules if isinstance(rules, list) else []:
        if not isinstance(rule, dict):
            continue
        kind = str(rule.get("type") or "")
        try:
            threshold = float(rule.get("value") or 0)
        except (TypeError, ValueError):
            threshold = 0

        if kind == "value_threshold" and value > threshold:
            messages.append(f"Estimated award value {value:g} exceeds threshold {threshold:g}.")

        elif kind == "category_threshold":
            categories = _categories(rule.get("categories"))
            if categories and any(c in categories for c in brfq_categories) and value > threshold:
                messages.append(f"Category-specific threshold exceeded for categories: {', '.join(categories)}.")

        elif kind == "require_higher_approval_on_split" and split_award:
            messages.append(f"Split award to {supplier_count} suppliers requires higher-level approval.")

    return messages


def parse_winners(raw: Any) -> List[Dict[str, Any]]:
    """Accept supplierId or supplier_id; entries without a supplier are dropped."""
    winners = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        supplier_id = str(entry.get("supplierId") or entry.get("supplier_id") or "").strip()
        if not supplier_id:
            continue
        winners.append({"supplier_id": supplier_id, "amount": to_number(entry.get("amount"), "amount")})
    return winners


class AwardService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------
    # Workflow configuration
    # ------------------------------------------------------------

    def get_workflow(self) -> Dict[str, Any]:
        workflow = self.db.query(AwardWorkflow).filter(AwardWorkflow.name == WORKFLOW_NAME).first()
        if not workflow:
            return {"rules": list(DEFAULT_RULES), "notification_mapping": {}}
        config = workflow.config if isinstance(workflow.config, dict) else {}
        rules = config.get("rules")
        mapping = config.get("notification_mapping")
        return {
            "rules": rules if isinstance(rules, list) else [],
            "notification_mapping": mapping if isinstance(mapping, dict) else {},
        }

    def save_workflow(self, rules: List[Dict[str, Any]], notification_mapping: Dict[str, Any], saved_by: str = "system"):
        workflow = self.db.query(AwardWorkflow).filter(AwardWorkflow.name == WORKFLOW_NAME).first()
        config = {"rules": list(rules or []), "notification_mapping": dict(notification_mapping or {})}
        if workflow:
            workflow.config = config
        else:
            workflow = AwardWorkflow(
                name=WORKFLOW_NAME,
                description="Award workflow config",
                config=config,
                created_by=saved_by,
            )
            self.db.add(workflow)
        self.db.commit()
        logger.info("Award workflow saved", rules=len(config["rules"]), saved_by=saved_by)
        return self.get_workflow()

    # ------------------------------------------------------------
    # Awards
    # ------------------------------------------------------------

    def initiate(
        self,
        brfq_id: int,
        supplier_ids: List[str],
        justification: Optional[str] = None,
        estimated_value: Any = None,
        split_award: bool = False,
        winners: Any = None,
        created_by: str = "system",
    ) -> AwardResult:
        supplier_ids = [str(s).strip() for s in supplier_ids or [] if str(s).strip()]
        if not supplier_ids:
            raise ValidationFailed("At least one supplier is required", {"field": "supplierIds"})

        brfq = self.db.get(BRFQ, brfq_id)
        if not brfq:
            raise NotFoundError("BRFQ", brfq_id)

        value = to_number(estimated_value, "estimatedValue")
        parsed_winners = parse_winners(winners)
        triggered = evaluate_rules(
            self.get_workflow()["rules"],
            value,
            bool(split_award),
            len(supplier_ids),
            _categories(brfq.categories),
        )

        now = _now()
        award = Award(
            brfq_id=brfq.id,
            supplier_id=supplier_ids[0],
            justification=justification or "",
            estimated_value=value,
            split_award=bool(split_award),
            created_by=created_by,
        )
        award.winners = [AwardWinner(**w) for w in parsed_winners]

        try:
            if triggered:
                award.status = AwardStatus.PENDING
                award.history = [AwardApprovalHistory(
                    action="requested",
                    by_user=created_by,
                    note=justification,
                    details={"triggered": triggered},
                    created_at=now,
                )]
            else:
                award.status = AwardStatus.APPROVED
                award.approved_by = "system"
                award.approved_at = now
                award.history = [AwardApprovalHistory(
                    action="approved",
                    by_user="system",
                    details={"auto": True},
                    created_at=now,
                )]
                self._mark_awarded(brfq, "system", now)
            self.db.add(award)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(award)
        logger.info(
            "Award initiated",
            award_id=award.id,
            brfq_id=brfq.id,
            status=award.status,
            triggered=len(triggered),
        )
        if triggered:
            return AwardResult(award, False, "Approval workflow started.", triggered)
        return AwardResult(award, True, "Award auto-approved")

    def approve(self, award_id: int, approver: Optional[str] = None, note: Optional[str] = None, winners: Any = None) -> AwardResult:
        award = self.db.get(Award, award_id)
        if not award:
            raise NotFoundError("Award", award_id)
        if award.status == AwardStatus.APPROVED:
            return AwardResult(award, True, "Already approved")

        approver = approver or "system"
        parsed_winners = parse_winners(winners)
        now = _now()
        try:
            for w in parsed_winners:
                award.winners.append(AwardWinner(**w))
            award.status = AwardStatus.APPROVED
            award.approved_by = approver
            award.approved_at = now
            award.history.append(AwardApprovalHistory(action="approved", by_user=approver, note=note, created_at=now))
            if award.brfq:
                self._mark_awarded(award.brfq, approver, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(award)
        logger.info("Award approved", award_id=award.id, brfq_id=award.brfq_id, approver=approver)
        return AwardResult(award, True, "Award approved")

    def for_brfq(self, brfq_id: int) -> List[Award]:
        return self.db.query(Award).filter(Award.brfq_id == brfq_id).order_by(Award.id).all()

    def _mark_awarded(self, brfq: BRFQ, by: str, now: datetime):
        brfq.status = "awarded"
        brfq.approval_status = "approved"
        brfq.approved_at = now
        brfq.approved_by = by

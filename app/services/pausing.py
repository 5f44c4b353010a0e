"""
Pausing and resuming a BRFQ.

A pause takes effect immediately and is logged as a PauseAction. Resuming
restores the status the BRFQ would otherwise have: published, approved, or
draft. Suppliers and the internal recipients from settings are told
afterwards, best-effort.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..logging_config import workflow_logger as logger
from ..models.brfq import BRFQ
from ..models.pause import PauseAction, PauseReason
from .errors import NotFoundError, StepConflictError, ValidationFailed
from .modifications import resolve_supplier_emails
from .notifications import EmailNotifier, notify_all, supplier_paused_email, supplier_resumed_email

PAUSED = "paused"


@dataclass
class PauseResult:
    brfq: BRFQ
    action: PauseAction
    notified: Dict[str, bool] = field(default_factory=dict)


def resumed_status(brfq: BRFQ) -> str:
    if brfq.published:
        return "published"
    if brfq.approval_status == "approved":
        return "approved"
    if brfq.status and brfq.status != PAUSED:
        return brfq.status
    return "draft"


class PauseService:
    def __init__(self, db: Session, notifier: EmailNotifier, settings: Optional[Settings] = None):
        self.db = db
        self.notifier = notifier
        self.settings = settings or get_settings()

    def _brfq(self, brfq_id: int) -> BRFQ:
        brfq = self.db.get(BRFQ, brfq_id)
        if not brfq:
            raise NotFoundError("BRFQ", brfq_id)
        return brfq

    def pause(
        self,
        brfq_id: int,
        performed_by: Optional[str] = None,
        reason_id: Optional[int] = None,
        reason_text: Optional[str] = None,
        notify_suppliers: bool = True,
        notify_internal: bool = True,
    ) -> PauseResult:
        brfq = self._brfq(brfq_id)
        if brfq.status == PAUSED:
            raise StepConflictError("BRFQ is already paused")

        reason = None
        if reason_id is not None:
            reason = self.db.get(PauseReason, reason_id)
            if not reason or not reason.active:
                raise ValidationFailed("Unknown pause reason", {"reason_id": reason_id})

        performed_by = performed_by or "unknown_user"
        action = PauseAction(
            brfq_id=brfq.id,
            action="paused",
            performed_by=performed_by,
            reason_id=reason.id if reason else None,
            reason_text=reason_text or (reason.label if reason else None),
            notify_suppliers=notify_suppliers,
        )
        try:
            brfq.status = PAUSED
            self.db.add(action)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(action)
        logger.info("BRFQ paused", brfq_id=brfq.id, performed_by=performed_by, reason=action.reason_text)

        notified = self._notify(
            brfq,
            notify_suppliers,
            notify_internal,
            f"RFQ {brfq.rfq_id} paused",
            supplier_paused_email(brfq.title, performed_by, action.reason_text),
        )
        return PauseResult(brfq=brfq, action=action, notified=notified)

    def resume(
        self,
        brfq_id: int,
        performed_by: Optional[str] = None,
        notify_suppliers: bool = True,
        notify_internal: bool = True,
    ) -> PauseResult:
        brfq = self._brfq(brfq_id)
        if brfq.status != PAUSED:
            raise StepConflictError("BRFQ is not paused")

        performed_by = performed_by or "unknown_user"
        action = PauseAction(
            brfq_id=brfq.id,
            action="resumed",
            performed_by=performed_by,
            notify_suppliers=notify_suppliers,
        )
        try:
            brfq.status = resumed_status(brfq)
            self.db.add(action)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(action)
        logger.info("BRFQ resumed", brfq_id=brfq.id, status=brfq.status, performed_by=performed_by)

        notified = self._notify(
            brfq,
            notify_suppliers,
            notify_internal,
            f"RFQ {brfq.rfq_id} resumed",
            supplier_resumed_email(brfq.title, performed_by),
        )
        return PauseResult(brfq=brfq, action=action, notified=notified)

    def history(self, brfq_id: int) -> List[PauseAction]:
        return self._brfq(brfq_id).pause_actions

    def _notify(self, brfq: BRFQ, suppliers: bool, internal: bool, subject: str, html: str) -> Dict[str, bool]:
        recipients = []
        if suppliers:
            recipients.extend(resolve_supplier_emails(self.db, brfq.suppliers_selected))
        if internal:
            recipients.extend(self.settings.pause_notify_emails)
        return notify_all(self.notifier, recipients, subject, html)

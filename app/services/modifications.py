"""
BRFQ modification requests and BRFQ approval.

Approving a modification applies the ``to`` side of its field diff onto the
BRFQ, optionally replaces the whole item list, and records the decision, all
in one transaction. The diff is read and validated before that transaction
starts, so a bad value leaves the request pending. Supplier notifications run
afterwards and never undo it.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..logging_config import workflow_logger as logger
from ..models.brfq import BRFQ, RequestItem
from ..models.modification import ModificationHistory, ModificationRequest
from ..models.supplier import Supplier
from .errors import NotFoundError, StepConflictError, ValidationFailed
from .notifications import EmailNotifier, notify_all, rfq_published_email, supplier_update_email
from .tokens import encode_quote_token

# Fields a modification may overwrite directly from summary[key]["to"],
# mapped to the camelCase key clients may send instead
ALLOWED_FIELDS = {
    "title": "title",
    "currency": "currency",
    "incoterms": "incoterms",
    "carrier": "carrier",
    "notes_to_supplier": "notesToSupplier",
    "target_price": "targetPrice",
    "status": "status",
}
NUMERIC_FIELDS = ("target_price",)


@dataclass
class ModificationResult:
    modification: ModificationRequest
    brfq: Optional[BRFQ] = None
    notified: Dict[str, bool] = field(default_factory=dict)


@dataclass
class SupplierEmailResult:
    supplier_id: str
    email: Optional[str]
    sent: bool
    error: Optional[str] = None


@dataclass
class SummaryChanges:
    """The ``to`` side of a modification summary, already validated."""

    fields: Dict[str, Any] = field(default_factory=dict)
    close_date: Optional[datetime] = None
    publish: Optional[bool] = None
    items: Optional[List[Dict[str, Any]]] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def to_number(value: Any, field_name: str) -> Optional[float]:
    """Coerce a diff value to float; blanks become None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationFailed("Invalid numeric value", {"field": field_name})
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationFailed("Invalid numeric value", {"field": field_name})


def _diff(summary: Dict[str, Any], key: str, alias: Optional[str] = None) -> Optional[Dict[str, Any]]:
    for name in (key, alias):
        entry = summary.get(name) if name else None
        if isinstance(entry, dict) and "to" in entry:
            return entry
    return None


def read_summary(summary: Dict[str, Any]) -> SummaryChanges:
    """Pick the applicable changes out of a diff, accepting snake_case or camelCase keys."""
    changes = SummaryChanges()

    for key, alias in ALLOWED_FIELDS.items():
        diff = _diff(summary, key, alias)
        if diff is None:
            continue
        value = diff["to"]
        if key in NUMERIC_FIELDS:
            value = to_number(value, key)
        changes.fields[key] = value

    close = _diff(summary, "close_date_time", "closeDateTime")
    if close is not None:
        changes.close_date = _parse_datetime(close["to"])

    publish = _diff(summary, "publish_on_approval", "publishOnApproval")
    if publish is not None:
        changes.publish = bool(publish["to"])

    items = _diff(summary, "items")
    if items is not None and isinstance(items["to"], list):
        changes.items = [it for it in items["to"] if isinstance(it, dict)]

    return changes


def normalize_identifiers(raw: Any) -> List[str]:
    """Flatten suppliers_selected (ids, emails or objects) into strings."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = [raw]

    out = []
    for item in raw:
        if item is None:
            continue
        if isinstance(item, dict):
            value = item.get("email") or item.get("registration_email") or item.get("registrationEmail") or item.get("id")
        else:
            value = item
        value = str(value).strip() if value is not None else ""
        if value:
            out.append(value)
    return out


def resolve_supplier_emails(db: Session, suppliers_selected: Any) -> List[str]:
    """Direct emails pass through; ids are looked up. Deduplicated."""
    identifiers = normalize_identifiers(suppliers_selected)
    emails = [s for s in identifiers if "@" in s]
    ids = [int(s) for s in identifiers if "@" not in s and s.isdigit()]

    if ids:
        rows = db.query(Supplier).filter(Supplier.id.in_(ids)).all()
        emails.extend(r.registration_email for r in rows if r.registration_email)
    return list(dict.fromkeys(emails))


def item_from_dict(brfq_id: int, data: Dict[str, Any]) -> RequestItem:
    return RequestItem(
        brfq_id=brfq_id,
        internal_part_no=data.get("internal_part_no") or data.get("internalPartNo"),
        manufacturer=data.get("manufacturer"),
        mfg_part_no=data.get("mfg_part_no") or data.get("mfgPartNo"),
        description=data.get("description") or data.get("item_description") or "",
        uom=data.get("uom") or data.get("UOM") or "EA",
        quantity=to_number(data.get("quantity", data.get("qty")), "quantity") or 0,
    )


class ModificationService:
    def __init__(self, db: Session, notifier: EmailNotifier, settings: Optional[Settings] = None):
        self.db = db
        self.notifier = notifier
        self.settings = settings or get_settings()

    # ------------------------------------------------------------
    # Modification requests
    # ------------------------------------------------------------

    def create(
        self,
        brfq_id: int,
        requested_by: Optional[str],
        requested_fields: Iterable[Any],
        summary: Optional[Dict[str, Any]],
        note: Optional[str],
    ) -> ModificationRequest:
        """Record a modification request and pause the BRFQ."""
        brfq = self.db.get(BRFQ, brfq_id)
        if not brfq:
            raise NotFoundError("BRFQ", brfq_id)

        fields = list(requested_fields or [])
        modification = ModificationRequest(
            brfq_id=brfq.id,
            requested_by=requested_by or "unknown",
            reason=note or "Modification requested",
            field=str(fields[0]) if fields else "general",
            requested_fields=fields,
            summary=summary or {},
            status="pending",
        )
        self.db.add(modification)

        brfq.published = False
        brfq.status = "modifying"
        brfq.approval_status = "modification_pending"
        self.db.commit()
        self.db.refresh(modification)

        logger.info("Modification requested", brfq_id=brfq.id, modification_id=modification.id)
        return modification

    def _pending(self, modification_id: int) -> ModificationRequest:
        modification = self.db.get(ModificationRequest, modification_id)
        if not modification:
            raise NotFoundError("Modification request", modification_id)
        if modification.status != "pending":
            raise StepConflictError("Modification request not pending")
        return modification

    def approve(
        self,
        modification_id: int,
        acted_by: str = "admin",
        note: str = "",
        notify_suppliers: bool = True,
    ) -> ModificationResult:
        modification = self._pending(modification_id)
        brfq = modification.brfq
        changes = read_summary(modification.summary or {})
        new_items = None
        if changes.items is not None:
            new_items = [item_from_dict(brfq.id, it) for it in changes.items]
        now = _now()

        try:
            self._apply_changes(brfq, changes, acted_by, now)
            if new_items is not None:
                # Replaces the whole list; delete-orphan removes the old rows
                brfq.items = new_items

            modification.status = "approved"
            modification.processed_by = acted_by
            modification.processed_at = now
            self.db.add(ModificationHistory(
                modification_id=modification.id,
                action="approve",
                acted_by=acted_by,
                note=note,
                acted_at=now,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(brfq)
        logger.info(
            "Modification approved and applied",
            modification_id=modification.id,
            brfq_id=brfq.id,
            acted_by=acted_by,
        )

        notified = {}
        if notify_suppliers:
            emails = self.resolve_supplier_emails(brfq.suppliers_selected)
            notified = notify_all(
                self.notifier,
                emails,
                f"RFQ Updated: {brfq.rfq_id}",
                supplier_update_email(brfq.rfq_id, brfq.title),
            )
        return ModificationResult(modification=modification, brfq=brfq, notified=notified)

    def _apply_changes(self, brfq: BRFQ, changes: SummaryChanges, acted_by: str, now: datetime):
        if changes.close_date:
            brfq.close_date = changes.close_date

        for key, value in changes.fields.items():
            setattr(brfq, key, value)

        if changes.publish is not None:
            brfq.publish_on_approval = changes.publish
            if changes.publish:
                brfq.published = True

        brfq.status = "approved"
        brfq.approval_status = "approved"
        brfq.approved_at = now
        brfq.approved_by = acted_by

    def reject(self, modification_id: int, acted_by: str = "admin", note: str = "") -> ModificationResult:
        modification = self._pending(modification_id)
        now = _now()
        try:
            modification.status = "rejected"
            modification.processed_by = acted_by
            modification.processed_at = now
            self.db.add(ModificationHistory(
                modification_id=modification.id,
                action="reject",
                acted_by=acted_by,
                note=note,
                acted_at=now,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(modification)
        logger.info("Modification rejected", modification_id=modification.id, acted_by=acted_by)
        return ModificationResult(modification=modification, brfq=modification.brfq)

    # ------------------------------------------------------------
    # Supplier resolution
    # ------------------------------------------------------------

    def resolve_supplier_emails(self, suppliers_selected: Any) -> List[str]:
        return resolve_supplier_emails(self.db, suppliers_selected)

    def supplier_email_map(self, suppliers_selected: Any) -> Dict[str, Optional[str]]:
        """supplier id -> email, preferring inline emails over the supplier table."""
        mapping: Dict[str, Optional[str]] = {}
        raw = suppliers_selected if isinstance(suppliers_selected, list) else []
        for item in raw:
            if isinstance(item, dict):
                sid = item.get("id")
                inline = item.get("email") or item.get("registration_email") or (item.get("user") or {}).get("email")
            else:
                sid, inline = item, None
            if sid is None or "@" in str(sid):
                continue
            sid = str(sid)
            mapping[sid] = mapping.get(sid) or inline

        missing = [int(s) for s, email in mapping.items() if not email and s.isdigit()]
        if missing:
            for row in self.db.query(Supplier).filter(Supplier.id.in_(missing)).all():
                mapping[str(row.id)] = mapping.get(str(row.id)) or row.registration_email
        return mapping

    # ------------------------------------------------------------
    # BRFQ approval
    # ------------------------------------------------------------

    def approve_brfq(
        self,
        brfq_id: int,
        approver: Optional[str] = None,
        note: Optional[str] = None,
        publish_override: Optional[bool] = None,
    ):
        brfq = self.db.get(BRFQ, brfq_id)
        if not brfq:
            raise NotFoundError("BRFQ", brfq_id)
        if brfq.approval_status not in (None, "none", "pending"):
            raise StepConflictError(f"Cannot approve BRFQ with status {brfq.approval_status}")

        should_publish = publish_override if publish_override is not None else bool(brfq.publish_on_approval)
        brfq.approval_status = "approved"
        brfq.approved_by = approver or "admin"
        brfq.approved_at = _now()
        brfq.approval_note = note
        if should_publish:
            brfq.published = True
            brfq.status = "approved"
        self.db.commit()
        self.db.refresh(brfq)
        logger.info("BRFQ approved", brfq_id=brfq.id, published=should_publish)

        base = self.settings.base_url.rstrip("/")
        close_date = brfq.close_date.isoformat() if brfq.close_date else None
        subject = f"New RFQ published: {brfq.title}"

        results = []
        outgoing = []
        for sid, email in self.supplier_email_map(brfq.suppliers_selected).items():
            if not email:
                results.append(SupplierEmailResult(sid, None, False, "No email found for supplier id"))
                continue
            quote_token = encode_quote_token(brfq.id, sid)
            html = rfq_published_email(
                brfq.title,
                close_date,
                brfq.notes_to_supplier or "",
                f"{base}/supplier/submit-quote?token={quote_token}",
            )
            outgoing.append((sid, email, html))

        # Each supplier gets its own quote link, so these go out as one batch
        sent = self.notifier.send_batch([(email, subject, html) for _, email, html in outgoing])
        for (sid, email, _), ok in zip(outgoing, sent):
            results.append(SupplierEmailResult(sid, email, ok, None if ok else "Send failed"))
        return brfq, should_publish, results

    def reject_brfq(self, brfq_id: int, approver: Optional[str] = None, note: Optional[str] = None) -> BRFQ:
        brfq = self.db.get(BRFQ, brfq_id)
        if not brfq:
            raise NotFoundError("BRFQ", brfq_id)
        if brfq.approval_status != "pending":
            raise StepConflictError(f"Cannot reject BRFQ with status {brfq.approval_status}")

        brfq.status = "rejected"
        brfq.approval_status = "rejected"
        brfq.approved_by = approver or "admin"
        brfq.approved_at = _now()
        brfq.approval_note = note
        brfq.published = False
        self.db.commit()
        self.db.refresh(brfq)
        logger.info("BRFQ rejected", brfq_id=brfq.id)
        return brfq

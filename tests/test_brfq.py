"""
Tests for BRFQ modification requests and BRFQ approval.
"""
from unittest.mock import patch

import pytest

from app.models.brfq import RequestItem
from app.models.modification import ModificationHistory, ModificationRequest
from app.services.errors import NotFoundError, StepConflictError, ValidationFailed
from app.services.modifications import ModificationService, normalize_identifiers


@pytest.fixture
def service(db, notifier):
    return ModificationService(db, notifier)


SUMMARY = {
    "title": {"from": "Office chairs", "to": "Ergonomic office chairs"},
    "currency": {"from": "USD", "to": "EUR"},
    "target_price": {"from": None, "to": 1500.5},
    "close_date_time": {"from": None, "to": "2026-12-01T17:00:00Z"},
    "rfq_id": {"from": "RFQ-001", "to": "HACKED"},
    "items": {"to": [
        {"description": "Chair v2", "quantity": 12, "uom": "EA"},
        {"internalPartNo": "P-9", "item_description": "Footrest", "qty": "4"},
    ]},
}


class TestModificationService:
    """Applying modification requests."""

    def test_create_pauses_brfq(self, db, service, brfq):
        modification = service.create(brfq.id, "buyer@x.com", ["title"], SUMMARY, "Rename")

        assert modification.status == "pending"
        assert modification.field == "title"
        assert brfq.published is False
        assert brfq.status == "modifying"
        assert brfq.approval_status == "modification_pending"

    def test_create_for_unknown_brfq(self, service):
        with pytest.raises(NotFoundError):
            service.create(999, "buyer@x.com", [], {}, None)

    def test_approve_applies_allowed_fields(self, db, service, notifier, brfq):
        modification = service.create(brfq.id, "buyer@x.com", ["title"], SUMMARY, None)

        result = service.approve(modification.id, acted_by="admin@x.com", note="ok")

        rfq = result.brfq
        assert rfq.title == "Ergonomic office chairs"
        assert rfq.currency == "EUR"
        assert rfq.target_price == 1500.5
        assert rfq.close_date.year == 2026 and rfq.close_date.month == 12
        assert rfq.rfq_id == "RFQ-001"
        assert rfq.status == "approved"
        assert rfq.approval_status == "approved"
        assert rfq.approved_by == "admin@x.com"
        assert result.modification.status == "approved"
        assert result.modification.processed_by == "admin@x.com"
        history = db.query(ModificationHistory).one()
        assert (history.action, history.note) == ("approve", "ok")

    def test_approve_replaces_items(self, db, service, brfq):
        modification = service.create(brfq.id, "buyer@x.com", ["items"], SUMMARY, None)

        service.approve(modification.id)

        items = db.query(RequestItem).filter(RequestItem.brfq_id == brfq.id).order_by(RequestItem.id).all()
        assert [(i.description, i.quantity) for i in items] == [("Chair v2", 12), ("Footrest", 4)]
        assert items[1].internal_part_no == "P-9"

    def test_approve_without_items_keeps_items(self, db, service, brfq):
        modification = service.create(brfq.id, "buyer@x.com", ["title"], {"title": {"to": "New"}}, None)

        service.approve(modification.id)

        assert db.query(RequestItem).filter(RequestItem.brfq_id == brfq.id).count() == 2

    def test_publish_on_approval(self, db, service, brfq):
        summary = {"publish_on_approval": {"from": False, "to": True}}
        modification = service.create(brfq.id, "buyer@x.com", [], summary, None)

        result = service.approve(modification.id)

        assert result.brfq.publish_on_approval is True
        assert result.brfq.published is True

    def test_approve_accepts_camel_case_summary(self, service, brfq):
        summary = {
            "notesToSupplier": {"from": "Ergonomic only", "to": "Mesh backs"},
            "targetPrice": {"from": None, "to": "99"},
            "closeDateTime": {"from": None, "to": "2026-11-30T12:00:00Z"},
            "publishOnApproval": {"from": False, "to": True},
        }
        modification = service.create(brfq.id, "buyer@x.com", [], summary, None)

        rfq = service.approve(modification.id).brfq

        assert rfq.notes_to_supplier == "Mesh backs"
        assert rfq.target_price == 99.0
        assert (rfq.close_date.month, rfq.close_date.day) == (11, 30)
        assert rfq.publish_on_approval is True
        assert rfq.published is True

    @pytest.mark.parametrize("summary, field", [
        ({"items": {"to": [{"description": "Chair", "quantity": "ten"}]}}, "quantity"),
        ({"target_price": {"to": "abc"}}, "target_price"),
        ({"targetPrice": {"to": True}}, "target_price"),
    ])
    def test_non_numeric_value_is_rejected(self, db, service, notifier, brfq, summary, field):
        modification = service.create(brfq.id, "buyer@x.com", [], summary, None)

        with pytest.raises(ValidationFailed) as exc:
            service.approve(modification.id)

        assert exc.value.status_code == 400
        assert exc.value.details == {"field": field}
        db.expire_all()
        assert db.get(ModificationRequest, modification.id).status == "pending"
        assert db.query(RequestItem).filter(RequestItem.brfq_id == brfq.id).count() == 2
        assert notifier.sent == []

    def test_approve_notifies_suppliers(self, service, notifier, brfq):
        modification = service.create(brfq.id, "buyer@x.com", [], {}, None)

        result = service.approve(modification.id)

        assert sorted(notifier.recipients()) == ["direct@vendor.com", "rfq@globex.com", "sales@acme.com"]
        assert all(m["subject"] == "RFQ Updated: RFQ-001" for m in notifier.sent)
        assert all(result.notified.values())

    def test_notification_failure_keeps_approval(self, db, service, notifier, brfq):
        notifier.fail_for.add("sales@acme.com")
        modification = service.create(brfq.id, "buyer@x.com", [], {}, None)

        result = service.approve(modification.id)

        assert result.notified["sales@acme.com"] is False
        assert db.get(ModificationRequest, modification.id).status == "approved"

    def test_approve_without_notifications(self, service, notifier, brfq):
        modification = service.create(brfq.id, "buyer@x.com", [], {}, None)
        service.approve(modification.id, notify_suppliers=False)
        assert notifier.sent == []

    def test_reject(self, db, service, brfq):
        modification = service.create(brfq.id, "buyer@x.com", ["title"], SUMMARY, None)

        result = service.reject(modification.id, acted_by="admin@x.com", note="No")

        assert result.modification.status == "rejected"
        assert result.brfq.title == "Office chairs"
        assert db.query(ModificationHistory).one().action == "reject"

    def test_decided_modification_is_not_pending(self, service, brfq):
        modification = service.create(brfq.id, "buyer@x.com", [], {}, None)
        service.reject(modification.id)

        with pytest.raises(StepConflictError):
            service.approve(modification.id)
        with pytest.raises(StepConflictError):
            service.reject(modification.id)

    def test_unknown_modification(self, service):
        with pytest.raises(NotFoundError):
            service.approve(42)


class TestBRFQApproval:
    """Approving and rejecting a BRFQ."""

    def test_approve_publishes_and_emails(self, service, notifier, brfq, suppliers):
        rfq, published, emails = service.approve_brfq(brfq.id, "admin@x.com", "fine", publish_override=True)

        assert published is True
        assert rfq.published is True
        assert rfq.approval_status == "approved"
        assert rfq.approval_note == "fine"
        by_id = {e.supplier_id: e for e in emails}
        assert by_id[str(suppliers["acme"].id)].email == "sales@acme.com"
        assert by_id[str(suppliers["globex"].id)].sent is True
        assert all("/supplier/submit-quote?token=" in m["html"] for m in notifier.sent)
        assert all(m["subject"] == "New RFQ published: Office chairs" for m in notifier.sent)

    def test_supplier_emails_go_out_as_one_batch(self, service, notifier, brfq):
        notifier.fail_for.add("rfq@globex.com")

        with patch.object(notifier, "send_batch", wraps=notifier.send_batch) as batch:
            _, _, emails = service.approve_brfq(brfq.id)

        batch.assert_called_once()
        assert len(batch.call_args.args[0]) == 2
        by_email = {e.email: e for e in emails}
        assert by_email["sales@acme.com"].sent is True
        assert by_email["rfq@globex.com"].sent is False
        assert by_email["rfq@globex.com"].error == "Send failed"

    def test_approve_without_publishing(self, service, brfq):
        rfq, published, _ = service.approve_brfq(brfq.id)
        assert published is False
        assert rfq.published is False
        assert rfq.approved_by == "admin"

    def test_supplier_without_email_is_reported(self, db, service, brfq, suppliers):
        brfq.suppliers_selected = [suppliers["silent"].id]
        db.commit()

        _, _, emails = service.approve_brfq(brfq.id)

        assert len(emails) == 1
        assert emails[0].sent is False
        assert emails[0].error == "No email found for supplier id"

    def test_cannot_approve_twice(self, service, brfq):
        service.approve_brfq(brfq.id)
        with pytest.raises(StepConflictError):
            service.approve_brfq(brfq.id)

    def test_reject(self, service, brfq):
        rfq = service.reject_brfq(brfq.id, "admin@x.com", "Budget")
        assert rfq.status == "rejected"
        assert rfq.approval_status == "rejected"
        assert rfq.published is False

    def test_reject_requires_pending(self, db, service, brfq):
        brfq.approval_status = "none"
        db.commit()
        with pytest.raises(StepConflictError):
            service.reject_brfq(brfq.id)


class TestBRFQEndpoints:
    """HTTP surface for modifications and BRFQ approval."""

    def test_modification_round_trip(self, client, notifier, auth_headers, brfq):
        response = client.post(
            f"/api/brfq/{brfq.id}/modification-request",
            json={"requestedBy": "buyer@x.com", "requestedFields": ["title"], "summary": SUMMARY, "note": "Rename"},
        )
        assert response.status_code == 201
        modification_id = response.json()["data"]["id"]

        listed = client.get("/api/admin/modification-requests?status=pending", headers=auth_headers).json()
        assert listed["meta"]["total"] == 1
        assert listed["data"][0]["brfq"]["rfq_id"] == "RFQ-001"

        response = client.post(
            f"/api/admin/modification-requests/{modification_id}/approve",
            json={"actedBy": "admin@x.com"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["brfq"]["title"] == "Ergonomic office chairs"
        assert len(data["brfq"]["items"]) == 2
        assert data["modification"]["history"][0]["action"] == "approve"

        response = client.post(f"/api/admin/modification-requests/{modification_id}/reject", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Modification request not pending"

    def test_invalid_numeric_value_returns_400(self, client, auth_headers, brfq):
        response = client.post(
            f"/api/brfq/{brfq.id}/modification-request",
            json={"summary": {"targetPrice": {"to": "abc"}}},
        )
        modification_id = response.json()["data"]["id"]

        response = client.post(f"/api/admin/modification-requests/{modification_id}/approve", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid numeric value"

    def test_modification_for_unknown_brfq(self, client):
        response = client.post("/api/brfq/999/modification-request", json={"summary": {}})
        assert response.status_code == 404

    def test_admin_routes_require_auth(self, client, brfq):
        assert client.get("/api/admin/modification-requests").status_code == 401
        assert client.post(f"/api/admin/brfqs/{brfq.id}/approve").status_code == 401

    def test_approve_brfq_endpoint(self, client, auth_headers, brfq):
        response = client.post(
            f"/api/admin/brfqs/{brfq.id}/approve",
            json={"note": "Go", "publishOverride": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["published"] is True
        assert data["brfq"]["approved_by"] == "test@example.com"
        assert len(data["emails"]) == 2

    def test_reject_brfq_endpoint(self, client, auth_headers, brfq):
        response = client.post(f"/api/admin/brfqs/{brfq.id}/reject", json={"note": "No"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["brfq"]["status"] == "rejected"


def test_normalize_identifiers():
    raw = [1, " a@b.com ", None, {"email": "c@d.com"}, {"id": 7}, ""]
    assert normalize_identifiers(raw) == ["1", "a@b.com", "c@d.com", "7"]
    assert normalize_identifiers(None) == []
    assert normalize_identifiers("5") == ["5"]

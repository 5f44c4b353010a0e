"""
Tests for request submission and approval decision endpoints.
"""
from urllib.parse import parse_qs, urlparse

import pytest


def token_from(link):
    return parse_qs(urlparse(link).query)["token"][0]


@pytest.fixture
def submitted(client, notifier, approvers, master_template):
    """A request submitted into the Alice -> Bob workflow; returns (request_id, approve link)."""
    response = client.post("/api/requests", json={"title": "Laptops", "request_type": "RFQ"})
    assert response.status_code == 201
    request_id = response.json()["data"]["id"]

    response = client.post(f"/api/requests/{request_id}/submit")
    assert response.status_code == 200
    link = next(l for l in notifier.sent[-1]["html"].split('"') if "/approval/verify?token=" in l)
    return request_id, link


class TestSubmitEndpoint:
    """POST /api/requests/{id}/submit"""

    def test_submit_returns_first_step(self, client, approvers, master_template):
        request_id = client.post("/api/requests", json={"title": "Laptops"}).json()["data"]["id"]

        response = client.post(f"/api/requests/{request_id}/submit")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Submitted for approval"
        assert body["data"]["request"]["status"] == "pending_approval"
        assert body["data"]["step"]["approver_name"] == "Alice"
        assert body["data"]["step"]["status"] == "PENDING"
        assert body["data"]["notification"]["to"] == "alice@x.com"

    def test_submit_without_workflow_auto_approves(self, client, notifier):
        request_id = client.post("/api/requests", json={"title": "Pens"}).json()["data"]["id"]

        response = client.post(f"/api/requests/{request_id}/submit")

        assert response.status_code == 200
        assert response.json()["message"] == "Auto-approved (no workflow defined)"
        assert response.json()["data"]["request"]["status"] == "approved"
        assert notifier.sent == []

    def test_submit_unknown_request(self, client):
        response = client.post("/api/requests/999/submit")
        assert response.status_code == 404
        body = response.json()
        assert body["ok"] is False
        assert body["error_code"] == "NOT_FOUND"
        assert "Request" in body["error"]

    def test_approval_view(self, client, submitted):
        request_id, _ = submitted

        response = client.get(f"/api/requests/{request_id}/approval")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [s["status"] for s in data["steps"]] == ["PENDING", "WAITING"]
        assert data["history"] == []
        assert data["request_id"] == request_id
        assert data["approval_id"] is not None

    def test_approval_view_before_submit(self, client):
        request_id = client.post("/api/requests", json={"title": "Desks"}).json()["data"]["id"]

        data = client.get(f"/api/requests/{request_id}/approval").json()["data"]

        assert data["request"]["status"] == "draft"
        assert data["approval_id"] is None
        assert data["steps"] == []


class TestVerifyEndpoint:
    """Email link decisions."""

    def test_preview(self, client, submitted):
        _, link = submitted

        response = client.get("/api/approval/verify", params={"token": token_from(link), "action": "reject"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["request"]["title"] == "Laptops"
        assert data["step"]["approver_name"] == "Alice"
        assert data["decision"] == "REJECTED"
        assert data["actionable"] is True

    def test_approve_moves_to_next_step(self, client, notifier, submitted):
        request_id, link = submitted

        response = client.post("/api/approval/verify", json={"token": token_from(link), "decision": "approve"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Approved. Moved to next step."
        assert body["data"]["next_step"]["approver_name"] == "Bob"
        assert notifier.recipients()[-1] == "bob@x.com"

    def test_reject_link_action(self, client, submitted):
        request_id, link = submitted

        response = client.post(
            "/api/approval/verify?action=reject",
            json={"token": token_from(link), "comments": "Over budget"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Request Rejected"
        assert response.json()["data"]["request_status"] == "rejected"

    def test_full_chain(self, client, notifier, submitted):
        request_id, link = submitted
        client.post("/api/approval/verify", json={"token": token_from(link), "decision": "approve"})
        bob_link = next(l for l in notifier.sent[-1]["html"].split('"') if "/approval/verify?token=" in l)

        response = client.post("/api/approval/verify", json={"token": token_from(bob_link), "decision": "approve"})

        assert response.json()["message"] == "Final Approval Complete."
        view = client.get(f"/api/requests/{request_id}").json()["data"]
        assert view["status"] == "approved"

    def test_second_decision_conflicts(self, client, submitted):
        _, link = submitted
        client.post("/api/approval/verify", json={"token": token_from(link), "decision": "approve"})

        response = client.post("/api/approval/verify", json={"token": token_from(link), "decision": "reject"})

        assert response.status_code == 400
        assert response.json()["error"] == "Step is already APPROVED"
        assert response.json()["error_code"] == "STEP_NOT_PENDING"

    def test_missing_decision(self, client, submitted):
        _, link = submitted
        response = client.post("/api/approval/verify", json={"token": token_from(link)})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_invalid_token(self, client):
        response = client.post("/api/approval/verify", json={"token": "%%%", "decision": "approve"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid token"

    def test_missing_token(self, client):
        response = client.post("/api/approval/verify", json={"decision": "approve"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing or invalid fields"


class TestDashboardEndpoints:
    """Signed-in approver actions."""

    def _step_id(self, client, request_id, index=0):
        return client.get(f"/api/requests/{request_id}/approval").json()["data"]["steps"][index]["id"]

    def test_action_requires_auth(self, client, submitted):
        request_id, _ = submitted
        response = client.post("/api/approval/action", json={"stepId": self._step_id(client, request_id), "action": "approve"})
        assert response.status_code == 401

    def test_action_by_assigned_approver(self, client, login_as, submitted):
        request_id, _ = submitted
        headers = login_as("alice@x.com")

        response = client.post(
            "/api/approval/action",
            json={"stepId": self._step_id(client, request_id), "action": "APPROVED"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Approved. Moved to next step."
        step = client.get(f"/api/requests/{request_id}/approval").json()["data"]["steps"][0]
        assert step["comments"] == "Processed via Dashboard"

    def test_action_by_non_approver(self, client, auth_headers, submitted):
        request_id, _ = submitted
        response = client.post(
            "/api/approval/action",
            json={"stepId": self._step_id(client, request_id), "action": "approve"},
            headers=auth_headers,
        )
        assert response.status_code == 403
        assert response.json()["error"] == "Not an authorized approver"

    def test_action_by_wrong_approver(self, client, login_as, submitted):
        request_id, _ = submitted
        response = client.post(
            "/api/approval/action",
            json={"stepId": self._step_id(client, request_id), "action": "approve"},
            headers=login_as("bob@x.com"),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "You are not assigned to this step"

    def test_action_unknown_step(self, client, login_as, approvers):
        response = client.post(
            "/api/approval/action",
            json={"stepId": 999, "action": "approve"},
            headers=login_as("alice@x.com"),
        )
        assert response.status_code == 404

    def test_dashboard_lists_pending_steps(self, client, login_as, submitted):
        request_id, _ = submitted

        response = client.get("/api/approval/dashboard", headers=login_as("alice@x.com"))

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["approver"] == "Alice"
        assert [item["request"]["id"] for item in body["data"]] == [request_id]

    def test_dashboard_for_non_approver(self, client, auth_headers):
        response = client.get("/api/approval/dashboard", headers=auth_headers)
        assert response.status_code == 403

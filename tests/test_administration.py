"""
Tests for workflow template, approval rule and approver administration.
"""
from app.models.approver import Approver
from app.models.workflow_template import ApprovalStepTemplate


class TestWorkflowTemplate:
    """Master workflow upsert."""

    def test_get_without_template(self, client):
        response = client.get("/api/administration/workflow-template")
        assert response.status_code == 200
        assert response.json()["data"] == {"steps": []}

    def test_save_requires_auth(self, client):
        response = client.post("/api/administration/workflow-template", json={"steps": []})
        assert response.status_code == 401

    def test_save_renumbers_steps(self, client, auth_headers):
        response = client.post(
            "/api/administration/workflow-template",
            json={
                "defaultSla": "72 hrs",
                "steps": [
                    {"role": "Manager", "approverName": "Alice", "isRequired": True},
                    {"role": "Finance", "approverName": "Bob", "slaDuration": "24 hrs"},
                ],
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Master Workflow"
        assert data["default_sla"] == "72 hrs"
        assert [(s["order"], s["approver_name"]) for s in data["steps"]] == [(1, "Alice"), (2, "Bob")]
        assert data["steps"][0]["is_required"] is True
        assert data["steps"][1]["sla_duration"] == "24 hrs"

    def test_save_replaces_existing_steps(self, client, db, auth_headers, master_template):
        response = client.post(
            "/api/administration/workflow-template",
            json={"steps": [{"role": "CFO", "approver_name": "Carol"}]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == master_template.id
        assert [(s["order"], s["approver_name"]) for s in data["steps"]] == [(1, "Carol")]
        assert db.query(ApprovalStepTemplate).count() == 1

        fetched = client.get("/api/administration/workflow-template").json()["data"]
        assert [s["role"] for s in fetched["steps"]] == ["CFO"]

    def test_new_requests_use_saved_template(self, client, notifier, approvers, auth_headers):
        client.post(
            "/api/administration/workflow-template",
            json={"steps": [{"role": "Finance", "approverName": "Bob"}]},
            headers=auth_headers,
        )
        request_id = client.post("/api/requests", json={"title": "Desks"}).json()["data"]["id"]

        response = client.post(f"/api/requests/{request_id}/submit")

        assert response.json()["data"]["step"]["approver_name"] == "Bob"
        assert notifier.recipients() == ["bob@x.com"]


class TestApprovalRules:
    """BRFQ approval rule CRUD."""

    def _create(self, client, auth_headers, **overrides):
        payload = {
            "name": "IT over 10k",
            "criteria": {"minValue": 10000, "category": "IT"},
            "slaHours": 48,
            "autoPublish": True,
            "approvers": [
                {"role": "Manager", "email": "alice@x.com"},
                {"role": "Finance", "email": "bob@x.com", "isParallel": True},
            ],
        }
        payload.update(overrides)
        return client.post("/api/administration/approval-rules", json=payload, headers=auth_headers)

    def test_create_rule(self, client, auth_headers):
        response = self._create(client, auth_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "IT over 10k"
        assert data["criteria"] == {"minValue": 10000, "category": "IT"}
        assert data["auto_publish"] is True
        assert [(a["order"], a["email"]) for a in data["approvers"]] == [(1, "alice@x.com"), (2, "bob@x.com")]
        assert data["approvers"][1]["is_parallel"] is True

    def test_create_requires_name(self, client, auth_headers):
        response = self._create(client, auth_headers, name="  ")
        assert response.status_code == 400

    def test_list_and_filter(self, client, auth_headers):
        self._create(client, auth_headers)
        self._create(client, auth_headers, name="Inactive", active=False)

        all_rules = client.get("/api/administration/approval-rules", headers=auth_headers).json()["data"]
        active = client.get("/api/administration/approval-rules?active=true", headers=auth_headers).json()["data"]

        assert len(all_rules) == 2
        assert [r["name"] for r in active] == ["IT over 10k"]

    def test_update_replaces_approvers(self, client, auth_headers):
        rule_id = self._create(client, auth_headers).json()["data"]["id"]

        response = client.put(
            f"/api/administration/approval-rules/{rule_id}",
            json={"slaHours": 24, "approvers": [{"role": "CFO", "email": "carol@x.com"}]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["sla_hours"] == 24
        assert data["name"] == "IT over 10k"
        assert [a["email"] for a in data["approvers"]] == ["carol@x.com"]

    def test_update_keeps_approvers_when_omitted(self, client, auth_headers):
        rule_id = self._create(client, auth_headers).json()["data"]["id"]

        response = client.put(
            f"/api/administration/approval-rules/{rule_id}",
            json={"description": "Large IT purchases"},
            headers=auth_headers,
        )

        assert len(response.json()["data"]["approvers"]) == 2

    def test_delete_rule(self, client, auth_headers):
        rule_id = self._create(client, auth_headers).json()["data"]["id"]

        response = client.delete(f"/api/administration/approval-rules/{rule_id}", headers=auth_headers)
        assert response.status_code == 200

        response = client.get(f"/api/administration/approval-rules/{rule_id}", headers=auth_headers)
        assert response.status_code == 404


class TestApprovers:
    """Approver directory."""

    def test_create_and_list(self, client, auth_headers):
        response = client.post(
            "/api/approvers",
            json={"name": "Alice", "email": "alice@x.com", "role": "Manager"},
            headers=auth_headers,
        )
        assert response.status_code == 201

        listed = client.get("/api/approvers").json()["data"]
        assert [(a["name"], a["role"]) for a in listed] == [("Alice", "Manager")]

    def test_links_existing_user(self, client, db, auth_headers, test_user):
        response = client.post(
            "/api/approvers",
            json={"name": "Tester", "email": test_user.email, "role": "Manager"},
            headers=auth_headers,
        )
        assert response.json()["data"]["user_id"] == test_user.id

    def test_duplicate_email(self, client, auth_headers, approvers):
        response = client.post(
            "/api/approvers",
            json={"name": "Alice Again", "email": "alice@x.com", "role": "Manager"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "DUPLICATE_APPROVER"

    def test_invalid_email(self, client, auth_headers):
        response = client.post(
            "/api/approvers",
            json={"name": "Alice", "email": "not-an-email", "role": "Manager"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_delete(self, client, db, auth_headers, approvers):
        response = client.delete(f"/api/approvers/{approvers['bob'].id}", headers=auth_headers)
        assert response.status_code == 200
        assert db.query(Approver).count() == 1

        response = client.delete("/api/approvers/999", headers=auth_headers)
        assert response.status_code == 404

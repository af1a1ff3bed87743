import pytest
from fastapi.testclient import TestClient

from leadcrm.app import app
from leadcrm.repositories.crm.dependencies import get_db
from leadcrm.repositories.crm.models.lead_model import Lead
from leadcrm.services.leads.lead_service import get_lead_service
from leadcrm.services.users.auth_service import create_access_token

from tests.conftest import ADMIN, add_user, agent


def _auth(principal) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


@pytest.fixture()
def client(db, lead_service):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_lead_service] = lambda: lead_service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestAddLead:
    def test_created_lead_uses_dashboard_keys(self, client, db) -> None:
        response = client.post(
            "/add-lead",
            json={"name": "Priya", "mobile": "+91 98765 43210", "Assigned_to": " Bob "},
            headers=_auth(ADMIN),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["mobile"] == "9876543210"
        assert body["Assigned_to"] == "bob"
        assert body["createdBy"] == "admin"
        assert body["dob_locked"] is False
        assert "id" not in body

    def test_duplicate_mobile_conflict_names_existing_lead(self, client) -> None:
        first = client.post("/add-lead", json={"mobile": "9876543210"}, headers=_auth(ADMIN))

        response = client.post(
            "/add-lead", json={"mobile": "09876543210"}, headers=_auth(ADMIN)
        )

        assert response.status_code == 409
        assert response.json() == {
            "message": "Lead with this mobile number already exists",
            "lead_id": first.json()["lead_id"],
        }

    def test_business_rule_violation_is_a_bad_request(self, client) -> None:
        response = client.post("/add-lead", json={"mobile": "12345"}, headers=_auth(ADMIN))

        assert response.status_code == 400
        assert response.json() == {"message": "Mobile must be 10 digits"}

    def test_busy_lead_is_date_locked(self, client) -> None:
        response = client.post(
            "/add-lead", json={"mobile": "9876543210", "status": "Busy"}, headers=_auth(ADMIN)
        )

        body = response.json()
        assert body["dob"] == "2026-03-11T09:00:00"
        assert body["dob_locked"] is True

    def test_token_is_required(self, client) -> None:
        response = client.post("/add-lead", json={"mobile": "9876543210"})

        assert response.status_code == 401
        assert response.json() == {"message": "No token provided"}

    def test_garbage_token_is_rejected(self, client) -> None:
        response = client.get("/leads", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid or expired token"}


class TestBulkUpload:
    def test_counters_use_camel_case_keys(self, client) -> None:
        response = client.post(
            "/add-leads-bulk",
            json={"leads": [{"mobile": "9000000001"}, {"mobile": 9000000002}, {"mobile": "1"}]},
            headers=_auth(agent("asha")),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["inserted"] == 2
        assert body["skippedExisting"] == 0
        assert body["invalidCount"] == 1
        assert body["invalid"] == [
            {"row": 3, "mobile": "1", "reason": "Mobile must be 10 digits"}
        ]

    def test_malformed_rows_do_not_abort_the_upload(self, client) -> None:
        response = client.post(
            "/add-leads-bulk",
            json={"leads": [{"mobile": "9800000001"}, None, "9800000003", {"mobile": True}]},
            headers=_auth(ADMIN),
        )

        assert response.status_code == 201
        body = response.json()
        assert (body["inserted"], body["invalidCount"]) == (1, 3)
        assert [row["row"] for row in body["invalid"]] == [2, 3, 4]

    def test_nothing_valid_is_a_bad_request(self, client) -> None:
        response = client.post(
            "/add-leads-bulk", json={"leads": [{"mobile": "1"}]}, headers=_auth(ADMIN)
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No valid leads to insert"

    def test_only_existing_leads(self, client) -> None:
        client.post("/add-lead", json={"mobile": "9000000001"}, headers=_auth(ADMIN))

        response = client.post(
            "/add-leads-bulk", json={"leads": [{"mobile": "9000000001"}]}, headers=_auth(ADMIN)
        )

        assert response.status_code == 200
        assert response.json()["skippedExisting"] == 1

    def test_malformed_body(self, client) -> None:
        response = client.post(
            "/add-leads-bulk", json={"leads": "not a list"}, headers=_auth(ADMIN)
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("leads")


class TestEditAndQuery:
    def test_third_busy_reports_transfer(self, client, db) -> None:
        add_user(db, "alice")
        add_user(db, "bob")
        lead_id = client.post(
            "/add-lead", json={"mobile": "9876543210", "Assigned_to": "alice"}, headers=_auth(ADMIN)
        ).json()["lead_id"]

        for _ in range(2):
            response = client.put(
                f"/edit-lead/{lead_id}",
                json={"status": "Busy", "remarks": "no answer"},
                headers=_auth(agent("alice")),
            )
            assert response.json() == {"message": "Lead updated successfully"}

        response = client.put(
            f"/edit-lead/{lead_id}",
            json={"status": "Busy", "remarks": "no answer"},
            headers=_auth(agent("alice")),
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Lead updated and transferred to bob (Verification Call)",
            "transferredTo": "bob",
        }

        mine = client.get("/leads", headers=_auth(agent("bob"))).json()
        assert [lead["lead_id"] for lead in mine] == [lead_id]
        assert mine[0]["verification_call"] is True
        assert mine[0]["original_assigned"] == "alice"

        history = client.get(f"/follow-up/{lead_id}", headers=_auth(agent("bob"))).json()
        assert [entry["status"] for entry in history["history"]] == ["Busy"] * 3

    def test_edit_of_unknown_lead(self, client) -> None:
        response = client.put("/edit-lead/missing", json={"remarks": "x"}, headers=_auth(ADMIN))

        assert response.status_code == 404
        assert response.json() == {"message": "Lead not found"}

    def test_legacy_leads_fall_back_to_storage_id(self, client, db) -> None:
        legacy = Lead(mobile="9876543210", assigned_to="alice")
        db.add(legacy)
        db.commit()

        leads = client.get("/leads", headers=_auth(ADMIN)).json()
        assert leads[0]["lead_id"] == str(legacy.id)

        response = client.get(f"/lead/{legacy.id}", headers=_auth(agent("Alice")))
        assert response.status_code == 200
        assert response.json()["Assigned_to"] == "alice"

    def test_only_admins_delete(self, client) -> None:
        lead_id = client.post(
            "/add-lead", json={"mobile": "9876543210"}, headers=_auth(ADMIN)
        ).json()["lead_id"]

        forbidden = client.delete(f"/delete-lead/{lead_id}", headers=_auth(agent("asha")))
        deleted = client.delete(f"/delete-lead/{lead_id}", headers=_auth(ADMIN))

        assert forbidden.status_code == 403
        assert forbidden.json() == {"message": "Forbidden"}
        assert deleted.json() == {"message": "Deleted successfully"}
        assert client.get("/leads", headers=_auth(ADMIN)).json() == []

    def test_agenda_and_reconcile(self, client) -> None:
        client.post(
            "/add-lead",
            json={"mobile": "9876543210", "status": "RNR", "remarks": "ringing", "Assigned_to": "asha"},
            headers=_auth(ADMIN),
        )

        agenda = client.get("/follow-ups/agenda", headers=_auth(agent("asha"))).json()
        assert [item["mobile"] for item in agenda["tomorrow"]] == ["9876543210"]
        assert agenda["overdue"] == [] and agenda["today"] == []

        mine = client.get("/follow-ups", headers=_auth(agent("Asha"))).json()
        theirs = client.get("/follow-ups", headers=_auth(agent("ravi"))).json()
        assert [item["status"] for item in mine] == ["RNR"]
        assert "createdAt" in mine[0]
        assert theirs == []

        assert client.post("/follow-ups/reconcile", headers=_auth(agent("asha"))).status_code == 403
        report = client.post("/follow-ups/reconcile", headers=_auth(ADMIN)).json()
        assert report == {"created": 0, "updated": 1, "removed": 0}

    def test_unexpected_errors_become_500(self, client) -> None:
        class BrokenService:
            def list_for(self, db, principal):
                raise RuntimeError("database went away")

        app.dependency_overrides[get_lead_service] = lambda: BrokenService()

        response = client.get("/leads", headers=_auth(ADMIN))

        assert response.status_code == 500
        assert response.json() == {"message": "Internal Server Error"}

    def test_health(self, client) -> None:
        assert client.get("/health").json()["status"] == "ok"

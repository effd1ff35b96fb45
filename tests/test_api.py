"""HTTP endpoints under /api/v1."""

from datetime import datetime

import pytest

PASSWORD = "correct-horse"


def login(client, email):
    return client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})


@pytest.fixture
def setup(make, agency):
    admin = make.staff(agency, email="admin@acme.test", role="admin")
    manager = make.staff(agency, email="manager@acme.test", role="manager")
    agent = make.agent(agency, name="Alice", rate="10")
    caretaker = make.caretaker(agency, name="Carol", rate="10", salary_amount=20000)
    prop = make.property(agency, title="Maple Court", caretakers=[caretaker])
    lease = make.lease(prop, agents=[agent])
    make.payment(lease, 100000, datetime(2024, 2, 10))
    return {
        "admin": admin,
        "manager": manager,
        "agent_id": agent.id,
        "caretaker_id": caretaker.id,
        "property_id": prop.id,
    }


@pytest.fixture
def admin_client(client, setup):
    assert login(client, "admin@acme.test").status_code == 200
    return client


@pytest.fixture
def manager_client(client, setup):
    assert login(client, "manager@acme.test").status_code == 200
    return client


class TestAuth:
    def test_bad_credentials(self, client, setup):
        response = client.post("/api/v1/auth/login", json={"email": "admin@acme.test", "password": "nope"})
        assert response.status_code == 401
        assert response.get_json() == {"error": "Invalid credentials."}

    def test_requires_login(self, client, setup):
        response = client.post(
            f"/api/v1/agents/{setup['agent_id']}/calculate-commission", json={"paymentPeriod": "2024-02"}
        )
        assert response.status_code == 401

    def test_admin_adds_staff(self, admin_client):
        response = admin_client.post(
            "/api/v1/auth/users",
            json={"full_name": "New Hire", "email": "new@acme.test", "password": "long-enough", "role": "manager"},
        )
        assert response.status_code == 201
        assert response.get_json()["role"] == "manager"

    def test_logout(self, admin_client):
        assert admin_client.post("/api/v1/auth/logout").status_code == 200
        assert admin_client.post("/api/v1/auth/logout").status_code == 401


class TestCalculateEndpoints:
    def test_agent_calculation(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/agents/{setup['agent_id']}/calculate-commission", json={"paymentPeriod": "2024-02"}
        )
        assert response.status_code == 200
        calculation = response.get_json()["calculation"]
        assert calculation["total_rent_collected"] == 100000
        assert calculation["total_commission_amount"] == 10000
        assert calculation["lease_details"][0]["property_title"] == "Maple Court"

    def test_caretaker_calculation_with_filter(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/caretakers/{setup['caretaker_id']}/calculate-commission",
            json={"paymentPeriod": "2024-02", "properties": [setup["property_id"]]},
        )
        assert response.status_code == 200
        calculation = response.get_json()["calculation"]
        assert calculation["commission_amount"] == 10000
        assert calculation["total_amount"] == 30000

    def test_missing_period(self, manager_client, setup):
        response = manager_client.post(f"/api/v1/agents/{setup['agent_id']}/calculate-commission", json={})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Payment period is required (format: YYYY-MM)"

    def test_invalid_period(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/agents/{setup['agent_id']}/calculate-commission", json={"paymentPeriod": "2024-13"}
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "Month must be between 01 and 12"

    def test_properties_must_be_a_list(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/agents/{setup['agent_id']}/calculate-commission",
            json={"paymentPeriod": "2024-02", "properties": "all"},
        )
        assert response.status_code == 400

    def test_agent_from_another_agency_is_not_found(self, manager_client, make):
        other = make.agency(name="Elsewhere")
        stranger = make.agent(other, name="Stranger")
        response = manager_client.post(
            f"/api/v1/agents/{stranger.id}/calculate-commission", json={"paymentPeriod": "2024-02"}
        )
        assert response.status_code == 404
        assert response.get_json()["error"] == "Agent not found."


class TestPayoutEndpoints:
    def test_agent_auto_payment_then_conflict(self, admin_client, setup):
        url = f"/api/v1/agents/{setup['agent_id']}/auto-commission-payment"
        first = admin_client.post(url, json={"paymentPeriod": "2024-02"})
        assert first.status_code == 201
        body = first.get_json()
        assert body["payment"]["status"] == "PENDING"
        assert body["payment"]["amount"] == 10000

        second = admin_client.post(url, json={"paymentPeriod": "2024-02"})
        assert second.status_code == 409
        assert "already exists" in second.get_json()["error"]

    def test_manager_cannot_create_payouts(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/agents/{setup['agent_id']}/auto-commission-payment", json={"paymentPeriod": "2024-02"}
        )
        assert response.status_code == 403

    def test_caretaker_auto_payment_and_history(self, admin_client, setup):
        created = admin_client.post(
            f"/api/v1/caretakers/{setup['caretaker_id']}/auto-payment", json={"paymentPeriod": "2024-02"}
        )
        assert created.status_code == 201
        assert created.get_json()["payment"]["amount"] == 30000

        history = admin_client.get(f"/api/v1/caretakers/{setup['caretaker_id']}/payments?period=2024-02")
        assert history.status_code == 200
        body = history.get_json()
        assert body["pagination"]["total"] == 1
        assert body["payments"][0]["salary_amount"] == 20000

    def test_bulk_agents(self, admin_client, setup):
        response = admin_client.post("/api/v1/agents/bulk-commission-payments", json={"paymentPeriod": "2024-02"})
        assert response.status_code == 200
        results = response.get_json()["results"]
        assert results["total_processed"] == 1
        assert results["total_amount"] == 10000

    def test_bulk_caretakers_rejects_bad_period(self, admin_client, setup):
        response = admin_client.post("/api/v1/caretakers/bulk-commission-payments", json={"paymentPeriod": "2031-01"})
        assert response.status_code == 400

    def test_status_update_and_receipt(self, admin_client, setup):
        created = admin_client.post(
            f"/api/v1/agents/{setup['agent_id']}/auto-commission-payment", json={"paymentPeriod": "2024-02"}
        )
        payment_id = created.get_json()["payment"]["id"]

        approved = admin_client.patch(
            f"/api/v1/commission-payments/agent/{payment_id}/status", json={"status": "approved"}
        )
        assert approved.status_code == 200
        assert approved.get_json()["payment"]["status"] == "APPROVED"

        invalid = admin_client.patch(
            f"/api/v1/commission-payments/agent/{payment_id}/status", json={"status": "PENDING"}
        )
        assert invalid.status_code == 400

        receipt = admin_client.get(f"/api/v1/commission-payments/agent/{payment_id}/receipt")
        assert receipt.status_code == 200
        assert receipt.get_json()["receipt"]["receipt_number"] == f"AC-{payment_id:08d}"


    def test_manual_payment_delete_and_replace(self, admin_client, setup):
        url = f"/api/v1/caretakers/{setup['caretaker_id']}/payments"
        body = {"paymentPeriod": "2024-03", "commissionAmount": 500, "referenceNumber": "BANK-7"}

        created = admin_client.post(url, json=body)
        assert created.status_code == 201
        payment = created.get_json()["payment"]
        assert payment["amount"] == 20500
        assert payment["method"] == "MANUAL"
        assert admin_client.post(url, json=body).status_code == 409

        deleted = admin_client.delete(f"/api/v1/commission-payments/caretaker/{payment['id']}")
        assert deleted.status_code == 200
        assert admin_client.post(url, json=body).status_code == 201

    def test_manual_agent_payment_requires_admin(self, manager_client, setup):
        response = manager_client.post(
            f"/api/v1/agents/{setup['agent_id']}/commission-payments", json={"paymentPeriod": "2024-03", "amount": 1}
        )
        assert response.status_code == 403

    def test_completed_payment_cannot_be_deleted(self, admin_client, setup):
        created = admin_client.post(
            f"/api/v1/agents/{setup['agent_id']}/commission-payments", json={"paymentPeriod": "2024-03", "amount": 900}
        )
        payment_id = created.get_json()["payment"]["id"]
        status_url = f"/api/v1/commission-payments/agent/{payment_id}/status"
        admin_client.patch(status_url, json={"status": "APPROVED"})
        admin_client.patch(status_url, json={"status": "COMPLETED"})

        response = admin_client.delete(f"/api/v1/commission-payments/agent/{payment_id}")
        assert response.status_code == 400


class TestSummaryEndpoints:
    def test_commission_summary(self, manager_client, setup):
        response = manager_client.get("/api/v1/commissions/summary?paymentPeriod=2024-02")
        assert response.status_code == 200
        summary = response.get_json()["summary"]["summary"]
        assert summary["total_agent_commissions"] == 10000
        assert summary["total_caretaker_commissions"] == 10000
        assert summary["total_caretaker_salaries"] == 20000
        assert summary["total_payouts"] == 40000

    def test_agency_payment_summary(self, admin_client, setup):
        admin_client.post("/api/v1/agents/bulk-commission-payments", json={"paymentPeriod": "2024-02"})
        admin_client.post("/api/v1/caretakers/bulk-commission-payments", json={"paymentPeriod": "2024-02"})

        response = admin_client.get("/api/v1/payments/agency-summary?paymentPeriod=2024-02")
        assert response.status_code == 200
        summary = response.get_json()["summary"]["summary"]
        assert summary["agent_payment_count"] == 1
        assert summary["caretaker_payment_count"] == 1
        assert summary["total_payouts"] == 40000

    def test_summary_requires_period(self, manager_client, setup):
        response = manager_client.get("/api/v1/commissions/summary")
        assert response.status_code == 400

"""Bulk payout processing for an agency."""

import logging
from datetime import datetime

import pytest

from propledger.errors import ValidationError
from propledger.extensions import db
from propledger.models import AgentCommissionPayment, CaretakerPayment


@pytest.fixture
def three_agents(make, agency):
    prop = make.property(agency)
    agents = []
    for index, rent in enumerate([100000, 200000, 300000], start=1):
        agent = make.agent(agency, name=f"Agent {index}", rate="10")
        lease = make.lease(prop, agents=[agent])
        make.payment(lease, rent, datetime(2024, 4, 15))
        agents.append(agent)
    return agents


class TestBulkAgentCommissions:
    def test_processes_every_active_agent(self, service, agency, three_agents):
        results = service.bulk_process_agent_commissions(agency.id, "2024-04")

        assert len(results["successful"]) == 3
        assert results["failed"] == []
        assert results["total_processed"] == 3
        assert results["total_amount"] == 60000
        assert AgentCommissionPayment.query.count() == 3

    def test_existing_payment_fails_only_that_agent(self, service, agency, three_agents):
        agent_one, agent_two, agent_three = three_agents
        service.auto_calculate_agent_commission_payment(agent_two.id, "2024-04")

        results = service.bulk_process_agent_commissions(agency.id, "2024-04")

        assert len(results["successful"]) == 2
        assert len(results["failed"]) == 1
        assert results["failed"][0]["agent_id"] == agent_two.id
        assert results["failed"][0]["agent_name"] == "Agent 2"
        assert "already exists" in results["failed"][0]["error"]
        assert [s["agent_id"] for s in results["successful"]] == [agent_one.id, agent_three.id]
        assert results["total_amount"] == 10000 + 30000
        assert results["total_processed"] == 2

    def test_successful_entries_reference_payments(self, service, agency, three_agents):
        results = service.bulk_process_agent_commissions(agency.id, "2024-04")
        for entry in results["successful"]:
            payment = db.session.get(AgentCommissionPayment, entry["payment_id"])
            assert payment.agent_id == entry["agent_id"]
            assert payment.amount == entry["amount"]

    def test_inactive_agents_are_skipped(self, service, make, agency, three_agents):
        make.agent(agency, name="Retired", is_active=False)
        results = service.bulk_process_agent_commissions(agency.id, "2024-04")
        assert results["total_processed"] == 3

    def test_invalid_period_aborts_before_any_work(self, service, agency, three_agents):
        with pytest.raises(ValidationError):
            service.bulk_process_agent_commissions(agency.id, "2019-04")
        assert AgentCommissionPayment.query.count() == 0

    def test_unexpected_error_fails_only_that_agent(self, service, agency, three_agents, monkeypatch, caplog):
        agent_one, agent_two, agent_three = three_agents
        create = service.auto_calculate_agent_commission_payment

        def flaky(agent_id, payment_period, properties=None):
            if agent_id == agent_two.id:
                raise RuntimeError("driver hiccup")
            return create(agent_id, payment_period, properties)

        monkeypatch.setattr(service, "auto_calculate_agent_commission_payment", flaky)
        with caplog.at_level(logging.ERROR, logger="propledger.services.commission_service"):
            results = service.bulk_process_agent_commissions(agency.id, "2024-04")

        assert [s["agent_id"] for s in results["successful"]] == [agent_one.id, agent_three.id]
        assert results["failed"] == [
            {"agent_id": agent_two.id, "agent_name": "Agent 2", "error": "Unexpected error while creating payment."}
        ]
        assert results["total_processed"] == 2
        assert AgentCommissionPayment.query.count() == 2
        assert any(record.exc_info for record in caplog.records)

    def test_unsupported_commission_type_is_reported(self, service, make, agency, three_agents):
        odd = make.agent(agency, name="Odd", commission_type="TIERED")
        results = service.bulk_process_agent_commissions(agency.id, "2024-04")

        assert [f["agent_id"] for f in results["failed"]] == [odd.id]
        assert results["total_processed"] == 3


class TestBulkCaretakerCommissions:
    def test_partial_failure(self, service, make, agency):
        first = make.caretaker(agency, name="First", salary_amount=10000)
        second = make.caretaker(agency, name="Second", rate="20", commission_type="FLAT_RATE")
        service.auto_calculate_caretaker_payment(first.id, "2024-04")

        results = service.bulk_process_caretaker_commissions(agency.id, "2024-04")

        assert [f["caretaker_id"] for f in results["failed"]] == [first.id]
        assert results["successful"][0]["caretaker_id"] == second.id
        assert results["successful"][0]["amount"] == 2000
        assert results["total_amount"] == 2000
        assert CaretakerPayment.query.count() == 2

    def test_invalid_period(self, service, agency):
        with pytest.raises(ValidationError, match="Month must be between 01 and 12"):
            service.bulk_process_caretaker_commissions(agency.id, "2024-13")


class TestAgencyPaymentSummary:
    def test_reports_committed_ledger(self, service, make, agency, three_agents):
        caretaker = make.caretaker(agency, name="Keeper", salary_amount=25000, rate="30", commission_type="FLAT_RATE")
        service.bulk_process_agent_commissions(agency.id, "2024-04")
        service.auto_calculate_caretaker_payment(caretaker.id, "2024-04")

        report = service.get_agency_payment_summary(agency.id, "2024-04")

        totals = report["summary"]
        assert totals["total_agent_commissions"] == 60000
        assert totals["total_caretaker_payments"] == 28000
        assert totals["total_caretaker_salaries"] == 25000
        assert totals["total_caretaker_commissions"] == 3000
        assert totals["total_payouts"] == 88000
        assert totals["agent_payment_count"] == 3
        assert totals["caretaker_payment_count"] == 1
        assert report["caretaker_payments"][0]["caretaker_name"] == "Keeper"
        assert {p["status"] for p in report["agent_payments"]} == {"PENDING"}

    def test_ignores_other_periods_and_agencies(self, service, make, agency, three_agents):
        service.bulk_process_agent_commissions(agency.id, "2024-03")
        other = make.agency(name="Elsewhere")

        assert service.get_agency_payment_summary(agency.id, "2024-04")["summary"]["agent_payment_count"] == 0
        assert service.get_agency_payment_summary(other.id, "2024-03")["summary"]["agent_payment_count"] == 0

    def test_validates_period(self, service, agency):
        with pytest.raises(ValidationError):
            service.get_agency_payment_summary(agency.id, "2024-4")

"""Shared pytest fixtures and data builders."""

from datetime import date
from decimal import Decimal

import pytest

from propledger import create_app
from propledger.extensions import db
from propledger.models import (
    Agency,
    Agent,
    AgentLease,
    Caretaker,
    Lease,
    Property,
    PropertyCaretaker,
    RentPayment,
    Unit,
)
from propledger.services import AuthService, CommissionService


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return CommissionService.from_config(app.config)


class Builder:
    """Creates committed rows with sensible defaults."""

    def agency(self, name="Acme Lettings"):
        return self._save(Agency(name=name))

    def property(self, agency, title="Maple Court", caretakers=()):
        prop = self._save(Property(agency_id=agency.id, title=title))
        for caretaker in caretakers:
            self._save(PropertyCaretaker(property_id=prop.id, caretaker_id=caretaker.id))
        return prop

    def unit(self, prop, unit_number="A1"):
        return self._save(Unit(property_id=prop.id, unit_number=unit_number))

    def lease(self, prop, unit=None, start=date(2023, 1, 1), end=None, agents=()):
        lease = self._save(
            Lease(
                property_id=prop.id,
                unit_id=unit.id if unit else None,
                rent_amount=50000,
                start_date=start,
                end_date=end,
            )
        )
        for agent in agents:
            self._save(AgentLease(agent_id=agent.id, lease_id=lease.id))
        return lease

    def payment(self, lease, amount, paid_at):
        return self._save(RentPayment(lease_id=lease.id, amount=amount, paid_at=paid_at))

    def agent(self, agency, name="Grace Agent", rate="10", commission_type="PERCENTAGE", is_active=True):
        return self._save(
            Agent(
                agency_id=agency.id,
                name=name,
                commission_rate=Decimal(rate),
                commission_type=commission_type,
                is_active=is_active,
            )
        )

    def caretaker(
        self,
        agency,
        name="Joe Caretaker",
        rate="10",
        commission_type="PERCENTAGE",
        payment_type="SALARY_PLUS_COMMISSION",
        salary_amount=None,
    ):
        return self._save(
            Caretaker(
                agency_id=agency.id,
                name=name,
                commission_rate=Decimal(rate),
                commission_type=commission_type,
                payment_type=payment_type,
                salary_amount=salary_amount,
            )
        )

    def staff(self, agency, email="admin@acme.test", role="admin", password="correct-horse"):
        return AuthService.register_user(
            agency_id=agency.id,
            full_name="Agency Admin",
            email=email,
            password=password,
            role=role,
        )

    @staticmethod
    def _save(obj):
        db.session.add(obj)
        db.session.commit()
        return obj


@pytest.fixture
def make(app):
    return Builder()


@pytest.fixture
def agency(make):
    return make.agency()

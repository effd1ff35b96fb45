"""Commission calculation and payout creation for agents and caretakers.

Calculations are pure reads: they aggregate rent payments inside a payment
period and apply the subject's commission policy. The ``auto_*`` workflows
persist one ``PENDING`` payout per subject and period; the unique constraint
on ``(subject_id, payment_period)`` is what makes that guarantee hold under
concurrent callers, the lookup before the insert only gives a faster and
clearer error.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from flask import current_app, has_app_context
from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from propledger.errors import AppError, DuplicatePaymentError, NotFoundError, PersistenceTimeoutError
from propledger.extensions import db
from propledger.models import (
    Agent,
    AgentCommissionPayment,
    AgentLease,
    Caretaker,
    CaretakerPayment,
    Lease,
    Property,
    PropertyCaretaker,
    RentPayment,
    Unit,
)
from propledger.services.commission_policy import CommissionPolicy
from propledger.services.fanout import run_bounded
from propledger.services.payment_period import payment_period_window, validate_payment_period

DEFAULT_MAX_WORKERS = 4
DEFAULT_QUERY_TIMEOUT_SECONDS = 30.0


def _utcnow():
    return datetime.now(timezone.utc)


def _normalize_properties(properties):
    return [int(p) for p in (properties or [])]


@contextmanager
def persistence_guard():
    """Translate store timeouts into a retryable application error."""
    try:
        yield
    except PoolTimeoutError as exc:
        raise PersistenceTimeoutError("Database is busy. Try again shortly.") from exc
    except OperationalError as exc:
        message = str(getattr(exc, "orig", exc)).lower()
        if "statement timeout" in message or "canceling statement" in message:
            raise PersistenceTimeoutError("Database query timed out. Try again shortly.") from exc
        raise


class CommissionService:
    def __init__(
        self,
        logger=None,
        max_workers=DEFAULT_MAX_WORKERS,
        query_timeout=DEFAULT_QUERY_TIMEOUT_SECONDS,
        strict_types=True,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.max_workers = max_workers
        self.query_timeout = query_timeout
        self.strict_types = strict_types

    @classmethod
    def from_config(cls, config, logger=None):
        return cls(
            logger=logger,
            max_workers=int(config.get("COMMISSION_MAX_WORKERS", DEFAULT_MAX_WORKERS)),
            query_timeout=float(config.get("COMMISSION_QUERY_TIMEOUT_SECONDS", DEFAULT_QUERY_TIMEOUT_SECONDS)),
            strict_types=bool(config.get("COMMISSION_STRICT_TYPES", True)),
        )

    # Calculations

    def calculate_caretaker_commission(self, caretaker_id, payment_period, properties=None):
        try:
            with persistence_guard():
                return self._calculate_caretaker_commission(caretaker_id, payment_period, properties)
        except AppError:
            raise
        except Exception:
            self.logger.exception(
                "Error calculating caretaker commission",
                extra={"caretaker_id": caretaker_id, "payment_period": payment_period},
            )
            raise

    def _calculate_caretaker_commission(self, caretaker_id, payment_period, properties):
        start, end = payment_period_window(payment_period)
        caretaker = db.session.get(Caretaker, caretaker_id)
        if caretaker is None:
            raise NotFoundError("Caretaker not found.")
        policy = CommissionPolicy.for_subject(caretaker, strict=self.strict_types)

        property_query = (
            db.session.query(Property.id, Property.title)
            .join(PropertyCaretaker, PropertyCaretaker.property_id == Property.id)
            .filter(PropertyCaretaker.caretaker_id == caretaker.id)
        )
        property_filter = _normalize_properties(properties)
        if property_filter:
            property_query = property_query.filter(Property.id.in_(property_filter))
        managed = property_query.order_by(Property.id).all()

        lease_totals = {}
        if managed:
            rows = (
                db.session.query(
                    Lease.property_id,
                    Lease.id,
                    func.coalesce(func.sum(RentPayment.amount), 0),
                )
                .outerjoin(
                    RentPayment,
                    and_(
                        RentPayment.lease_id == Lease.id,
                        RentPayment.paid_at >= start,
                        RentPayment.paid_at <= end,
                    ),
                )
                .filter(Lease.property_id.in_([p.id for p in managed]))
                .filter(Lease.end_date.is_(None))
                .group_by(Lease.property_id, Lease.id)
                .all()
            )
            for property_id, _lease_id, collected in rows:
                lease_totals.setdefault(property_id, []).append(int(collected or 0))

        total_rent_collected = 0
        property_details = []
        for property_id, title in managed:
            per_lease = lease_totals.get(property_id, [])
            property_rent_collected = sum(per_lease)
            total_rent_collected += property_rent_collected
            property_details.append(
                {
                    "property_id": property_id,
                    "property_title": title,
                    "rent_collected": property_rent_collected,
                    "active_leases": len(per_lease),
                }
            )

        commission_amount = policy.commission_on(total_rent_collected)
        salary_amount = int(caretaker.salary_amount or 0)
        calculation = {
            "caretaker_id": caretaker.id,
            "caretaker_name": caretaker.name,
            "payment_period": payment_period,
            "payment_type": caretaker.payment_type,
            "salary_amount": salary_amount,
            "total_rent_collected": total_rent_collected,
            "commission_rate": policy.rate,
            "commission_type": policy.commission_type,
            "commission_amount": commission_amount,
            "total_amount": salary_amount + commission_amount,
            "property_details": property_details,
            "calculated_at": _utcnow().isoformat(),
        }
        self.logger.info(
            "Caretaker commission calculated",
            extra={
                "caretaker_id": caretaker.id,
                "payment_period": payment_period,
                "total_rent_collected": total_rent_collected,
                "commission_amount": commission_amount,
            },
        )
        return calculation

    def calculate_agent_commission(self, agent_id, payment_period, properties=None):
        try:
            with persistence_guard():
                return self._calculate_agent_commission(agent_id, payment_period, properties)
        except AppError:
            raise
        except Exception:
            self.logger.exception(
                "Error calculating agent commission",
                extra={"agent_id": agent_id, "payment_period": payment_period},
            )
            raise

    def _calculate_agent_commission(self, agent_id, payment_period, properties):
        start, end = payment_period_window(payment_period)
        agent = db.session.get(Agent, agent_id)
        if agent is None:
            raise NotFoundError("Agent not found.")
        policy = CommissionPolicy.for_subject(agent, strict=self.strict_types)

        query = (
            db.session.query(
                Lease.id,
                Lease.property_id,
                Property.title,
                Unit.unit_number,
                func.coalesce(func.sum(RentPayment.amount), 0),
            )
            .join(AgentLease, AgentLease.lease_id == Lease.id)
            .join(Property, Property.id == Lease.property_id)
            .outerjoin(Unit, Unit.id == Lease.unit_id)
            .outerjoin(
                RentPayment,
                and_(
                    RentPayment.lease_id == Lease.id,
                    RentPayment.paid_at >= start,
                    RentPayment.paid_at <= end,
                ),
            )
            .filter(AgentLease.agent_id == agent.id)
        )
        property_filter = _normalize_properties(properties)
        if property_filter:
            query = query.filter(Lease.property_id.in_(property_filter))
        rows = (
            query.group_by(Lease.id, Lease.property_id, Property.title, Unit.unit_number)
            .order_by(Lease.id)
            .all()
        )

        total_rent_collected = 0
        total_commission_amount = 0
        lease_details = []
        for lease_id, property_id, property_title, unit_number, collected in rows:
            lease_rent_collected = int(collected or 0)
            # Flat-rate agents are paid once per period, not once per lease.
            lease_commission = policy.commission_on(lease_rent_collected) if policy.is_percentage else 0
            total_rent_collected += lease_rent_collected
            total_commission_amount += lease_commission
            lease_details.append(
                {
                    "lease_id": lease_id,
                    "property_id": property_id,
                    "property_title": property_title,
                    "unit_number": unit_number,
                    "rent_collected": lease_rent_collected,
                    "commission_amount": lease_commission,
                }
            )
        if policy.is_flat_rate:
            total_commission_amount = policy.commission_on(total_rent_collected)

        calculation = {
            "agent_id": agent.id,
            "agent_name": agent.name,
            "payment_period": payment_period,
            "total_rent_collected": total_rent_collected,
            "commission_rate": policy.rate,
            "commission_type": policy.commission_type,
            "total_commission_amount": total_commission_amount,
            "lease_details": lease_details,
            "calculated_at": _utcnow().isoformat(),
        }
        self.logger.info(
            "Agent commission calculated",
            extra={
                "agent_id": agent.id,
                "payment_period": payment_period,
                "total_rent_collected": total_rent_collected,
                "commission_amount": total_commission_amount,
            },
        )
        return calculation

    def get_agency_commission_summary(self, agency_id, payment_period):
        with persistence_guard():
            agent_ids = [
                row.id
                for row in db.session.query(Agent.id)
                .filter(Agent.agency_id == agency_id, Agent.is_active.is_(True))
                .order_by(Agent.id)
                .all()
            ]
            caretaker_ids = [
                row.id
                for row in db.session.query(Caretaker.id)
                .filter(Caretaker.agency_id == agency_id)
                .order_by(Caretaker.id)
                .all()
            ]

        tasks = [("agent", agent_id) for agent_id in agent_ids]
        tasks.extend(("caretaker", caretaker_id) for caretaker_id in caretaker_ids)

        def calculate(task):
            kind, subject_id = task
            if kind == "agent":
                return self.calculate_agent_commission(subject_id, payment_period)
            return self.calculate_caretaker_commission(subject_id, payment_period)

        app = current_app._get_current_object() if has_app_context() else None
        results = run_bounded(
            calculate,
            tasks,
            max_workers=self.max_workers,
            timeout=self.query_timeout,
            app=app,
        )
        agent_commissions = results[: len(agent_ids)]
        caretaker_commissions = results[len(agent_ids) :]

        total_agent_commissions = sum(item["total_commission_amount"] for item in agent_commissions)
        total_caretaker_commissions = sum(item["commission_amount"] for item in caretaker_commissions)
        total_caretaker_salaries = sum(item["salary_amount"] for item in caretaker_commissions)

        return {
            "agency_id": agency_id,
            "payment_period": payment_period,
            "summary": {
                "total_agent_commissions": total_agent_commissions,
                "total_caretaker_commissions": total_caretaker_commissions,
                "total_caretaker_salaries": total_caretaker_salaries,
                "total_payouts": total_agent_commissions + total_caretaker_commissions + total_caretaker_salaries,
                "active_agents": len(agent_commissions),
                "active_caretakers": len(caretaker_commissions),
            },
            "agent_commissions": agent_commissions,
            "caretaker_commissions": caretaker_commissions,
            "calculated_at": _utcnow().isoformat(),
        }

    # Payout creation

    def auto_calculate_agent_commission_payment(self, agent_id, payment_period, properties=None):
        property_filter = _normalize_properties(properties)
        calculation = self.calculate_agent_commission(agent_id, payment_period, property_filter)

        existing = AgentCommissionPayment.query.filter_by(agent_id=agent_id, payment_period=payment_period).first()
        if existing:
            raise DuplicatePaymentError(f"Commission payment for period {payment_period} already exists.")

        agent = db.session.get(Agent, agent_id)
        if agent is None:
            raise NotFoundError("Agent not found.")

        amount = calculation["total_commission_amount"]
        payment = AgentCommissionPayment(
            agent_id=agent.id,
            agency_id=agent.agency_id,
            amount=amount,
            payment_date=_utcnow(),
            payment_period=payment_period,
            rent_collected=calculation["total_rent_collected"],
            commission_rate=calculation["commission_rate"],
            method="AUTO",
            description=f"Auto-calculated commission for {payment_period}",
            status="PENDING",
            lease_ids=[detail["lease_id"] for detail in calculation["lease_details"]],
            properties=property_filter,
        )
        agent.total_earned = int(agent.total_earned or 0) + amount
        self._commit_payout(payment, payment_period, f"Commission payment for period {payment_period} already exists.")
        self.logger.info(
            "Agent commission payment created",
            extra={"agent_id": agent.id, "payment_period": payment_period, "payment_id": payment.id, "amount": amount},
        )
        return {"payment": payment, "calculation": calculation}

    def auto_calculate_caretaker_payment(self, caretaker_id, payment_period, properties=None):
        property_filter = _normalize_properties(properties)
        calculation = self.calculate_caretaker_commission(caretaker_id, payment_period, property_filter)

        existing = CaretakerPayment.query.filter_by(caretaker_id=caretaker_id, payment_period=payment_period).first()
        if existing:
            raise DuplicatePaymentError(f"Payment for period {payment_period} already exists.")

        caretaker = db.session.get(Caretaker, caretaker_id)
        if caretaker is None:
            raise NotFoundError("Caretaker not found.")

        amount = calculation["total_amount"]
        payment = CaretakerPayment(
            caretaker_id=caretaker.id,
            agency_id=caretaker.agency_id,
            amount=amount,
            payment_date=_utcnow(),
            payment_period=payment_period,
            payment_type=calculation["payment_type"],
            salary_amount=calculation["salary_amount"],
            commission_amount=calculation["commission_amount"],
            rent_collected=calculation["total_rent_collected"],
            commission_rate=calculation["commission_rate"],
            method="AUTO",
            description=f"Auto-calculated payment for {payment_period}",
            status="PENDING",
            properties=property_filter,
        )
        caretaker.total_earned = int(caretaker.total_earned or 0) + amount
        self._commit_payout(payment, payment_period, f"Payment for period {payment_period} already exists.")
        self.logger.info(
            "Caretaker payment created",
            extra={
                "caretaker_id": caretaker.id,
                "payment_period": payment_period,
                "payment_id": payment.id,
                "amount": amount,
            },
        )
        return {"payment": payment, "calculation": calculation}

    def _commit_payout(self, payment, payment_period, duplicate_message):
        try:
            with persistence_guard():
                db.session.add(payment)
                db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicatePaymentError(duplicate_message) from exc
        except SQLAlchemyError:
            db.session.rollback()
            self.logger.exception("Error creating payout", extra={"payment_period": payment_period})
            raise

    # Bulk processing

    def _bulk_failure_message(self, exc, event, context):
        if isinstance(exc, AppError):
            self.logger.warning(event, extra={**context, "error": exc.message})
            return exc.message
        self.logger.exception(event, extra=context)
        return "Unexpected error while creating payment."

    def bulk_process_agent_commissions(self, agency_id, payment_period):
        validate_payment_period(payment_period)
        agents = (
            Agent.query.filter_by(agency_id=agency_id, is_active=True)
            .with_entities(Agent.id, Agent.name)
            .order_by(Agent.id)
            .all()
        )

        results = {"successful": [], "failed": [], "total_processed": 0, "total_amount": 0}
        for agent_id, agent_name in agents:
            try:
                result = self.auto_calculate_agent_commission_payment(agent_id, payment_period)
            except Exception as exc:
                db.session.rollback()
                message = self._bulk_failure_message(
                    exc, "Agent commission skipped", {"agent_id": agent_id, "payment_period": payment_period}
                )
                results["failed"].append({"agent_id": agent_id, "agent_name": agent_name, "error": message})
                continue

            amount = result["calculation"]["total_commission_amount"]
            results["successful"].append(
                {
                    "agent_id": agent_id,
                    "agent_name": agent_name,
                    "amount": amount,
                    "payment_id": result["payment"].id,
                }
            )
            results["total_amount"] += amount
            results["total_processed"] += 1
        return results

    def bulk_process_caretaker_commissions(self, agency_id, payment_period):
        validate_payment_period(payment_period)
        caretakers = (
            Caretaker.query.filter_by(agency_id=agency_id)
            .with_entities(Caretaker.id, Caretaker.name)
            .order_by(Caretaker.id)
            .all()
        )

        results = {"successful": [], "failed": [], "total_processed": 0, "total_amount": 0}
        for caretaker_id, caretaker_name in caretakers:
            try:
                result = self.auto_calculate_caretaker_payment(caretaker_id, payment_period)
            except Exception as exc:
                db.session.rollback()
                message = self._bulk_failure_message(
                    exc, "Caretaker payment skipped", {"caretaker_id": caretaker_id, "payment_period": payment_period}
                )
                results["failed"].append(
                    {"caretaker_id": caretaker_id, "caretaker_name": caretaker_name, "error": message}
                )
                continue

            amount = result["calculation"]["total_amount"]
            results["successful"].append(
                {
                    "caretaker_id": caretaker_id,
                    "caretaker_name": caretaker_name,
                    "amount": amount,
                    "payment_id": result["payment"].id,
                }
            )
            results["total_amount"] += amount
            results["total_processed"] += 1
        return results

    # Ledger reporting

    def get_agency_payment_summary(self, agency_id, payment_period):
        validate_payment_period(payment_period)
        with persistence_guard():
            agent_payments = (
                db.session.query(AgentCommissionPayment, Agent.name)
                .join(Agent, Agent.id == AgentCommissionPayment.agent_id)
                .filter(
                    AgentCommissionPayment.agency_id == agency_id,
                    AgentCommissionPayment.payment_period == payment_period,
                )
                .order_by(AgentCommissionPayment.id)
                .all()
            )
            caretaker_payments = (
                db.session.query(CaretakerPayment, Caretaker.name)
                .join(Caretaker, Caretaker.id == CaretakerPayment.caretaker_id)
                .filter(
                    CaretakerPayment.agency_id == agency_id,
                    CaretakerPayment.payment_period == payment_period,
                )
                .order_by(CaretakerPayment.id)
                .all()
            )

        total_agent_commissions = sum(int(p.amount or 0) for p, _ in agent_payments)
        total_caretaker_payments = sum(int(p.amount or 0) for p, _ in caretaker_payments)
        total_caretaker_salaries = sum(int(p.salary_amount or 0) for p, _ in caretaker_payments)
        total_caretaker_commissions = sum(int(p.commission_amount or 0) for p, _ in caretaker_payments)

        return {
            "agency_id": agency_id,
            "payment_period": payment_period,
            "summary": {
                "total_agent_commissions": total_agent_commissions,
                "total_caretaker_payments": total_caretaker_payments,
                "total_caretaker_salaries": total_caretaker_salaries,
                "total_caretaker_commissions": total_caretaker_commissions,
                "total_payouts": total_agent_commissions + total_caretaker_payments,
                "agent_payment_count": len(agent_payments),
                "caretaker_payment_count": len(caretaker_payments),
            },
            "agent_payments": [
                {
                    "id": p.id,
                    "agent_name": name,
                    "amount": p.amount,
                    "status": p.status,
                    "payment_date": p.payment_date.isoformat(),
                }
                for p, name in agent_payments
            ],
            "caretaker_payments": [
                {
                    "id": p.id,
                    "caretaker_name": name,
                    "amount": p.amount,
                    "payment_type": p.payment_type,
                    "salary_amount": p.salary_amount,
                    "commission_amount": p.commission_amount,
                    "status": p.status,
                    "payment_date": p.payment_date.isoformat(),
                }
                for p, name in caretaker_payments
            ],
            "calculated_at": _utcnow().isoformat(),
        }

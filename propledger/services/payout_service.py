from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError

from propledger.errors import DuplicatePaymentError, NotFoundError, ValidationError
from propledger.extensions import db
from propledger.models import Agent, AgentCommissionPayment, Caretaker, CaretakerPayment
from propledger.services.payment_period import validate_payment_period

PAYOUT_TRANSITIONS = {
    "PENDING": {"APPROVED", "CANCELLED"},
    "APPROVED": {"COMPLETED", "CANCELLED"},
    "COMPLETED": set(),
    "CANCELLED": set(),
}

PAYOUT_KINDS = {
    "agent": (AgentCommissionPayment, Agent, "agent_id", "AC"),
    "caretaker": (CaretakerPayment, Caretaker, "caretaker_id", "CP"),
}

# Deleting a row frees its (subject, payment_period) slot.
DELETABLE_STATUSES = {"PENDING", "CANCELLED"}


def serialize_payout(payment):
    data = {
        "id": payment.id,
        "agency_id": payment.agency_id,
        "amount": payment.amount,
        "payment_date": payment.payment_date.isoformat() if payment.payment_date else None,
        "payment_period": payment.payment_period,
        "rent_collected": payment.rent_collected,
        "commission_rate": str(payment.commission_rate),
        "method": payment.method,
        "reference_number": payment.reference_number,
        "description": payment.description,
        "status": payment.status,
        "properties": list(payment.properties or []),
    }
    if isinstance(payment, AgentCommissionPayment):
        data["agent_id"] = payment.agent_id
        data["lease_ids"] = list(payment.lease_ids or [])
    else:
        data["caretaker_id"] = payment.caretaker_id
        data["payment_type"] = payment.payment_type
        data["salary_amount"] = payment.salary_amount
        data["commission_amount"] = payment.commission_amount
    return data


def _money(value, field, default=0):
    if value is None or value == "":
        return int(default or 0)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number of minor units.")
    try:
        amount = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a whole number of minor units.") from exc
    if amount != value and not isinstance(value, str):
        raise ValidationError(f"{field} must be a whole number of minor units.")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative.")
    return amount


def _rate(value, default):
    if value is None or value == "":
        return Decimal(str(default if default is not None else 0))
    try:
        rate = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError("commission_rate must be a number.") from exc
    if not rate.is_finite() or rate < 0:
        raise ValidationError("commission_rate must be a non-negative number.")
    return rate


def _payment_date(value):
    if not value:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError("payment_date must be an ISO 8601 date or datetime.") from exc


def _id_list(values, field):
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list of ids.")
    try:
        return [int(item) for item in values]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a list of ids.") from exc


class PayoutService:
    @staticmethod
    def _kind(kind):
        entry = PAYOUT_KINDS.get((kind or "").strip().lower())
        if entry is None:
            raise NotFoundError("Unknown payment kind.")
        return entry

    @staticmethod
    def get_payout(kind, payment_id, agency_id):
        model, _subject_model, _subject_field, _prefix = PayoutService._kind(kind)
        payment = model.query.filter_by(id=payment_id, agency_id=agency_id).first()
        if not payment:
            raise NotFoundError("Commission payment not found.")
        return payment

    @staticmethod
    def list_payouts(kind, subject_id, agency_id, period=None, status=None, page=1, per_page=10):
        model, _subject_model, subject_field, _prefix = PayoutService._kind(kind)
        query = model.query.filter(getattr(model, subject_field) == subject_id, model.agency_id == agency_id)
        if period:
            query = query.filter(model.payment_period == period)
        if status:
            query = query.filter(model.status == status.strip().upper())
        query = query.order_by(model.payment_date.desc(), model.id.desc())
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def update_status(kind, payment_id, agency_id, new_status):
        payment = PayoutService.get_payout(kind, payment_id, agency_id)
        _model, subject_model, subject_field, _prefix = PayoutService._kind(kind)

        current = (payment.status or "").upper()
        new_status = (new_status or "").strip().upper()
        if new_status not in PAYOUT_TRANSITIONS.get(current, set()):
            raise ValidationError(f"Invalid status transition from {current} to {new_status}.")

        payment.status = new_status
        if new_status == "CANCELLED":
            subject = db.session.get(subject_model, getattr(payment, subject_field))
            if subject is not None:
                subject.total_earned = int(subject.total_earned or 0) - int(payment.amount or 0)
        db.session.commit()
        return payment

    @staticmethod
    def create_payout(
        kind,
        subject_id,
        agency_id,
        payment_period,
        amount=None,
        payment_date=None,
        rent_collected=None,
        commission_rate=None,
        method=None,
        reference_number=None,
        description=None,
        properties=None,
        lease_ids=None,
        salary_amount=None,
        commission_amount=None,
    ):
        """Record a payout entered by staff instead of calculated from rent.

        Caretaker payouts default to the caretaker's salary plus the given
        commission when ``amount`` is omitted. The payout starts ``PENDING``
        and counts towards the subject's ``total_earned`` like an automatic one.
        """
        if not payment_period:
            raise ValidationError("Payment period is required (format: YYYY-MM)")
        validate_payment_period(payment_period)
        model, subject_model, subject_field, _prefix = PayoutService._kind(kind)
        is_agent = model is AgentCommissionPayment
        label = "Commission payment" if is_agent else "Payment"

        subject = subject_model.query.filter_by(id=subject_id, agency_id=agency_id).first()
        if not subject:
            raise NotFoundError(f"{subject_model.__name__} not found.")

        duplicate_message = f"{label} for period {payment_period} already exists."
        if model.query.filter(getattr(model, subject_field) == subject.id, model.payment_period == payment_period).first():
            raise DuplicatePaymentError(duplicate_message)

        fields = {
            subject_field: subject.id,
            "agency_id": agency_id,
            "payment_date": _payment_date(payment_date),
            "payment_period": payment_period,
            "rent_collected": _money(rent_collected, "rent_collected"),
            "commission_rate": _rate(commission_rate, subject.commission_rate),
            "method": (method or "MANUAL").strip().upper(),
            "reference_number": reference_number,
            "description": description,
            "status": "PENDING",
            "properties": _id_list(properties, "properties"),
        }
        if is_agent:
            fields["amount"] = _money(amount, "amount")
            fields["lease_ids"] = _id_list(lease_ids, "lease_ids")
        else:
            salary = _money(salary_amount, "salary_amount", default=subject.salary_amount)
            commission = _money(commission_amount, "commission_amount")
            fields["payment_type"] = subject.payment_type
            fields["salary_amount"] = salary
            fields["commission_amount"] = commission
            fields["amount"] = _money(amount, "amount", default=salary + commission)

        payment = model(**fields)
        subject.total_earned = int(subject.total_earned or 0) + fields["amount"]
        try:
            db.session.add(payment)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicatePaymentError(duplicate_message) from exc
        return payment

    @staticmethod
    def delete_payout(kind, payment_id, agency_id):
        payment = PayoutService.get_payout(kind, payment_id, agency_id)
        _model, subject_model, subject_field, _prefix = PayoutService._kind(kind)

        current = (payment.status or "").upper()
        if current not in DELETABLE_STATUSES:
            raise ValidationError(f"Only pending or cancelled payments can be deleted, this one is {current}.")

        # Cancelling already took the amount off total_earned.
        if current != "CANCELLED":
            subject = db.session.get(subject_model, getattr(payment, subject_field))
            if subject is not None:
                subject.total_earned = int(subject.total_earned or 0) - int(payment.amount or 0)
        db.session.delete(payment)
        db.session.commit()

    @staticmethod
    def build_receipt(kind, payment_id, agency_id):
        payment = PayoutService.get_payout(kind, payment_id, agency_id)
        _model, subject_model, subject_field, prefix = PayoutService._kind(kind)
        subject = db.session.get(subject_model, getattr(payment, subject_field))

        receipt = {
            "receipt_number": f"{prefix}-{payment.id:08d}",
            "payment_id": payment.id,
            "payee_name": subject.name if subject else None,
            "payee_phone": subject.phone if subject else None,
            "agency_name": payment.agency.name if payment.agency else None,
            "amount": payment.amount,
            "payment_date": payment.payment_date.isoformat() if payment.payment_date else None,
            "payment_period": payment.payment_period,
            "rent_collected": payment.rent_collected,
            "commission_rate": str(payment.commission_rate),
            "method": payment.method,
            "reference_number": payment.reference_number,
            "description": payment.description,
            "status": payment.status,
        }
        if isinstance(payment, CaretakerPayment):
            receipt["salary_amount"] = payment.salary_amount
            receipt["commission_amount"] = payment.commission_amount
        return receipt

from flask import current_app, request
from flask_login import current_user

from propledger.errors import NotFoundError, ValidationError
from propledger.models import Agent, Caretaker
from propledger.services import CommissionService
from propledger.services.payment_period import validate_payment_period


def commission_service():
    return CommissionService.from_config(current_app.config)


def json_payload():
    return request.get_json(silent=True) or {}


def require_payment_period(value):
    if not value:
        raise ValidationError("Payment period is required (format: YYYY-MM)")
    validate_payment_period(value)
    return value


def parse_property_ids(raw):
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("Properties must be a list of property ids.")
    try:
        return [int(item) for item in raw]
    except (TypeError, ValueError) as exc:
        raise ValidationError("Properties must be a list of property ids.") from exc


def scoped_agent(agent_id):
    agent = Agent.query.filter_by(id=agent_id, agency_id=current_user.agency_id).first()
    if not agent:
        raise NotFoundError("Agent not found.")
    return agent


def scoped_caretaker(caretaker_id):
    caretaker = Caretaker.query.filter_by(id=caretaker_id, agency_id=current_user.agency_id).first()
    if not caretaker:
        raise NotFoundError("Caretaker not found.")
    return caretaker


def pagination_json(page_obj):
    return {
        "page": page_obj.page,
        "limit": page_obj.per_page,
        "total": page_obj.total,
        "pages": page_obj.pages,
    }


MANUAL_PAYOUT_KEYS = {
    "amount": "amount",
    "paymentDate": "payment_date",
    "rentCollected": "rent_collected",
    "commissionRate": "commission_rate",
    "method": "method",
    "referenceNumber": "reference_number",
    "description": "description",
    "properties": "properties",
    "leaseIds": "lease_ids",
    "salaryAmount": "salary_amount",
    "commissionAmount": "commission_amount",
}


def manual_payout_fields(payload):
    return {field: payload[key] for key, field in MANUAL_PAYOUT_KEYS.items() if key in payload}

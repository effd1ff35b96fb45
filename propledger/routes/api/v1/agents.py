from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from propledger.decorators import agency_member_required, role_required
from propledger.extensions import limiter
from propledger.routes.api.v1.common import (
    commission_service,
    json_payload,
    manual_payout_fields,
    pagination_json,
    parse_property_ids,
    require_payment_period,
    scoped_agent,
)
from propledger.services import PayoutService
from propledger.services.payout_service import serialize_payout

api_agent_bp = Blueprint("api_agent", __name__)


@api_agent_bp.post("/<int:agent_id>/calculate-commission")
@login_required
@agency_member_required
def calculate_commission(agent_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    properties = parse_property_ids(payload.get("properties"))
    agent = scoped_agent(agent_id)
    calculation = commission_service().calculate_agent_commission(agent.id, payment_period, properties)
    return jsonify({"message": "Commission calculated successfully", "calculation": calculation})


@api_agent_bp.post("/<int:agent_id>/auto-commission-payment")
@login_required
@agency_member_required
@role_required("admin")
def auto_commission_payment(agent_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    properties = parse_property_ids(payload.get("properties"))
    agent = scoped_agent(agent_id)
    result = commission_service().auto_calculate_agent_commission_payment(agent.id, payment_period, properties)
    return (
        jsonify(
            {
                "message": "Auto-commission payment created successfully",
                "payment": serialize_payout(result["payment"]),
                "calculation": result["calculation"],
            }
        ),
        201,
    )


@api_agent_bp.post("/bulk-commission-payments")
@login_required
@agency_member_required
@role_required("admin")
@limiter.limit(lambda: current_app.config["RATELIMIT_BULK"])
def bulk_commission_payments():
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    results = commission_service().bulk_process_agent_commissions(current_user.agency_id, payment_period)
    return jsonify(
        {
            "message": (
                f"Bulk commission processing completed. "
                f"{results['total_processed']} agents processed successfully."
            ),
            "results": results,
        }
    )


@api_agent_bp.get("/<int:agent_id>/commission-payments")
@login_required
@agency_member_required
def commission_payment_history(agent_id):
    agent = scoped_agent(agent_id)
    page_obj = PayoutService.list_payouts(
        "agent",
        agent.id,
        current_user.agency_id,
        period=request.args.get("period"),
        status=request.args.get("status"),
        page=request.args.get("page", 1, type=int),
        per_page=min(request.args.get("limit", 10, type=int), 100),
    )
    return jsonify({"payments": [serialize_payout(p) for p in page_obj.items], "pagination": pagination_json(page_obj)})


@api_agent_bp.post("/<int:agent_id>/commission-payments")
@login_required
@agency_member_required
@role_required("admin")
def create_commission_payment(agent_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    agent = scoped_agent(agent_id)
    payment = PayoutService.create_payout(
        "agent", agent.id, current_user.agency_id, payment_period, **manual_payout_fields(payload)
    )
    return jsonify({"message": "Commission payment created successfully", "payment": serialize_payout(payment)}), 201

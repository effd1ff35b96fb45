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
    scoped_caretaker,
)
from propledger.services import PayoutService
from propledger.services.payout_service import serialize_payout

api_caretaker_bp = Blueprint("api_caretaker", __name__)


@api_caretaker_bp.post("/<int:caretaker_id>/calculate-commission")
@login_required
@agency_member_required
def calculate_commission(caretaker_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    properties = parse_property_ids(payload.get("properties"))
    caretaker = scoped_caretaker(caretaker_id)
    calculation = commission_service().calculate_caretaker_commission(caretaker.id, payment_period, properties)
    return jsonify({"message": "Commission calculated successfully", "calculation": calculation})


@api_caretaker_bp.post("/<int:caretaker_id>/auto-payment")
@login_required
@agency_member_required
@role_required("admin")
def auto_payment(caretaker_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    properties = parse_property_ids(payload.get("properties"))
    caretaker = scoped_caretaker(caretaker_id)
    result = commission_service().auto_calculate_caretaker_payment(caretaker.id, payment_period, properties)
    return (
        jsonify(
            {
                "message": "Auto-payment created successfully",
                "payment": serialize_payout(result["payment"]),
                "calculation": result["calculation"],
            }
        ),
        201,
    )


@api_caretaker_bp.post("/bulk-commission-payments")
@login_required
@agency_member_required
@role_required("admin")
@limiter.limit(lambda: current_app.config["RATELIMIT_BULK"])
def bulk_commission_payments():
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    results = commission_service().bulk_process_caretaker_commissions(current_user.agency_id, payment_period)
    return jsonify(
        {
            "message": (
                f"Bulk caretaker payment processing completed. "
                f"{results['total_processed']} caretakers processed successfully."
            ),
            "results": results,
        }
    )


@api_caretaker_bp.get("/<int:caretaker_id>/payments")
@login_required
@agency_member_required
def payment_history(caretaker_id):
    caretaker = scoped_caretaker(caretaker_id)
    page_obj = PayoutService.list_payouts(
        "caretaker",
        caretaker.id,
        current_user.agency_id,
        period=request.args.get("period"),
        status=request.args.get("status"),
        page=request.args.get("page", 1, type=int),
        per_page=min(request.args.get("limit", 10, type=int), 100),
    )
    return jsonify({"payments": [serialize_payout(p) for p in page_obj.items], "pagination": pagination_json(page_obj)})


@api_caretaker_bp.post("/<int:caretaker_id>/payments")
@login_required
@agency_member_required
@role_required("admin")
def create_payment(caretaker_id):
    payload = json_payload()
    payment_period = require_payment_period(payload.get("paymentPeriod"))
    caretaker = scoped_caretaker(caretaker_id)
    payment = PayoutService.create_payout(
        "caretaker", caretaker.id, current_user.agency_id, payment_period, **manual_payout_fields(payload)
    )
    return jsonify({"message": "Payment created successfully", "payment": serialize_payout(payment)}), 201

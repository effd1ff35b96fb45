from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from propledger.decorators import agency_member_required, role_required
from propledger.routes.api.v1.common import commission_service, json_payload, require_payment_period
from propledger.services import PayoutService
from propledger.services.payout_service import serialize_payout

api_commission_bp = Blueprint("api_commission", __name__)


@api_commission_bp.get("/commissions/summary")
@login_required
@agency_member_required
@role_required("admin", "manager")
def commission_summary():
    payment_period = require_payment_period(request.args.get("paymentPeriod"))
    summary = commission_service().get_agency_commission_summary(current_user.agency_id, payment_period)
    return jsonify({"message": "Commission summary retrieved successfully", "summary": summary})


@api_commission_bp.get("/payments/agency-summary")
@login_required
@agency_member_required
@role_required("admin", "manager")
def agency_payment_summary():
    payment_period = require_payment_period(request.args.get("paymentPeriod"))
    summary = commission_service().get_agency_payment_summary(current_user.agency_id, payment_period)
    return jsonify({"message": "Agency payment summary retrieved successfully", "summary": summary})


@api_commission_bp.patch("/commission-payments/<kind>/<int:payment_id>/status")
@login_required
@agency_member_required
@role_required("admin")
def update_payment_status(kind, payment_id):
    payload = json_payload()
    payment = PayoutService.update_status(kind, payment_id, current_user.agency_id, payload.get("status"))
    return jsonify({"message": "Commission payment updated successfully", "payment": serialize_payout(payment)})


@api_commission_bp.get("/commission-payments/<kind>/<int:payment_id>/receipt")
@login_required
@agency_member_required
def payment_receipt(kind, payment_id):
    receipt = PayoutService.build_receipt(kind, payment_id, current_user.agency_id)
    return jsonify({"message": "Commission payment receipt generated successfully", "receipt": receipt})


@api_commission_bp.delete("/commission-payments/<kind>/<int:payment_id>")
@login_required
@agency_member_required
@role_required("admin")
def delete_payment(kind, payment_id):
    PayoutService.delete_payout(kind, payment_id, current_user.agency_id)
    return jsonify({"message": "Commission payment deleted successfully"})

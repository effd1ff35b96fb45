from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from propledger.decorators import agency_member_required, role_required
from propledger.routes.api.v1.common import json_payload
from propledger.services import AuthService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/login")
def api_login():
    payload = json_payload()
    user = AuthService.authenticate_user(payload.get("email", ""), payload.get("password", ""))
    login_user(user)
    return jsonify({"id": user.id, "email": user.email, "role": user.role, "agency_id": user.agency_id})


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_auth_bp.post("/users")
@login_required
@agency_member_required
@role_required("admin")
def add_staff_user():
    payload = json_payload()
    user = AuthService.register_user(
        agency_id=current_user.agency_id,
        full_name=payload.get("full_name", ""),
        email=payload.get("email", ""),
        password=payload.get("password", ""),
        role=payload.get("role", "manager"),
    )
    return jsonify({"id": user.id, "email": user.email, "role": user.role}), 201

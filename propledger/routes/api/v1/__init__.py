from flask import Blueprint

from propledger.routes.api.v1.agents import api_agent_bp
from propledger.routes.api.v1.auth import api_auth_bp
from propledger.routes.api.v1.caretakers import api_caretaker_bp
from propledger.routes.api.v1.commissions import api_commission_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_agent_bp, url_prefix="/agents")
api_v1_bp.register_blueprint(api_caretaker_bp, url_prefix="/caretakers")
api_v1_bp.register_blueprint(api_commission_bp)

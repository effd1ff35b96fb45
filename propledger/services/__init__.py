from propledger.services.auth_service import AuthService
from propledger.services.commission_service import CommissionService
from propledger.services.payout_service import PayoutService

__all__ = [
    "AuthService",
    "CommissionService",
    "PayoutService",
]

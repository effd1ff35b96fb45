from propledger.models.agency import Agency
from propledger.models.agent import Agent
from propledger.models.agent_commission_payment import AgentCommissionPayment
from propledger.models.agent_lease import AgentLease
from propledger.models.caretaker import Caretaker
from propledger.models.caretaker_payment import CaretakerPayment
from propledger.models.lease import Lease
from propledger.models.property import Property
from propledger.models.property_caretaker import PropertyCaretaker
from propledger.models.rent_payment import RentPayment
from propledger.models.unit import Unit
from propledger.models.user import User

__all__ = [
    "Agency",
    "User",
    "Agent",
    "AgentLease",
    "Caretaker",
    "PropertyCaretaker",
    "Property",
    "Unit",
    "Lease",
    "RentPayment",
    "AgentCommissionPayment",
    "CaretakerPayment",
]

from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class Lease(TimestampMixin, db.Model):
    __tablename__ = "leases"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    property_id = db.Column(PKType, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = db.Column(PKType, db.ForeignKey("units.id", ondelete="SET NULL"), nullable=True, index=True)
    rent_amount = db.Column(MoneyType, nullable=False, default=0)
    start_date = db.Column(db.Date, nullable=False)
    # NULL while the lease is active.
    end_date = db.Column(db.Date, nullable=True, index=True)

    property = db.relationship("Property", back_populates="leases")
    unit = db.relationship("Unit")
    payments = db.relationship("RentPayment", back_populates="lease", lazy="dynamic")
    agent_assignments = db.relationship("AgentLease", back_populates="lease", lazy="dynamic")

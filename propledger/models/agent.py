from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class Agent(TimestampMixin, db.Model):
    __tablename__ = "agents"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    agency_id = db.Column(PKType, db.ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    commission_type = db.Column(db.String(24), nullable=False, default="PERCENTAGE")
    commission_rate = db.Column(db.Numeric(7, 2), nullable=False, default=10)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    total_earned = db.Column(MoneyType, nullable=False, default=0)

    agency = db.relationship("Agency", back_populates="agents")
    lease_assignments = db.relationship(
        "AgentLease", back_populates="agent", lazy="dynamic", cascade="all, delete-orphan"
    )
    commission_payments = db.relationship("AgentCommissionPayment", back_populates="agent", lazy="dynamic")

    __table_args__ = (db.Index("ix_agents_agency_active", "agency_id", "is_active"),)

from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class AgentCommissionPayment(TimestampMixin, db.Model):
    __tablename__ = "agent_commission_payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    agent_id = db.Column(PKType, db.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True)
    agency_id = db.Column(PKType, db.ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(MoneyType, nullable=False, default=0)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    payment_period = db.Column(db.String(7), nullable=False, index=True)
    rent_collected = db.Column(MoneyType, nullable=False, default=0)
    commission_rate = db.Column(db.Numeric(7, 2), nullable=False, default=0)
    method = db.Column(db.String(24), nullable=False, default="AUTO")
    reference_number = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(24), nullable=False, default="PENDING", index=True)
    lease_ids = db.Column(db.JSON, nullable=False, default=list)
    properties = db.Column(db.JSON, nullable=False, default=list)

    agent = db.relationship("Agent", back_populates="commission_payments")
    agency = db.relationship("Agency")

    __table_args__ = (
        db.UniqueConstraint("agent_id", "payment_period", name="uq_agent_commission_period"),
        db.Index("ix_agent_commission_agency_period", "agency_id", "payment_period"),
    )

from propledger.extensions import db
from propledger.models.base import PKType, TimestampMixin


class AgentLease(TimestampMixin, db.Model):
    __tablename__ = "agent_leases"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    agent_id = db.Column(PKType, db.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True)
    lease_id = db.Column(PKType, db.ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True)

    agent = db.relationship("Agent", back_populates="lease_assignments")
    lease = db.relationship("Lease", back_populates="agent_assignments")

    __table_args__ = (db.UniqueConstraint("agent_id", "lease_id", name="uq_agent_lease"),)

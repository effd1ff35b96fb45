from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class RentPayment(TimestampMixin, db.Model):
    __tablename__ = "rent_payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    lease_id = db.Column(PKType, db.ForeignKey("leases.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(MoneyType, nullable=False)
    # Agency-local wall-clock time; payment periods are local calendar months.
    paid_at = db.Column(db.DateTime, nullable=False, index=True)
    reference = db.Column(db.String(64), nullable=True)

    lease = db.relationship("Lease", back_populates="payments")

    __table_args__ = (
        db.Index("ix_rent_payments_lease_paid_at", "lease_id", "paid_at"),
        db.CheckConstraint("amount >= 0", name="ck_rent_payment_amount_non_negative"),
    )

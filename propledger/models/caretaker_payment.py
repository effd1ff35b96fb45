from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class CaretakerPayment(TimestampMixin, db.Model):
    __tablename__ = "caretaker_payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    caretaker_id = db.Column(PKType, db.ForeignKey("caretakers.id", ondelete="CASCADE"), nullable=False, index=True)
    agency_id = db.Column(PKType, db.ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(MoneyType, nullable=False, default=0)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    payment_period = db.Column(db.String(7), nullable=False, index=True)
    payment_type = db.Column(db.String(32), nullable=False)
    salary_amount = db.Column(MoneyType, nullable=False, default=0)
    commission_amount = db.Column(MoneyType, nullable=False, default=0)
    rent_collected = db.Column(MoneyType, nullable=False, default=0)
    commission_rate = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    method = db.Column(db.String(24), nullable=False, default="AUTO")
    reference_number = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(24), nullable=False, default="PENDING", index=True)
    properties = db.Column(db.JSON, nullable=False, default=list)

    caretaker = db.relationship("Caretaker", back_populates="payments")
    agency = db.relationship("Agency")

    __table_args__ = (
        db.UniqueConstraint("caretaker_id", "payment_period", name="uq_caretaker_payment_period"),
        db.Index("ix_caretaker_payment_agency_period", "agency_id", "payment_period"),
    )

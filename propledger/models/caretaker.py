from propledger.extensions import db
from propledger.models.base import MoneyType, PKType, TimestampMixin


class Caretaker(TimestampMixin, db.Model):
    __tablename__ = "caretakers"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    agency_id = db.Column(PKType, db.ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    payment_type = db.Column(db.String(32), nullable=False, default="SALARY")
    salary_amount = db.Column(MoneyType, nullable=True)
    commission_type = db.Column(db.String(24), nullable=False, default="PERCENTAGE")
    commission_rate = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_earned = db.Column(MoneyType, nullable=False, default=0)

    agency = db.relationship("Agency", back_populates="caretakers")
    property_assignments = db.relationship(
        "PropertyCaretaker", back_populates="caretaker", lazy="dynamic", cascade="all, delete-orphan"
    )
    payments = db.relationship("CaretakerPayment", back_populates="caretaker", lazy="dynamic")

from propledger.extensions import db
from propledger.models.base import PKType, TimestampMixin


class PropertyCaretaker(TimestampMixin, db.Model):
    __tablename__ = "property_caretakers"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    property_id = db.Column(PKType, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    caretaker_id = db.Column(PKType, db.ForeignKey("caretakers.id", ondelete="CASCADE"), nullable=False, index=True)

    property = db.relationship("Property", back_populates="caretaker_assignments")
    caretaker = db.relationship("Caretaker", back_populates="property_assignments")

    __table_args__ = (db.UniqueConstraint("property_id", "caretaker_id", name="uq_property_caretaker"),)

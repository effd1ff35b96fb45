from propledger.extensions import db
from propledger.models.base import PKType, TimestampMixin


class Unit(TimestampMixin, db.Model):
    __tablename__ = "units"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    property_id = db.Column(PKType, db.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_number = db.Column(db.String(32), nullable=False)

    property = db.relationship("Property", back_populates="units")

    __table_args__ = (db.UniqueConstraint("property_id", "unit_number", name="uq_unit_property_number"),)

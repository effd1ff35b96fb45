from propledger.extensions import db
from propledger.models.base import PKType, TimestampMixin


class Property(TimestampMixin, db.Model):
    __tablename__ = "properties"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    agency_id = db.Column(PKType, db.ForeignKey("agencies.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(160), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    agency = db.relationship("Agency", back_populates="properties")
    units = db.relationship("Unit", back_populates="property", lazy="dynamic")
    leases = db.relationship("Lease", back_populates="property", lazy="dynamic")
    caretaker_assignments = db.relationship("PropertyCaretaker", back_populates="property", lazy="dynamic")

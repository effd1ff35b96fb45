from propledger.extensions import db
from propledger.models.base import PKType, TimestampMixin


class Agency(TimestampMixin, db.Model):
    __tablename__ = "agencies"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(160), nullable=False)

    users = db.relationship("User", back_populates="agency", lazy="dynamic")
    agents = db.relationship("Agent", back_populates="agency", lazy="dynamic")
    caretakers = db.relationship("Caretaker", back_populates="agency", lazy="dynamic")
    properties = db.relationship("Property", back_populates="agency", lazy="dynamic")

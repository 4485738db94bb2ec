from datetime import datetime, timezone

from trainhub.extensions import db
from trainhub.models.venue import AssignmentStatus


class Staff(db.Model):
    __tablename__ = "staff"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    status = db.Column(
        db.Enum(AssignmentStatus.UNASSIGNED, AssignmentStatus.ASSIGNED, name="staff_status"),
        nullable=False,
        default=AssignmentStatus.UNASSIGNED,
    )
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), unique=True, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    venue = db.relationship("Venue", back_populates="staff")

    def __repr__(self):
        return f"<Staff id={self.id} {self.email} status={self.status}>"

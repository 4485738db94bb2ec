from datetime import datetime, timezone

from trainhub.extensions import db


class AssignmentStatus:
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


class Venue(db.Model):
    __tablename__ = "venues"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    capacity = db.Column(db.Integer, nullable=False)
    status = db.Column(
        db.Enum(AssignmentStatus.UNASSIGNED, AssignmentStatus.ASSIGNED, name="venue_status"),
        nullable=False,
        default=AssignmentStatus.UNASSIGNED,
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    staff = db.relationship("Staff", back_populates="venue", uselist=False)

    def __repr__(self):
        return f"<Venue id={self.id} {self.name!r} status={self.status}>"

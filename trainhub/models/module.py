from datetime import datetime, timezone

from trainhub.extensions import db


class Module(db.Model):
    __tablename__ = "modules"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    duration_days = db.Column(db.Integer, nullable=False, default=0)
    exams_count = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint("exams_count >= 0", name="ck_module_exams_count"),
    )

    def __repr__(self):
        return f"<Module id={self.id} {self.title!r}>"

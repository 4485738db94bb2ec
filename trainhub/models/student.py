from datetime import datetime, timezone

from trainhub.extensions import db

BATCHES = ("Service", "Dream", "Super Dream", "Marquee")
DEPARTMENTS = ("CSE", "IT", "ECE", "EEE", "MECH", "CIVIL", "AIDS", "AIML", "CSBS", "OTHER")


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    reg_no = db.Column(db.String(32), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    batch = db.Column(db.Enum(*BATCHES, name="student_batch"), nullable=False)
    passout_year = db.Column(db.Integer, nullable=False)
    department = db.Column(db.Enum(*DEPARTMENTS, name="student_department"), nullable=False)
    trainings_completed = db.Column(db.Integer, nullable=False, default=0)
    leetcode_id = db.Column(db.String(100))
    codechef_id = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    enrollments = db.relationship(
        "Enrollment",
        back_populates="student",
        order_by="Enrollment.id",
        cascade="all, delete-orphan",
    )
    progress = db.relationship(
        "TrainingProgress",
        back_populates="student",
        cascade="all, delete-orphan",
    )

    def is_enrolled(self, module_id: int) -> bool:
        return any(e.module_id == module_id for e in self.enrollments)

    def __repr__(self):
        return f"<Student id={self.id} reg_no={self.reg_no}>"


class Enrollment(db.Model):
    """Module reference in a student's ordered training list."""

    __tablename__ = "student_enrollments"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    module_id = db.Column(db.Integer, db.ForeignKey("modules.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    student = db.relationship("Student", back_populates="enrollments")
    module = db.relationship("Module")

    __table_args__ = (
        db.UniqueConstraint("student_id", "module_id", name="uq_enrollment_student_module"),
    )

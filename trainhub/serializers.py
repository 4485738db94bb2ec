from trainhub.models import Module, Staff, Student, TrainingProgress, Venue
from trainhub.services.leaderboard import attendance_summary


def student_dict(student: Student) -> dict:
    return {
        "id": student.id,
        "name": student.name,
        "regNo": student.reg_no,
        "email": student.email,
        "batch": student.batch,
        "passoutYear": student.passout_year,
        "department": student.department,
        "numTrainingsCompleted": student.trainings_completed,
        "trainings": [{"moduleId": e.module_id} for e in student.enrollments],
        "leetcodeId": student.leetcode_id,
        "codechefId": student.codechef_id,
    }


def module_dict(module: Module) -> dict:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "durationDays": module.duration_days,
        "examsCount": module.exams_count,
        "isCompleted": module.is_completed,
        "createdAt": module.created_at.isoformat() if module.created_at else None,
    }


def venue_dict(venue: Venue) -> dict:
    return {
        "id": venue.id,
        "name": venue.name,
        "capacity": venue.capacity,
        "status": venue.status,
        "staffId": venue.staff.id if venue.staff else None,
    }


def staff_dict(staff: Staff) -> dict:
    return {
        "id": staff.id,
        "name": staff.name,
        "email": staff.email,
        "status": staff.status,
        "venueId": staff.venue_id,
        "venue": venue_dict(staff.venue) if staff.venue else None,
    }


def _session_dict(mark) -> dict | None:
    if mark is None:
        return None
    return {"present": mark.present, "od": mark.on_duty, "notified": mark.notified}


def progress_dict(progress: TrainingProgress) -> dict:
    return {
        "id": progress.id,
        "studentId": progress.student_id,
        "moduleId": progress.module_id,
        "venueId": progress.venue_id,
        "averageScore": progress.average_score,
        "examScores": [{"exam": s.exam, "score": s.score} for s in progress.exam_scores],
        "attendance": [
            {
                "date": e.date.isoformat(),
                "forenoon": _session_dict(e.forenoon),
                "afternoon": _session_dict(e.afternoon),
            }
            for e in progress.attendance
        ],
        "attendanceSummary": attendance_summary(progress),
    }

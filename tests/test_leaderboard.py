from datetime import date, timedelta

from trainhub.models import AttendanceEntry, DaySession, SessionMark, TrainingProgress
from trainhub.services.leaderboard import attendance_summary, build_leaderboard, find_position

PRESENT = SessionMark(present=True, on_duty=False)
ABSENT = SessionMark(present=False, on_duty=False)
ON_DUTY = SessionMark(present=False, on_duty=True)


def add_day(progress, day, forenoon, afternoon):
    entry = AttendanceEntry(date=day)
    entry.set_session(DaySession.FORENOON, forenoon)
    entry.set_session(DaySession.AFTERNOON, afternoon)
    progress.attendance.append(entry)


def ranked(session, module):
    session.expire_all()
    progresses = (
        session.query(TrainingProgress)
        .filter_by(module_id=module.id)
        .order_by(TrainingProgress.id)
        .all()
    )
    return build_leaderboard(progresses)


def test_ranks_by_average_with_stable_ties(session, make):
    module = make.module()
    venue = make.venue()
    students = [make.student() for _ in range(4)]
    for student, average in zip(students, [70, 90, 50, 70]):
        progress = make.progress(student, module, venue)
        progress.average_score = average
    session.commit()

    board = ranked(session, module)

    assert [row["rank"] for row in board] == [1, 2, 3, 4]
    assert [row["averageScore"] for row in board] == [90, 70, 70, 50]
    assert [row["student"]["id"] for row in board] == [
        students[1].id, students[0].id, students[3].id, students[2].id,
    ]
    assert find_position(board, students[3].id)["rank"] == 3
    assert find_position(board, 12345) is None


def test_attendance_percentage_counts_full_present_days(session, make):
    module = make.module()
    progress = make.progress(make.student(), module, make.venue())
    start = date(2024, 6, 10)
    add_day(progress, start, PRESENT, PRESENT)
    add_day(progress, start + timedelta(days=1), PRESENT, PRESENT)
    add_day(progress, start + timedelta(days=2), PRESENT, PRESENT)
    add_day(progress, start + timedelta(days=3), PRESENT, ABSENT)
    session.commit()

    summary = ranked(session, module)[0]["attendance"]

    assert summary == {
        "present": 3,
        "absent": 0,
        "onDuty": 0,
        "partial": 1,
        "total": 4,
        "percentage": 75,
    }


def test_on_duty_days_are_not_counted_present(session, make):
    module = make.module()
    progress = make.progress(make.student(), module, make.venue())
    add_day(progress, date(2024, 6, 10), ON_DUTY, PRESENT)
    add_day(progress, date(2024, 6, 11), ABSENT, None)
    add_day(progress, date(2024, 6, 12), PRESENT, PRESENT)
    session.commit()

    summary = ranked(session, module)[0]["attendance"]

    assert (summary["onDuty"], summary["absent"], summary["present"]) == (1, 1, 1)
    assert summary["percentage"] == 33


def test_percentage_rounds_half_up(session, make):
    module = make.module()
    progress = make.progress(make.student(), module, make.venue())
    start = date(2024, 6, 10)
    for offset in range(8):
        marks = (PRESENT, PRESENT) if offset < 5 else (ABSENT, ABSENT)
        add_day(progress, start + timedelta(days=offset), *marks)
    session.commit()

    # 5 of 8 days is 62.5%
    assert attendance_summary(progress)["percentage"] == 63


def test_no_recorded_days(session, make):
    progress = make.progress(make.student(), make.module(), make.venue())
    assert attendance_summary(progress)["percentage"] == 0
    assert attendance_summary(progress)["total"] == 0

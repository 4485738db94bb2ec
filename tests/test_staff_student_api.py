import pytest
from httpx import AsyncClient

from trainhub.models import AttendanceEntry

from conftest import PASSWORD, bearer


@pytest.fixture(name="venue_with_staff")
def venue_with_staff_fixture(make):
    module = make.module(exams_count=1)
    venue = make.venue()
    staff = make.staff(email="priya@example.com", venue=venue, status="assigned")
    venue.status = "assigned"
    make.session.commit()
    students = [make.student() for _ in range(2)]
    for student in students:
        make.progress(student, module, venue)
    return module, venue, staff, students


@pytest.mark.asyncio
async def test_staff_login_and_profile(client: AsyncClient, venue_with_staff):
    _, venue, _, _ = venue_with_staff

    response = await client.post("/staff/login", json={"email": "priya@example.com", "password": "nope"})
    assert response.status_code == 401

    response = await client.post("/staff/login", json={"email": "priya@example.com", "password": PASSWORD})
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    me = await client.get("/staff/me", headers=headers)
    assert me.json()["staff"]["venueId"] == venue.id

    roster = await client.get("/staff/venue-students", headers=headers)
    assert len(roster.json()["students"]) == 2


@pytest.mark.asyncio
async def test_staff_marks_only_listed_students(app, client: AsyncClient, session, mailer, venue_with_staff):
    _, _, staff, students = venue_with_staff
    headers = bearer(app, staff.id, "staff")
    payload = {
        "date": "2024-06-10",
        "session": "afternoon",
        "attendanceData": [{"studentId": students[0].id, "present": False}],
    }

    response = await client.post("/staff/mark-attendance", json=payload, headers=headers)

    assert response.status_code == 200
    assert response.json()["summary"]["updated"] == 1
    assert mailer.sent == []
    session.expire_all()
    entries = session.query(AttendanceEntry).all()
    assert len(entries) == 1
    assert entries[0].afternoon.is_absent
    assert entries[0].forenoon is None


@pytest.mark.asyncio
async def test_staff_history_and_leaderboard(app, client: AsyncClient, venue_with_staff):
    _, _, staff, students = venue_with_staff
    headers = bearer(app, staff.id, "staff")
    for day_session in ("forenoon", "afternoon"):
        await client.post(
            "/staff/mark-attendance",
            json={
                "date": "2024-06-10",
                "session": day_session,
                "attendanceData": [
                    {"studentId": students[0].id, "present": True},
                    {"studentId": students[1].id, "present": False},
                ],
            },
            headers=headers,
        )

    history = (await client.get("/staff/attendance-history", headers=headers)).json()["attendanceHistory"]
    assert history[0]["date"] == "2024-06-10"
    assert [s["id"] for s in history[0]["present"]] == [students[0].id]
    assert [s["id"] for s in history[0]["absent"]] == [students[1].id]

    board = (await client.get("/staff/venue-leaderboard", headers=headers)).json()["leaderboard"]
    assert board[0]["attendance"]["percentage"] == 100


@pytest.mark.asyncio
async def test_unassigned_staff_cannot_mark(app, client: AsyncClient, make):
    staff = make.staff()
    response = await client.post(
        "/staff/mark-attendance",
        json={"date": "2024-06-10", "session": "forenoon", "attendanceData": []},
        headers=bearer(app, staff.id, "staff"),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_student_login_and_own_records(client: AsyncClient, venue_with_staff):
    module, _, _, students = venue_with_staff
    me, other = students

    response = await client.post("/student/login", json={"regNo": me.reg_no, "password": PASSWORD})
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    own = await client.get(f"/student/{me.id}", headers=headers)
    assert own.status_code == 200
    assert own.json()["modules"][0]["id"] == module.id

    performance = await client.get(f"/student/{me.id}/module/{module.id}", headers=headers)
    assert performance.json()["progress"]["examScores"] == [{"exam": 1, "score": 0}]

    foreign = await client.get(f"/student/{other.id}", headers=headers)
    assert foreign.status_code == 403

    board = await client.get(f"/student/module/{module.id}/leaderboard", headers=headers)
    assert board.json()["myPosition"]["student"]["id"] == me.id


@pytest.mark.asyncio
async def test_student_login_unknown_reg_no(client: AsyncClient):
    response = await client.post("/student/login", json={"regNo": "NOPE", "password": PASSWORD})
    assert response.status_code == 404

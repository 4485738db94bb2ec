import pytest

from trainhub.exceptions import ConflictError, NotFoundError
from trainhub.models import AssignmentStatus, Staff, Venue
from trainhub.services import assignment


def reload(session, model, pk):
    session.expire_all()
    return session.get(model, pk)


def test_assign_pairs_staff_and_venue(session, make):
    staff, venue = make.staff(), make.venue()

    assignment.assign_staff(session, staff.id, venue.id)

    staff = reload(session, Staff, staff.id)
    assert staff.status == AssignmentStatus.ASSIGNED
    assert staff.venue_id == venue.id
    assert staff.venue.status == AssignmentStatus.ASSIGNED
    assert staff.venue.staff.id == staff.id


def test_assigned_staff_cannot_take_second_venue(session, make):
    staff, first, second = make.staff(), make.venue(), make.venue()
    assignment.assign_staff(session, staff.id, first.id)

    with pytest.raises(ConflictError):
        assignment.assign_staff(session, staff.id, second.id)

    assert reload(session, Staff, staff.id).venue_id == first.id
    assert reload(session, Venue, second.id).status == AssignmentStatus.UNASSIGNED


def test_assigned_venue_cannot_take_second_staff(session, make):
    first, second, venue = make.staff(), make.staff(), make.venue()
    assignment.assign_staff(session, first.id, venue.id)

    with pytest.raises(ConflictError):
        assignment.assign_staff(session, second.id, venue.id)

    second = reload(session, Staff, second.id)
    assert second.status == AssignmentStatus.UNASSIGNED
    assert second.venue_id is None


def test_assign_unknown_records(session, make):
    staff, venue = make.staff(), make.venue()
    with pytest.raises(NotFoundError):
        assignment.assign_staff(session, 999, venue.id)
    with pytest.raises(NotFoundError):
        assignment.assign_staff(session, staff.id, 999)


def test_unassign_frees_both_sides(session, make):
    staff, venue = make.staff(), make.venue()
    assignment.assign_staff(session, staff.id, venue.id)

    assignment.unassign_staff(session, staff.id)

    staff = reload(session, Staff, staff.id)
    assert staff.status == AssignmentStatus.UNASSIGNED
    assert staff.venue_id is None
    assert reload(session, Venue, venue.id).status == AssignmentStatus.UNASSIGNED

    # the freed venue can be assigned again
    assignment.assign_staff(session, make.staff().id, venue.id)


def test_unassign_requires_assignment(session, make):
    with pytest.raises(ConflictError):
        assignment.unassign_staff(session, make.staff().id)


def test_unassign_all(session, make):
    pairs = [(make.staff(), make.venue()) for _ in range(2)]
    for staff, venue in pairs:
        assignment.assign_staff(session, staff.id, venue.id)
    make.staff()

    counts = assignment.unassign_all(session)

    assert counts == {"staffReset": 2, "venuesReset": 2, "failed": 0}
    session.expire_all()
    assert session.query(Staff).filter(Staff.venue_id.isnot(None)).count() == 0
    assert session.query(Venue).filter_by(status=AssignmentStatus.ASSIGNED).count() == 0

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.exceptions import ConflictError, NotFoundError
from trainhub.models import AssignmentStatus, Staff, Venue

log = logging.getLogger(__name__)


def assign_staff(session: Session, staff_id: int, venue_id: int) -> tuple[Staff, Venue]:
    """Pair one unassigned staff member with one unassigned venue, or change nothing."""
    staff = session.get(Staff, staff_id)
    if not staff:
        raise NotFoundError("Staff not found")
    venue = session.get(Venue, venue_id)
    if not venue:
        raise NotFoundError("Venue not found")

    if staff.status == AssignmentStatus.ASSIGNED or staff.venue_id is not None:
        raise ConflictError("Staff is already assigned to a venue")
    if venue.status == AssignmentStatus.ASSIGNED or venue.staff is not None:
        raise ConflictError("Venue is already assigned to a staff member")

    staff.status = AssignmentStatus.ASSIGNED
    staff.venue = venue
    venue.status = AssignmentStatus.ASSIGNED
    session.commit()
    log.info("Assigned staff %s to venue %s", staff.id, venue.id)
    return staff, venue


def unassign_staff(session: Session, staff_id: int) -> Staff:
    staff = session.get(Staff, staff_id)
    if not staff:
        raise NotFoundError("Staff not found")
    if staff.status != AssignmentStatus.ASSIGNED or staff.venue_id is None:
        raise ConflictError("Staff is not assigned to any venue")

    venue = session.get(Venue, staff.venue_id)
    if venue:
        venue.status = AssignmentStatus.UNASSIGNED
    staff.status = AssignmentStatus.UNASSIGNED
    staff.venue = None
    session.commit()
    log.info("Unassigned staff %s", staff.id)
    return staff


def unassign_all(session: Session) -> dict:
    """Reset every assigned staff member and venue; each reset stands on its own."""
    staff_reset = venues_reset = failed = 0

    for staff in session.query(Staff).filter(Staff.status == AssignmentStatus.ASSIGNED).all():
        try:
            staff.status = AssignmentStatus.UNASSIGNED
            staff.venue = None
            session.commit()
            staff_reset += 1
        except SQLAlchemyError as e:
            session.rollback()
            failed += 1
            log.warning("Could not unassign staff %s: %s", staff.id, e)

    for venue in session.query(Venue).filter(Venue.status == AssignmentStatus.ASSIGNED).all():
        try:
            venue.status = AssignmentStatus.UNASSIGNED
            session.commit()
            venues_reset += 1
        except SQLAlchemyError as e:
            session.rollback()
            failed += 1
            log.warning("Could not unassign venue %s: %s", venue.id, e)

    log.info("Emergency unassign: %d staff, %d venues, %d failed", staff_reset, venues_reset, failed)
    return {"staffReset": staff_reset, "venuesReset": venues_reset, "failed": failed}

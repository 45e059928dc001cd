"""Registration services.

- base: create/update/lookup flows shared by parent registrations
- mentors: mentors and their project ideas
- attendees: attendees, their sub-records, decisions and listing
- checkins: event check-in
"""

from hackreg.server.services.attendees import ATTENDEE_RELATIONS, AttendeeService
from hackreg.server.services.base import RegistrationService
from hackreg.server.services.checkins import CheckInService
from hackreg.server.services.mentors import MENTOR_RELATIONS, MentorService

__all__ = [
    "ATTENDEE_RELATIONS",
    "AttendeeService",
    "CheckInService",
    "MENTOR_RELATIONS",
    "MentorService",
    "RegistrationService",
]

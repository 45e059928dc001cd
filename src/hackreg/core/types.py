"""Shared types for hackreg.

This module defines the enums used across services, schemas and the HTTP layer.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role a user can hold.

    MENTOR and ATTENDEE are granted by registration; ADMIN and STAFF are
    granted by operators (see ``hackreg grant-role``).
    """

    ADMIN = "ADMIN"
    STAFF = "STAFF"
    MENTOR = "MENTOR"
    ATTENDEE = "ATTENDEE"


# Roles allowed to act on other users' registrations
ORGANIZERS: frozenset[Role] = frozenset({Role.ADMIN, Role.STAFF})


class DecisionStatus(str, Enum):
    """Review decision of an attendee application."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WAITLISTED = "WAITLISTED"


class ShirtSize(str, Enum):
    """Accepted t-shirt sizes."""

    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


class Diet(str, Enum):
    """Dietary restriction of an attendee."""

    NONE = "NONE"
    VEGETARIAN = "VEGETARIAN"
    VEGAN = "VEGAN"
    GLUTEN_FREE = "GLUTEN_FREE"


class Transportation(str, Enum):
    """How an attendee travels to the event."""

    NOT_NEEDED = "NOT_NEEDED"
    BUS_REQUESTED = "BUS_REQUESTED"
    IN_STATE = "IN_STATE"
    OUT_OF_STATE = "OUT_OF_STATE"
    INTERNATIONAL = "INTERNATIONAL"


class Gender(str, Enum):
    """Self-reported gender."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    NON_BINARY = "NON_BINARY"
    OTHER = "OTHER"


class ProfessionalInterest(str, Enum):
    """What kind of position an attendee is looking for."""

    NONE = "NONE"
    INTERNSHIP = "INTERNSHIP"
    FULLTIME = "FULLTIME"
    BOTH = "BOTH"


# Waves are numbered 1..MAX_WAVE; each maps to one mailing list
MAX_WAVE = 5

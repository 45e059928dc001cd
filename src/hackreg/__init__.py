"""hackreg - Event registration backend for attendees, mentors and check-in."""

__version__ = "0.1.0"

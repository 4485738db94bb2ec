"""Administrative backend for a placement training programme."""

__version__ = "1.0.0"

"""Liftlog: workout programs, logged sessions and resumable drafts."""

__version__ = "0.1.0"

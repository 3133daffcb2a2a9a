"""JWT session lifecycle (issue, verify, rotate, revoke) for the loyalty platform API."""

__version__ = "0.1.0"

from __future__ import annotations


class CoachError(Exception):
    """Base class for errors raised by the interview coach."""


class OracleError(CoachError):
    """The text-generation service failed, timed out, or returned nothing usable."""


class SessionNotFound(CoachError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id

from __future__ import annotations


class HighScoreError(Exception):
    """Base class for errors raised by the high score service."""


class ValidationError(HighScoreError):
    """A submission was rejected before touching the store.

    The message is safe to return to the client as-is.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PersistenceError(HighScoreError):
    """The backing store could not be read or written."""


class DataShapeError(HighScoreError):
    """A stored document does not have the expected structure.

    Only raised while parsing; callers repair the document instead of
    surfacing this to clients.
    """

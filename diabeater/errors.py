"""
Error taxonomy shared by the store adapters, repositories and the moderation
workflow. Messages are plain text meant to be shown to the user as-is.
"""


class DiabeaterError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(DiabeaterError):
    """Caller input failed a precondition. Raised before any store call."""
    status_code = 400


class AuthorizationError(DiabeaterError):
    """The caller's role or claims do not permit the action."""
    status_code = 403


class NotFoundError(DiabeaterError):
    """A referenced entity does not exist in the store."""
    status_code = 404


class TransientIOError(DiabeaterError):
    """A store, blob or mail call failed. Nothing is retried automatically."""
    status_code = 503


class PartialFailure(DiabeaterError):
    """
    A multi-step workflow committed its primary write but a secondary write
    failed, e.g. a moderation decision was saved but the notification was not.

    Attributes:
        result: The value the primary step produced (the updated entity)
        cause: The exception raised by the secondary step
    """
    status_code = 200

    def __init__(self, message, result=None, cause=None):
        super().__init__(message)
        self.result = result
        self.cause = cause

class SOSError(Exception):
    """Base class for errors surfaced to the caller with a readable message."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SOSError, ValueError):
    """A required field is missing or invalid."""

    status_code = 400


class ConflictError(SOSError):
    """The operation would duplicate an existing record."""

    status_code = 409


class NotFoundError(SOSError):
    status_code = 404


class AlreadyResolvedError(NotFoundError):
    """The friend request exists but is no longer pending."""

    status_code = 409


class WriteError(SOSError):
    """The store rejected a write, e.g. by access-control policy."""

    status_code = 502


class TransientError(SOSError):
    """Network or collaborator failure; retry by re-invoking the action."""

    status_code = 503

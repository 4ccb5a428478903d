# youthblood/exceptions.py


class BackendError(Exception):
    """Base for failures talking to the external backend."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class FetchError(BackendError):
    """Non-OK status, transport failure or malformed body on a read."""


class ValidationError(BackendError):
    """The backend refused a submitted blood request."""


class NotFoundError(BackendError):
    pass


class DeleteError(BackendError):
    pass


class AuthError(BackendError):
    """Bad credentials: the auth endpoint returned no user."""

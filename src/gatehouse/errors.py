"""Service-level error taxonomy.

Learn: Services raise these instead of HTTPException so they stay usable
outside a request (CLI, tests, background jobs). main.py registers one
exception handler that turns any GatehouseError into
{"message": ...} with the error's status code.

Messages are deliberately generic. A CredentialError never says whether
the username or the password was wrong.
"""


class GatehouseError(Exception):
    """Base class. Carries an HTTP status and a public message."""

    status_code = 500
    message = "something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(GatehouseError):
    """Missing or malformed input the caller can correct."""

    status_code = 400
    message = "invalid input"


class CredentialError(GatehouseError):
    """Bad password or unknown user. Never distinguishes the two."""

    status_code = 401
    message = "invalid username or password"


class AuthorizationError(GatehouseError):
    """Missing/invalid token or account key."""

    status_code = 401
    message = "unauthorized"


class ForbiddenError(AuthorizationError):
    """Authenticated, but the role is not privileged enough."""

    status_code = 403
    message = "forbidden"


class ConflictError(GatehouseError):
    status_code = 409
    message = "username in use"


class PersistenceError(GatehouseError):
    """A store operation failed."""

    status_code = 500
    message = "something went wrong"


class NotFoundError(GatehouseError):
    status_code = 404
    message = "not found"

"""Service-level error taxonomy. Routes translate these into HTTP responses."""


class ServiceError(Exception):
    """Base error raised by services; carries a user-facing message and HTTP status."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BadRequestError(ServiceError):
    """Malformed or semantically invalid input."""

    status_code = 400


class UnauthorizedError(ServiceError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Illegal state transition or uniqueness violation."""

    status_code = 409


InvalidStateError = ConflictError


class ExpiredError(ServiceError):
    """A time-boxed secret (e.g. a recovery token) is past its lifetime."""

    status_code = 400


class TooManyRequestsError(ServiceError):
    status_code = 429


class InternalError(ServiceError):
    """Downstream dependency failure (database, mail, publisher)."""

    status_code = 500

class PaylangError(Exception):
    """Deterministic failure returned to the caller with a renderable message."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaylangError):
    status_code = 400


class NotFound(PaylangError):
    status_code = 404


class Conflict(PaylangError):
    status_code = 409


class UpstreamFailure(PaylangError):
    """The payment processor was unreachable or answered with an error."""

    status_code = 502

class AkvoraError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class ValidationError(AkvoraError):
    status_code = 400
    default_message = "Invalid request"


class MissingFieldsError(ValidationError):
    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.fields = fields


class NotFoundError(AkvoraError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AkvoraError):
    status_code = 409
    default_message = "Conflict"


class AuthError(AkvoraError):
    status_code = 401
    default_message = "Invalid or expired token"


class AuthzError(AkvoraError):
    status_code = 403
    default_message = "Access denied"

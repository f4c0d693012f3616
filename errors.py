"""Error taxonomy shared by the stores and the HTTP layer.

Every error carries the HTTP status it maps to; the app's exception handlers
turn it into the ``{success: false, error}`` envelope.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(AppError):
    # Same message for unknown names and wrong passwords
    status_code = 401
    default_message = "Invalid credentials"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Duplicate(AppError):
    status_code = 409
    default_message = "Already exists"


class Internal(AppError):
    pass

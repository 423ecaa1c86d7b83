"""Application error taxonomy.

Services raise these; the handlers registered in ``chattyagent.main`` turn
them into the ``{success: false, message, errors?}`` envelope.
"""
from typing import List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid input"


class WeakPassword(InvalidInput):
    default_message = "Password must be at least 6 characters long"


class PasswordTooLong(InvalidInput):
    default_message = "Password must be at most 72 bytes long"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Access token required"


class InvalidToken(Unauthorized):
    default_message = "Invalid or expired token"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid email or password"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class ProjectNotFound(NotFound):
    default_message = "Project not found"


class ChatNotFound(NotFound):
    default_message = "Chat not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Duplicate entry"


class DuplicateEmail(Conflict):
    default_message = "User with this email already exists"


class DuplicateName(Conflict):
    default_message = "A project with this name already exists"


class UpstreamFailure(AppError):
    status_code = 500
    default_message = "Upstream service error"

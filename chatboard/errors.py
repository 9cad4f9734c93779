"""
Typed failures raised by the account and chat services.

Each error carries the HTTP status and the plain-text message the router
answers with, so services never build responses themselves.
"""


class ChatboardError(Exception):
    status_code: int = 500
    message: str = "Something went wrong!"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Conflict(ChatboardError):
    """Signup with an email that is already registered."""

    status_code = 409
    message = "User already exists"


class InvalidCredentials(ChatboardError):
    """Unknown email or wrong password; the two cases are indistinguishable."""

    status_code = 401
    message = "Incorrect email or password"


class Unauthenticated(ChatboardError):
    status_code = 401
    message = "Please login first!"


class Forbidden(ChatboardError):
    status_code = 403
    message = "You do not have permission to edit this message!"


class NotFound(ChatboardError):
    status_code = 404
    message = "Chat not found"

"""
Errors raised by the action layer.

main.py turns every ActionError into {"success": false, "error": message}
with the error's HTTP status.
"""


class ActionError(Exception):
    """Base exception for a failed action."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class NotFound(ActionError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class Forbidden(ActionError):
    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message, status_code=403)


class Conflict(ActionError):
    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class RateLimited(ActionError):
    def __init__(self, message: str):
        super().__init__(message, status_code=429)


class ServiceUnavailable(ActionError):
    """An external service (AI provider) failed"""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)

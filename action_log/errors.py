"""Exception types shared by the server and the client.

Server-side errors carry the HTTP status the API answers with; the Flask
app turns any ``ActionLogError`` into ``{"error": ..., "details": ...}``.
"""


class ActionLogError(Exception):
    status_code = 500

    def __init__(self, message, details=None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ActionLogError):
    """A required field is missing or an entry does not match the schema."""

    status_code = 400


class AccessDeniedError(ActionLogError):
    """A stream name would resolve outside the storage root."""

    status_code = 403


class NotFoundError(ActionLogError):
    status_code = 404


class ParseError(ActionLogError):
    """Malformed JSON in a log file or an unreadable timestamp."""

    status_code = 500


class InternalError(ActionLogError):
    status_code = 500


class TransportError(ActionLogError):
    """Client-side delivery failure: network error or non-2xx response.

    ``status`` is None when no HTTP response was received.
    """

    def __init__(self, message, status=None, details=None):
        self.status = status
        super().__init__(message, details)

    def __str__(self):
        if self.status is None:
            return self.message
        return f"HTTP {self.status}: {self.message}"

"""
Application error taxonomy.

Every error raised by the service layer derives from `HandyGoError`, which
carries the HTTP status the router reports. `main.py` registers a handler that
turns them into `{"error": <message>}` payloads; no traceback ever reaches a
client.

| Exception                | Status | Raised for                                           |
|--------------------------|--------|------------------------------------------------------|
| ValidationError          | 400    | missing or malformed input                           |
| DomainPolicyError        | 400    | email outside the allowed domains                    |
| ConflictError            | 400    | duplicate email or username                          |
| AuthenticationError      | 401    | bad credentials, bad/expired code, no valid session  |
| NotFoundError            | 404    | entity vanished                                      |
| TransientDeliveryError   | 502    | email send failed (caught and logged, never returned)|
"""


class HandyGoError(Exception):
    """Base class of all errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict:
        return {"error": self.message}


class ValidationError(HandyGoError):
    status_code = 400


class DomainPolicyError(HandyGoError):
    status_code = 400


class ConflictError(HandyGoError):
    """Duplicate unique field; the message tells email and username apart."""

    status_code = 400


class AuthenticationError(HandyGoError):
    status_code = 401


class NotFoundError(HandyGoError):
    status_code = 404


class TransientDeliveryError(HandyGoError):
    """Outbound notification failed. Callers log it and carry on."""

    status_code = 502

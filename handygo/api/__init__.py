"""
API Package - FastAPI Router • Models • Session Cookie Utils • Errors
=====================================================================

Contents
--------
- fast_api
    FastAPI router with endpoints for:
      • Auth: send-code, verify-code, registration, login, logout, session
      • Users: public profile, sparse profile update
      • Messages: send, task thread (marks read), open thread, conversations, mark one read

- models
    Pydantic request/response contracts (RegistrationDetails, UserCredentials,
    VerifCode, EmailDetails, ProfileUpdate, NewMessage, UserDetails, ...).

- utils
    Signed `session-id` cookie helpers and the `get_current_user` /
    `get_optional_user` dependencies.

- exceptions
    Error taxonomy (`ValidationError`, `DomainPolicyError`, `ConflictError`,
    `AuthenticationError`, `NotFoundError`, `TransientDeliveryError`) with the
    HTTP status each maps to.

Operational Notes
-----------------
- Security: auth via HttpOnly, SameSite=lax `session-id` cookie; sessions
  live server-side and slide on every authenticated request.
"""

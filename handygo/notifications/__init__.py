"""
Outbound notifications.

- email_service: SMTP delivery (with a dev-mode console fallback) and the
  verification code template
"""

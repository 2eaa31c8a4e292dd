"""
Outbound email.

Sends HTML + plain-text mail through the SMTP relay configured in `settings`
(STARTTLS on `SMTP_PORT`). When no relay is configured the service runs in
"dev mode": messages are written to the log instead and the verification code
is echoed back to the client by the auth endpoints.

Delivery failures raise `TransientDeliveryError`; callers on the request path
log them and carry on.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from handygo.api.exceptions import TransientDeliveryError
from handygo.database.config.config import settings

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "HandyGO - Verification Code"

VERIFICATION_HTML = """\
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: #ECF86E; padding: 20px; text-align: center; border-radius: 8px 8px 0 0; }}
    .content {{ background: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px; }}
    .code-box {{ background: #fff; border: 2px solid #ECF86E; border-radius: 8px; padding: 20px; text-align: center; margin: 20px 0; }}
    .code {{ font-size: 32px; font-weight: bold; color: #000; letter-spacing: 8px; font-family: monospace; }}
    .footer {{ text-align: center; margin-top: 20px; color: #666; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1 style="margin: 0; color: #000;">HandyGO</h1></div>
    <div class="content">
      <h2>Your Verification Code</h2>
      <p>Hello!</p>
      <p>You requested a verification code for your HandyGO account. Please use the following code to complete your registration:</p>
      <div class="code-box"><div class="code">{code}</div></div>
      <p>This code will expire in <strong>{minutes} minutes</strong>.</p>
      <p>If you didn't request this code, please ignore this email.</p>
      <div class="footer">
        <p>HandyGO - Aalto University</p>
        <p>This is an automated message, please do not reply.</p>
      </div>
    </div>
  </div>
</body>
</html>
"""

VERIFICATION_TEXT = """\
HandyGO - Verification Code

Hello!

You requested a verification code for your HandyGO account. Please use the following code to complete your registration:

{code}

This code will expire in {minutes} minutes.

If you didn't request this code, please ignore this email.

HandyGO - Aalto University
This is an automated message, please do not reply."""


def is_configured() -> bool:
    """True when an SMTP relay is configured (otherwise the API is in email dev mode)."""
    return bool(settings.SMTP_HOST)


def send_email(to: str, subject: str, html: str, text: str) -> dict:
    """
    Send one email.

    Parameters
    ----------
    to : str
        Recipient address.
    subject : str
        Subject line.
    html : str
        HTML body.
    text : str
        Plain-text alternative.

    Returns
    -------
    dict
        `{"success": True, "provider": <"smtp" | "console (dev mode)">}`

    Raises
    ------
    TransientDeliveryError
        If the relay refuses the message or cannot be reached.
    """
    if not is_configured():
        logger.info("No email service configured. Would send to %s: %s", to, subject)
        logger.debug("Body: %s", text)
        return {"success": True, "provider": "console (dev mode)"}

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.SENDER_NAME, settings.SENDER_EMAIL))
    msg["To"] = to
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
            server.starttls()
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
            server.sendmail(settings.SENDER_EMAIL, [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        raise TransientDeliveryError(f"Failed to send email to {to}: {e}") from e

    logger.info("Email accepted for delivery to %s", to)
    return {"success": True, "provider": "smtp"}


def send_verification_code_email(email: str, code: str, minutes: int = 5) -> dict:
    """Render and send the verification code email."""
    return send_email(
        to=email,
        subject=VERIFICATION_SUBJECT,
        html=VERIFICATION_HTML.format(code=code, minutes=minutes),
        text=VERIFICATION_TEXT.format(code=code, minutes=minutes),
    )


def deliver_verification_code(email: str, code: str, minutes: int = 5) -> None:
    """
    Fire-and-forget wrapper used as a FastAPI background task.

    A failed delivery is logged; the code stays valid and the user can ask for
    a new one.
    """
    try:
        send_verification_code_email(email, code, minutes)
    except TransientDeliveryError as e:
        logger.error("[Email] %s", e.message)

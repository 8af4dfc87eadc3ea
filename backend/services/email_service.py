"""
Transactional email over SMTP: the OTP login code.
"""

import asyncio
import secrets
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Optional

from loguru import logger

from config.settings import settings
from .base_service import ConfigurationError, ServiceError


OTP_SUBJECT = "Your CodeLearnn Login Code"
DEFAULT_SENDER = '"CodeLearnn" <noreply@codelearnn.com>'

OTP_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin:0;padding:0;background-color:#0a0a0f;font-family:'Segoe UI',Tahoma,Geneva,Verdana,sans-serif;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#0a0a0f;">
    <tr><td align="center" style="padding:40px 20px;">
      <table role="presentation" width="100%" style="max-width:480px;background:#12121a;border-radius:16px;border:1px solid #2a2a3e;">
        <tr><td style="padding:40px 32px;">
          <div style="text-align:center;margin-bottom:32px;font-size:28px;font-weight:bold;color:#ffffff;">
            <span style="color:#00d4ff;">&lt;</span>CodeLearnn<span style="color:#7c3aed;">/&gt;</span>
          </div>
          <h1 style="color:#ffffff;font-size:24px;font-weight:600;text-align:center;margin:0 0 16px 0;">Your Verification Code</h1>
          <p style="color:#a0a0b0;font-size:15px;line-height:1.6;text-align:center;margin:0 0 32px 0;">
            Enter this code to sign in to your CodeLearnn account. It expires in {minutes} minutes.
          </p>
          <div style="background:#1e1e2e;border:1px solid #3a3a4e;border-radius:12px;padding:24px;text-align:center;margin-bottom:32px;">
            <span style="font-family:'Courier New',monospace;font-size:36px;font-weight:bold;letter-spacing:8px;color:#00d4ff;">{otp}</span>
          </div>
          <p style="color:#6b6b7b;font-size:13px;line-height:1.5;text-align:center;margin:0;">
            If you didn't request this code, you can safely ignore this email.
          </p>
        </td></tr>
        <tr><td style="padding:0 32px 32px 32px;">
          <div style="border-top:1px solid #2a2a3e;padding-top:24px;text-align:center;">
            <p style="color:#4a4a5a;font-size:12px;margin:0;">&copy; {year} CodeLearnn. Learn like an engineer.</p>
          </div>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""

OTP_TEXT_TEMPLATE = (
    "Your CodeLearnn verification code is: {otp}\n\n"
    "This code expires in {minutes} minutes.\n\n"
    "If you didn't request this code, you can safely ignore this email."
)


def generate_otp() -> str:
    """Random 6-digit code."""
    return str(100000 + secrets.randbelow(900000))


def build_otp_message(email: str, otp: str, sender: Optional[str] = None) -> EmailMessage:
    minutes = settings.otp_ttl_seconds // 60

    message = EmailMessage()
    message["Subject"] = OTP_SUBJECT
    message["From"] = sender or settings.smtp_from or DEFAULT_SENDER
    message["To"] = email
    message.set_content(OTP_TEXT_TEMPLATE.format(otp=otp, minutes=minutes))
    message.add_alternative(
        OTP_HTML_TEMPLATE.format(otp=otp, minutes=minutes, year=datetime.utcnow().year),
        subtype="html",
    )
    return message


class EmailService:
    """SMTP sender. The blocking ``smtplib`` session runs in a worker thread."""

    def _deliver(self, message: EmailMessage):
        if settings.smtp_secure:
            with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
                smtp.login(settings.smtp_user, settings.smtp_pass)
                smtp.send_message(message)
        else:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
                smtp.starttls()
                smtp.login(settings.smtp_user, settings.smtp_pass)
                smtp.send_message(message)

    async def send_otp_email(self, email: str, otp: str):
        if not settings.smtp_configured:
            raise ConfigurationError("Email service not configured", service="EmailService")

        try:
            await asyncio.to_thread(self._deliver, build_otp_message(email, otp))
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email send error for {email}: {e}")
            raise ServiceError("Failed to send verification email", service="EmailService") from e

        logger.info(f"OTP email sent to {email}")


# Global instance
email_service = EmailService()

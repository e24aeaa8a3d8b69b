"""
SaveIt.AI transactional email

SMTP delivery for one-time codes and login-confirmation links.
"""

from __future__ import annotations

import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from functools import lru_cache
from html import escape

from saveit.accounts.models import OTPPurpose
from saveit.config import LOGIN_CONFIRMATION_TTL_MINUTES, OTP_TTL_MINUTES
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter
from saveit.utils.redaction import mask_email

logger = get_logger(__name__)

OTP_SUBJECTS = {
    OTPPurpose.SIGNUP.value: "Welcome to SaveIt.AI - Verify Your Email",
    OTPPurpose.LOGIN.value: "SaveIt.AI - Your Login OTP",
    OTPPurpose.FORGOT_PASSWORD.value: "SaveIt.AI - Reset Your Password",
}

OTP_INTROS = {
    OTPPurpose.SIGNUP.value: "Thanks for signing up! Use this code to verify your email address.",
    OTPPurpose.LOGIN.value: "Use this code to finish signing in.",
    OTPPurpose.FORGOT_PASSWORD.value: "Use this code to reset your password.",
}


class EmailService:
    """Sends account emails over SMTP (Gmail by default)."""

    def __init__(
        self,
        smtp_host: str | None = None,
        smtp_port: int | None = None,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
        from_name: str = "SaveIt.AI",
    ):
        """
        Initialize SMTP delivery

        Environment variables (if params not provided):
        - SMTP_HOST: SMTP server hostname (default: smtp.gmail.com)
        - SMTP_PORT: SMTP server port (default: 587)
        - SMTP_USER: SMTP username
        - SMTP_PASSWORD: SMTP password (a Gmail app password)
        - SMTP_FROM_EMAIL: From email address (default: SMTP_USER)
        - SMTP_FROM_NAME: From name (default: "SaveIt.AI")
        """
        self.smtp_host = smtp_host or os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.smtp_port = smtp_port or int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = smtp_user or os.getenv("SMTP_USER")
        self.smtp_password = smtp_password or os.getenv("SMTP_PASSWORD")
        self.from_email = from_email or os.getenv("SMTP_FROM_EMAIL", self.smtp_user)
        self.from_name = os.getenv("SMTP_FROM_NAME", from_name)

        if not all([self.smtp_host, self.smtp_user, self.smtp_password, self.from_email]):
            logger.warning("SMTP not configured; account emails will not be sent.")
            self.enabled = False
        else:
            self.enabled = True
            logger.info("SMTP delivery configured: %s:%s", self.smtp_host, self.smtp_port)

    def send(self, to_email: str, subject: str, html: str, text: str) -> bool:
        """
        Send one email with HTML and plaintext parts.

        Returns:
            True if sent successfully, False otherwise (never raises)
        """
        if not self.enabled:
            logger.warning("Email to %s skipped: SMTP disabled", mask_email(to_email))
            counter("email.skipped")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg["Date"] = formatdate(localtime=False)
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=15) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", mask_email(to_email), e)
            counter("email.failed")
            return False

        logger.info("Email sent to %s: %s", mask_email(to_email), subject)
        counter("email.sent")
        return True

    def send_otp(self, to_email: str, otp: str, purpose: str, name: str = "") -> bool:
        subject = OTP_SUBJECTS.get(purpose, OTP_SUBJECTS[OTPPurpose.SIGNUP.value])
        intro = OTP_INTROS.get(purpose, OTP_INTROS[OTPPurpose.SIGNUP.value])
        greeting = f"Hi {name}," if name else "Hi,"

        text = (
            f"{greeting}\n\n{intro}\n\n    {otp}\n\n"
            f"This code expires in {OTP_TTL_MINUTES} minutes. "
            "If you didn't request it, you can ignore this email.\n\n- SaveIt.AI"
        )
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 480px; margin: 0 auto;">
          <h2 style="color: #6366f1;">SaveIt.AI</h2>
          <p>{escape(greeting)}</p>
          <p>{escape(intro)}</p>
          <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px;">{escape(otp)}</p>
          <p style="color: #6b7280;">This code expires in {OTP_TTL_MINUTES} minutes.
          If you didn't request it, you can ignore this email.</p>
        </div>
        """
        return self.send(to_email, subject, html, text)

    def send_login_confirmation(
        self,
        to_email: str,
        username: str,
        user_email: str,
        confirm_url: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        location: str = "Unknown",
    ) -> bool:
        """Email an approval link for a pending login to the account owner."""
        subject = "SaveIt.AI - Confirm Login Attempt"
        details = [
            ("User", f"{username} ({user_email})"),
            ("IP address", ip_address or "Unknown"),
            ("Device", user_agent or "Unknown"),
            ("Location", location),
        ]
        text = (
            "A login to SaveIt.AI is waiting for your approval.\n\n"
            + "\n".join(f"{label}: {value}" for label, value in details)
            + f"\n\nApprove it: {confirm_url}\n\n"
            f"The link expires in {LOGIN_CONFIRMATION_TTL_MINUTES} minutes. "
            "If this wasn't you, ignore this email and the login will not complete."
        )
        rows = "".join(
            f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(value)}</td></tr>"
            for label, value in details
        )
        html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 520px; margin: 0 auto;">
          <h2 style="color: #6366f1;">Confirm login attempt</h2>
          <table cellpadding="4">{rows}</table>
          <p><a href="{escape(confirm_url)}"
                style="background: #6366f1; color: #fff; padding: 10px 18px;
                       border-radius: 6px; text-decoration: none;">Confirm login</a></p>
          <p style="color: #6b7280;">The link expires in {LOGIN_CONFIRMATION_TTL_MINUTES} minutes.
          If this wasn't you, ignore this email.</p>
        </div>
        """
        return self.send(to_email, subject, html, text)


@lru_cache(maxsize=1)
def get_email_service() -> EmailService:
    """Shared EmailService (reads SMTP_* once)."""
    return EmailService()

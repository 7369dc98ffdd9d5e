"""Transactional email over SMTP: verification codes and password reset links."""
import logging
import smtplib
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional

from tasktracker import config

logger = logging.getLogger(__name__)

VERIFY_HTML = """\
<div style="font-family: sans-serif; max-width: 480px; margin: 0 auto; padding: 32px;">
  <h2 style="color: #1e293b;">Verify your email</h2>
  <p style="color: #475569;">Enter this code to complete your registration:</p>
  <div style="background: #f1f5f9; border-radius: 8px; padding: 24px; text-align: center; margin: 24px 0;">
    <span style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #4f46e5;">{otp}</span>
  </div>
  <p style="color: #94a3b8; font-size: 14px;">This code expires in 10 minutes. If you didn't create an account, ignore this email.</p>
</div>
"""

RESET_HTML = """\
<div style="font-family: sans-serif; max-width: 480px; margin: 0 auto; padding: 32px;">
  <h2 style="color: #1e293b;">Reset your password</h2>
  <p style="color: #475569;">Click the button below to set a new password:</p>
  <div style="text-align: center; margin: 24px 0;">
    <a href="{url}" style="display: inline-block; background: #4f46e5; color: white; padding: 12px 32px; border-radius: 8px; text-decoration: none; font-weight: 600;">Reset Password</a>
  </div>
  <p style="color: #94a3b8; font-size: 14px;">This link expires in 1 hour. If you didn't request a reset, ignore this email.</p>
  <p style="color: #cbd5e1; font-size: 12px; word-break: break-all;">Or copy this link: {url}</p>
</div>
"""


class Mailer:
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_addr: str = "",
        from_name: str = "Task Tracker",
        frontend_url: str = "http://localhost:3000",
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_addr = from_addr or username
        self.from_name = from_name
        self.frontend_url = frontend_url.rstrip("/")

    def reset_url(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={token}"

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> None:
        if not self.host or not self.from_addr:
            logger.warning("SMTP not configured, dropping email %r to %s", subject, to)
            return
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.from_addr}>'
        msg["To"] = to
        msg.set_content(text or subject)
        msg.add_alternative(html, subtype="html")

        # 465 is implicit TLS, anything else upgrades with STARTTLS
        if self.port == 465:
            smtp = smtplib.SMTP_SSL(host=self.host, port=self.port, timeout=15)
        else:
            smtp = smtplib.SMTP(host=self.host, port=self.port, timeout=15)
        with smtp as s:
            s.ehlo()
            if self.port != 465:
                s.starttls()
                s.ehlo()
            if self.username and self.password:
                s.login(self.username, self.password)
            s.send_message(msg)
        logger.info("Email sent to %s: %s", to, subject)

    def send_verification_email(self, to: str, otp: str) -> None:
        self.send(
            to,
            "Verify Your Email - Task Tracker",
            VERIFY_HTML.format(otp=otp),
            text=f"Your verification code is {otp}. It expires in 10 minutes.",
        )

    def send_password_reset_email(self, to: str, token: str) -> None:
        url = self.reset_url(token)
        self.send(
            to,
            "Reset Your Password - Task Tracker",
            RESET_HTML.format(url=url),
            text=f"Reset your password within the next hour: {url}",
        )


@lru_cache(maxsize=1)
def _default_mailer() -> Mailer:
    return Mailer(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER,
        password=config.SMTP_PASS,
        from_addr=config.FROM_EMAIL,
        from_name=config.FROM_NAME,
        frontend_url=config.FRONTEND_URL,
    )


def get_mailer() -> Mailer:
    return _default_mailer()

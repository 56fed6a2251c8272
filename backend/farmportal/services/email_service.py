"""
Email Service for the CSS Farms Training Portal
===============================================
Handles outbound email:
- Registration verification codes
- Password reset links

Transport priority:
1. Explicit SMTP (SMTP_HOST + SMTP_USER/SMTP_PASS)
2. Provider shortcut (EMAIL_SERVICE + EMAIL_USER/EMAIL_PASS)
3. Development fallback: nothing is sent, the code/link is logged and the
   send reports success. In production the fallback reports failure.
"""

import aiosmtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from datetime import datetime

from farmportal.core.config import Settings, settings, EMAIL_SERVICE_HOSTS
from farmportal.core.logging_config import logger


@dataclass
class SMTPTransport:
    """Resolved SMTP connection parameters"""
    name: str
    host: str
    port: int
    secure: bool
    username: str
    password: str


def resolve_transport(config: Optional[Settings] = None) -> Optional[SMTPTransport]:
    """Pick the mail transport from settings; None means development fallback"""
    config = config or settings
    user = config.SMTP_USER or config.EMAIL_USER
    password = config.SMTP_PASS or config.EMAIL_PASS

    if config.SMTP_HOST and user and password:
        return SMTPTransport(
            name="smtp",
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            secure=config.SMTP_SECURE,
            username=user,
            password=password,
        )

    service = (config.EMAIL_SERVICE or "gmail").strip().lower()
    if user and password and service in EMAIL_SERVICE_HOSTS:
        provider = EMAIL_SERVICE_HOSTS[service]
        return SMTPTransport(
            name=service,
            host=provider["host"],
            port=provider["port"],
            secure=provider["secure"],
            username=user,
            password=password,
        )

    return None


class EmailService:
    """Async email service over SMTP"""

    def __init__(self):
        self.from_email = settings.EMAIL_FROM or settings.SMTP_USER or settings.EMAIL_USER or "noreply@cssfarms.ng"
        self.from_name = settings.EMAIL_FROM_NAME

    @property
    def transport(self) -> Optional[SMTPTransport]:
        return resolve_transport()

    @property
    def is_configured(self) -> bool:
        return self.transport is not None

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        transport = self.transport
        if transport is None:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False
        return await self._send_via_smtp(transport, to_email, subject, html_content, text_content)

    async def _send_via_smtp(
        self,
        transport: SMTPTransport,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            # Implicit TLS on secure ports, STARTTLS otherwise
            await aiosmtplib.send(
                message,
                hostname=transport.host,
                port=transport.port,
                username=transport.username,
                password=transport.password,
                use_tls=transport.secure,
                start_tls=not transport.secure,
                timeout=settings.EMAIL_SEND_TIMEOUT,
            )

            logger.log_email_event(subject, to_email, success=True, transport=transport.name)
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.log_email_event(subject, to_email, success=False, transport=transport.name, error=str(e))
            return False

    def _dev_fallback(self, label: str, to_email: str, value: str) -> bool:
        """No transport configured: log instead of sending (never in production)"""
        if settings.is_production:
            logger.error("[Email] No SMTP configuration found in production. Set SMTP_* or EMAIL_* environment variables.")
            return False
        logger.warning("[DEV] Email not configured. Returning success and logging the message.")
        logger.info(f"[DEV] {label} for {to_email}: {value}")
        return True

    # ==================== TEMPLATES ====================

    def _wrap(self, title: str, body: str) -> str:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <div style="background-color: #2d5a2d; color: white; padding: 20px; text-align: center;">
            <h1>{title}</h1>
          </div>
          <div style="padding: 30px; background-color: #f9f9f9;">
            {body}
            <p style="color: #666; margin-top: 30px;">
              Best regards,<br>
              <strong>CSS FARMS Nigeria Team</strong>
            </p>
          </div>
          <div style="background-color: #2d5a2d; color: white; padding: 15px; text-align: center; font-size: 12px;">
            <p>&copy; {datetime.utcnow().year} CSS FARMS Nigeria. All rights reserved.</p>
          </div>
        </div>
        """

    async def send_verification_email(self, to_email: str, code: str) -> bool:
        """Send the six-digit registration code"""
        if not self.is_configured:
            return self._dev_fallback("Verification code", to_email, code)

        ttl = settings.VERIFICATION_CODE_TTL_MINUTES
        html_content = self._wrap("Email Verification", f"""
            <h2 style="color: #2d5a2d;">Welcome to CSS FARMS Training Program!</h2>
            <p>Thank you for registering with CSS FARMS Nigeria. To complete your registration,
               please verify your email address using the verification code below:</p>
            <div style="background-color: white; padding: 20px; border-radius: 8px; text-align: center; margin: 20px 0;">
              <h3 style="color: #2d5a2d; margin-bottom: 10px;">Your Verification Code</h3>
              <div style="font-size: 32px; font-weight: bold; color: #2d5a2d; letter-spacing: 8px; font-family: monospace;">
                {code}
              </div>
            </div>
            <p style="color: #666;">This code will expire in {ttl} minutes.
               If you didn't request this verification, please ignore this email.</p>
        """)

        text_content = (
            f"Your CSS FARMS verification code is {code}.\n"
            f"It expires in {ttl} minutes."
        )

        return await self.send_email(
            to_email, "CSS FARMS - Email Verification Code", html_content, text_content
        )

    async def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        """Send a password reset link"""
        if not self.is_configured:
            return self._dev_fallback("Password reset URL", to_email, reset_url)

        html_content = self._wrap("Password Reset", f"""
            <p>We received a request to reset the password for your CSS FARMS account.</p>
            <p style="text-align: center;">
              <a href="{reset_url}" style="display: inline-block; background: #2d5a2d; color: white;
                 padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600;">
                Reset Password
              </a>
            </p>
            <p style="font-size: 14px; color: #666;">
              Or copy and paste this link in your browser:<br>
              <code style="word-break: break-all;">{reset_url}</code>
            </p>
            <p style="font-size: 14px; color: #666;">This link will expire in 1 hour.
               If you didn't request a password reset, please ignore this email.</p>
        """)

        text_content = f"Reset your CSS FARMS password: {reset_url}\nThis link expires in 1 hour."

        return await self.send_email(
            to_email, "CSS FARMS - Password Reset", html_content, text_content
        )


# Singleton instance
email_service = EmailService()

"""Service for sending account emails."""

import html
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Hostel Hub",
        activation_minutes: int = 5,
    ):
        self.smtp_host = smtp_host or os.getenv("SMTP_HOST", "")
        self.smtp_port = smtp_port or int(os.getenv("SMTP_PORT", "587"))
        self.smtp_username = smtp_username or os.getenv("SMTP_USERNAME", "")
        self.smtp_password = smtp_password or os.getenv("SMTP_PASSWORD", "")
        self.from_email = from_email or os.getenv("SMTP_FROM_EMAIL", "")
        self.from_name = from_name
        self.activation_minutes = activation_minutes
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send_activation_email(self, to_email: str, name: str, activation_code: str) -> bool:
        """
        Send the account activation code.

        Args:
            to_email: Recipient email
            name: Recipient display name
            activation_code: Numeric code the user types into the activation form

        Returns:
            True if sent (or logged in development), False otherwise
        """
        if not self.enabled:
            logger.info("[EMAIL] Activation code for %s: %s", to_email, activation_code)
            return True

        subject = f"Activate your account - {self.from_name}"
        safe_name = html.escape(name or "there")
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <div style="background-color: #1e3a5f; padding: 30px; border-radius: 10px; text-align: center;">
                    <h1 style="color: #f8fafc; margin: 0;">{html.escape(self.from_name)}</h1>
                    <p style="color: #cbd5e1; margin-top: 10px;">Student hostel portal</p>
                </div>

                <div style="padding: 30px 0;">
                    <h2 style="color: #1e293b; margin-bottom: 20px;">Hello {safe_name},</h2>

                    <p style="color: #475569; line-height: 1.6; margin-bottom: 20px;">
                        Thanks for registering. Enter the code below to activate your account:
                    </p>

                    <div style="text-align: center; margin: 30px 0;">
                        <span style="background-color: #f1f5f9; color: #0f172a; padding: 15px 30px;
                                     border-radius: 5px; display: inline-block; font-size: 28px;
                                     letter-spacing: 6px; font-weight: bold;">
                            {activation_code}
                        </span>
                    </div>

                    <p style="color: #64748b; font-size: 14px; margin-top: 30px;">
                        If you did not create an account, you can ignore this email.
                    </p>

                    <p style="color: #64748b; font-size: 14px; margin-top: 20px;">
                        This code expires in {self.activation_minutes} minutes.
                    </p>
                </div>
            </body>
        </html>
        """

        text_body = f"""
        {self.from_name} - Account activation

        Hello {name or "there"},

        Your activation code is: {activation_code}

        This code expires in {self.activation_minutes} minutes.

        If you did not create an account, you can ignore this email.
        """

        return self._send_email(to_email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Send an email via SMTP.

        Returns:
            True if sent successfully, False otherwise
        """
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            return True

        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return False

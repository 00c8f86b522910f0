"""Delivery of verification and password reset codes.

SmtpNotifier emails the code. LogNotifier writes it to the application log;
it is a development-only channel and is refused when ENVIRONMENT is
"production".
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import config
from core.exceptions import ConfigurationError, DeliveryError
from schemas.session import VerificationPurpose

logger = logging.getLogger(__name__)

SUBJECTS = {
    VerificationPurpose.SIGNUP: "CIRA email verification code",
    VerificationPurpose.PASSWORD_RESET: "CIRA password reset code",
}

AUTO_NOTICE = "\n\nThis is an automated message. Please do not reply to this email."


def render_body(code: str, purpose: VerificationPurpose) -> str:
    if purpose == VerificationPurpose.PASSWORD_RESET:
        intro = "Use this code to reset your CIRA password:"
    else:
        intro = "Use this code to verify your CIRA account:"
    return (
        f"{intro}\n\n    {code}\n\n"
        f"The code expires in {config.VERIFICATION_CODE_TTL_MINUTES} minutes."
        f"{AUTO_NOTICE}"
    )


class VerificationNotifier(ABC):
    """Out-of-band channel for one-time codes."""

    @abstractmethod
    def send_code(self, email: str, code: str, purpose: VerificationPurpose) -> None:
        """Deliver ``code`` to ``email``.

        Raises:
            DeliveryError: If the message could not be sent.
        """


class SmtpNotifier(VerificationNotifier):
    """Sends codes as plain-text email over SMTP."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None,
    ):
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.user = user if user is not None else config.SMTP_USER
        self.password = password if password is not None else config.SMTP_PASSWORD
        self.sender = sender or config.EMAIL_FROM
        self.use_tls = config.SMTP_USE_TLS if use_tls is None else use_tls

    def send_code(self, email: str, code: str, purpose: VerificationPurpose) -> None:
        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = email
        msg["Subject"] = SUBJECTS[VerificationPurpose(purpose)]
        msg.attach(MIMEText(render_body(code, purpose), "plain"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.sender, [email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send %s code to %s: %s",
                VerificationPurpose(purpose).value,
                email,
                e,
            )
            raise DeliveryError(f"Could not send email to {email}") from e
        logger.info("Sent %s code to %s", VerificationPurpose(purpose).value, email)


class LogNotifier(VerificationNotifier):
    """Writes codes to the log. Development builds only."""

    def send_code(self, email: str, code: str, purpose: VerificationPurpose) -> None:
        logger.warning(
            "[dev email] %s code for %s: %s",
            VerificationPurpose(purpose).value,
            email,
            code,
        )


def create_notifier() -> VerificationNotifier:
    """Build the notifier selected by EMAIL_DELIVERY.

    Raises:
        ConfigurationError: For an unknown channel, or the log channel in
            production.
    """
    channel = config.EMAIL_DELIVERY
    if channel == "smtp":
        return SmtpNotifier()
    if channel == "log":
        if config.ENVIRONMENT == "production":
            raise ConfigurationError(
                "EMAIL_DELIVERY=log is not allowed in production; configure SMTP"
            )
        return LogNotifier()
    raise ConfigurationError(f"Unknown EMAIL_DELIVERY: {channel}")

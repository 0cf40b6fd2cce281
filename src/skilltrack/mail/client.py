"""Outbound mail client.

Sends password reset and account notices over SMTP. When mail is disabled in
config (the default) messages are written to the log instead, so development
and tests never need a mail server.
"""

from __future__ import annotations

import smtplib
from collections import deque
from dataclasses import dataclass, field
from email.message import EmailMessage

import structlog

from skilltrack.config.app_config import MailConfig, RetryConfig, load_app_config
from skilltrack.utils.retry import retry_operation

logger = structlog.get_logger(__name__)

# Recent messages kept in memory for inspection
OUTBOX_SIZE = 100


@dataclass
class OutgoingMail:
    """A message ready to send."""

    to: str
    subject: str
    body: str


@dataclass
class MailClient:
    """SMTP mail client with retry on transient network errors."""

    config: MailConfig = field(default_factory=lambda: load_app_config().mail)
    retry: RetryConfig = field(default_factory=lambda: load_app_config().retry)
    outbox: deque[OutgoingMail] = field(default_factory=lambda: deque(maxlen=OUTBOX_SIZE))

    def send(self, mail: OutgoingMail) -> None:
        """Send a message, or log it when mail is disabled.

        Raises:
            RetryExhaustedError: If the SMTP server stays unreachable
        """
        self.outbox.append(mail)

        if not self.config.enabled:
            logger.info(
                "mail.logged",
                to=mail.to,
                subject=mail.subject,
                body=mail.body,
            )
            return

        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = mail.to
        message["Subject"] = mail.subject
        message.set_content(mail.body)

        retry_operation(
            lambda: self._deliver(message),
            max_retries=self.retry.max_retries,
            initial_delay=self.retry.initial_delay,
            max_delay=self.retry.max_delay,
            jitter=self.retry.jitter,
        )
        logger.info("mail.sent", to=mail.to, subject=mail.subject)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=30) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.username:
                smtp.login(self.config.username, self.config.get_password() or "")
            smtp.send_message(message)

    # =========================================================================
    # MESSAGES
    # =========================================================================

    def send_password_reset(self, to: str, full_name: str, token: str) -> None:
        link = f"{self.config.base_url.rstrip('/')}/reset-password?token={token}"
        self.send(
            OutgoingMail(
                to=to,
                subject="Reset your SkillTrack password",
                body=(
                    f"Hello {full_name},\n\n"
                    "We received a request to reset your password. "
                    f"Open the link below to choose a new one:\n\n{link}\n\n"
                    "If you did not request this, you can ignore this email."
                ),
            )
        )

    def send_account_created(self, to: str, full_name: str, role: str) -> None:
        self.send(
            OutgoingMail(
                to=to,
                subject="Your SkillTrack account",
                body=(
                    f"Hello {full_name},\n\n"
                    f"An {role} account has been created for you on SkillTrack. "
                    f"Sign in at {self.config.base_url} with this email address."
                ),
            )
        )


_default_client: MailClient | None = None


def get_mail_client() -> MailClient:
    """Process-wide mail client built from the current config."""
    global _default_client
    if _default_client is None:
        _default_client = MailClient()
    return _default_client


def set_mail_client(client: MailClient | None) -> None:
    """Replace the process-wide mail client (None resets to config)."""
    global _default_client
    _default_client = client

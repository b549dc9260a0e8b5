"""Email alerts for newly detected IPOs."""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Callable, Protocol, runtime_checkable

from ipo_radar.core.config import NotifierConfig
from ipo_radar.models import DEFAULT_SHARE_TYPE, DispatchResult, IPORecord, format_price

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when an alert could not be sent."""

    pass


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Protocol for alert channels."""

    def notify(self, records: list[IPORecord]) -> DispatchResult:
        """Send one alert describing the given records.

        Raises:
            NotificationError: If the alert could not be delivered
        """
        ...


def select_alert_records(records: list[IPORecord]) -> list[IPORecord]:
    """Keep only records worth alerting about (OPEN or COMING_SOON)."""
    return [r for r in records if r.is_alertable]


def _record_html(record: IPORecord) -> str:
    e = html.escape
    return f"""
    <div style="border: 1px solid #ddd; padding: 15px; margin-bottom: 10px; border-radius: 8px;">
      <h3 style="margin-top:0; color: #10b981;">{e(record.company_name)} ({e(record.status.value)})</h3>
      <p><strong>Sector:</strong> {e(record.sector or "N/A")}</p>
      <p><strong>Target Group:</strong> {e(record.share_type or DEFAULT_SHARE_TYPE)}</p>
      <p><strong>Price:</strong> {e(format_price(record.price))}</p>
      <p><strong>Opening:</strong> {e(record.opening_date or "TBA")}</p>
      <p><strong>Closing:</strong> {e(record.closing_date or "TBA")}</p>
      <p>{e(record.description)}</p>
    </div>"""


def build_alert_email(records: list[IPORecord]) -> tuple[str, str]:
    """Render the alert subject and HTML body."""
    noun = "Company" if len(records) == 1 else "Companies"
    subject = f"New IPO Alert: {len(records)} {noun} Detected!"
    body = f"""
    <div style="font-family: Arial, sans-serif; color: #333;">
      <h2>New IPOs Detected in Nepal</h2>
      <p>The automated radar system has detected new IPO opportunities:</p>
      {"".join(_record_html(r) for r in records)}
      <p style="font-size: 12px; color: #666; margin-top: 20px;">
        This is an automated message from your Nepal IPO Radar App.
      </p>
    </div>"""
    return subject, body


class EmailNotifier:
    """Sends one HTML email per alert over SMTP.

    The configured recipient always gets the alert; subscribers are added
    as BCC when `include_subscribers` is set.
    """

    def __init__(
        self,
        config: NotifierConfig,
        subscribers: Callable[[], list[str]] | None = None,
    ):
        """Initialize the notifier.

        Args:
            config: SMTP and recipient settings
            subscribers: Returns subscriber addresses at send time
        """
        self.config = config
        self._subscribers = subscribers

    def _recipients(self) -> tuple[list[str], list[str]]:
        to = [self.config.recipient or self.config.username]
        bcc: list[str] = []
        if self.config.include_subscribers and self._subscribers:
            bcc = [email for email in self._subscribers() if email not in to]
        return to, bcc

    def _send(self, message: MIMEMultipart, recipients: list[str]) -> None:
        cfg = self.config
        if cfg.smtp_port == 465:
            with smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port) as smtp:
                smtp.login(cfg.username, cfg.password)
                smtp.sendmail(cfg.username, recipients, message.as_string())
        else:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port) as smtp:
                smtp.starttls()
                smtp.login(cfg.username, cfg.password)
                smtp.sendmail(cfg.username, recipients, message.as_string())

    def notify(self, records: list[IPORecord]) -> DispatchResult:
        if not records:
            return DispatchResult(success=True, message="No IPOs to alert about.")

        if not self.config.has_credentials:
            raise NotificationError("Server misconfiguration: Missing email credentials.")

        to, bcc = self._recipients()
        subject, body = build_alert_email(records)

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f'"{self.config.sender_name}" <{self.config.username}>'
        message["To"] = ", ".join(to)
        message.attach(MIMEText(body, "html"))

        recipients = to + bcc
        try:
            self._send(message, recipients)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email: {e}") from e

        logger.info(f"Alert for {len(records)} IPOs sent to {len(recipients)} recipients")
        return DispatchResult(success=True, message="Email sent successfully", recipients=len(recipients))

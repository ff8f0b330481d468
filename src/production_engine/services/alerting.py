"""Late video notifications via email and Discord."""

import smtplib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from uuid import UUID

import httpx

from production_engine.config import Settings, get_settings
from production_engine.logging import get_logger

logger = get_logger(__name__)

LATE_COLOR = 0xE74C3C  # Red


@dataclass
class LateVideoNotice:
    """Payload describing a video that has just become late."""

    video_id: UUID
    video_title: str
    project_name: str
    client_name: str | None = None
    assignee_name: str | None = None
    assignee_email: str | None = None
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def subject(self) -> str:
        return f"Late video: {self.video_title}"

    def fields(self) -> dict[str, str]:
        return {
            "Video": self.video_title,
            "Project": self.project_name,
            "Client": self.client_name or "-",
            "Assignee": self.assignee_name or "Unassigned",
        }


@dataclass
class NotificationResult:
    """Per-channel outcome of one notification."""

    email: bool | None = None
    discord: bool | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        """True if at least one configured channel succeeded."""
        return bool(self.email or self.discord)

    @property
    def attempted(self) -> bool:
        return self.email is not None or self.discord is not None


class LateVideoNotifier:
    """Tells the assignee and the admins that a video is late.

    Supports:
    - Email via SMTP to the assignee and every admin address
    - Discord webhook for the team channel
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.discord_webhook_url = self.settings.alert_discord_webhook_url
        self.email_enabled = bool(
            self.settings.alert_email_smtp_host and self.settings.alert_email_from
        )

    def recipients(self, notice: LateVideoNotice) -> list[str]:
        """Assignee first, then admins, without duplicates."""
        addresses = []
        for address in [notice.assignee_email, *self.settings.alert_admin_emails]:
            if address and address not in addresses:
                addresses.append(address)
        return addresses

    async def notify(self, notice: LateVideoNotice) -> NotificationResult:
        """Send the notice via all configured channels.

        Channel failures are logged and reported, never raised.
        """
        result = NotificationResult()

        if self.email_enabled and self.recipients(notice):
            try:
                result.email = self._send_email(notice)
            except (smtplib.SMTPException, OSError) as e:
                logger.error("late_email_failed", video_id=str(notice.video_id), error=str(e))
                result.email = False
                result.errors.append(f"email: {e}")

        if self.discord_webhook_url:
            try:
                result.discord = await self._send_discord(notice)
            except httpx.HTTPError as e:
                logger.error("late_discord_failed", video_id=str(notice.video_id), error=str(e))
                result.discord = False
                result.errors.append(f"discord: {e}")

        if not result.attempted:
            logger.debug("late_notification_no_channel", video_id=str(notice.video_id))
        return result

    async def _send_discord(self, notice: LateVideoNotice) -> bool:
        if not self.discord_webhook_url:
            return False

        payload = {
            "embeds": [
                {
                    "title": notice.subject,
                    "description": "Allowed production time exceeded.",
                    "color": LATE_COLOR,
                    "fields": [
                        {"name": name, "value": value, "inline": True}
                        for name, value in notice.fields().items()
                    ],
                    "timestamp": notice.detected_at.isoformat(),
                }
            ]
        }

        async with httpx.AsyncClient() as client:
            response = await client.post(self.discord_webhook_url, json=payload, timeout=10.0)
            response.raise_for_status()

        logger.info("late_discord_sent", video_id=str(notice.video_id))
        return True

    def _send_email(self, notice: LateVideoNotice) -> bool:
        settings = self.settings
        recipients = self.recipients(notice)
        if not recipients or not settings.alert_email_from or not settings.alert_email_smtp_host:
            logger.warning("email_settings_missing")
            return False

        rows = "".join(
            f"<tr><td><strong>{name}</strong></td><td>{value}</td></tr>"
            for name, value in notice.fields().items()
        )
        html_body = f"""
        <html>
        <body>
        <h2>{notice.subject}</h2>
        <p>The allowed production time for this video has run out.</p>
        <table border='1' cellpadding='5'>{rows}</table>
        <p><strong>Detected:</strong> {notice.detected_at.isoformat()}</p>
        </body>
        </html>
        """
        text_body = "\n".join(
            [
                notice.subject,
                "",
                "The allowed production time for this video has run out.",
                *(f"  {name}: {value}" for name, value in notice.fields().items()),
                f"Detected: {notice.detected_at.isoformat()}",
            ]
        )

        msg = MIMEMultipart("alternative")
        msg["Subject"] = notice.subject
        msg["From"] = settings.alert_email_from
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(settings.alert_email_smtp_host, settings.alert_email_smtp_port) as server:
            server.starttls()
            if settings.alert_email_username and settings.alert_email_password:
                server.login(settings.alert_email_username, settings.alert_email_password)
            server.sendmail(settings.alert_email_from, recipients, msg.as_string())

        logger.info(
            "late_email_sent",
            video_id=str(notice.video_id),
            recipients=len(recipients),
        )
        return True

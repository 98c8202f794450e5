"""Notifier - multi-channel notifications for agents.

Supports Slack incoming webhooks, Telegram bots and generic JSON webhooks.
Email is a declared channel without a transport yet.

Every failure is isolated per call: ``send`` and ``notify`` log the problem
and return False instead of raising, so callers must check the boolean.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from agent_hub.config import Settings
from agent_hub.exceptions import NotificationError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Agent Hub"


class NotificationChannel(str, Enum):
    """Available notification channels."""

    SLACK = "slack"
    TELEGRAM = "telegram"
    EMAIL = "email"
    WEBHOOK = "webhook"


class NotificationPriority(str, Enum):
    """Notification urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def emoji(self) -> str:
        return _PRIORITY_EMOJI[self]


_PRIORITY_EMOJI = {
    NotificationPriority.URGENT: "🚨",
    NotificationPriority.HIGH: "🔴",
    NotificationPriority.MEDIUM: "🟡",
    NotificationPriority.LOW: "🟢",
}


@dataclass(frozen=True)
class Notification:
    """A message for one channel.

    Attributes:
        channel: Where to deliver
        title: Short headline
        message: Body (Markdown for Slack/Telegram)
        priority: Urgency, rendered as an emoji
        metadata: Extra data forwarded to webhooks
        id: Unique id (generated)
        timestamp: Creation time (generated)
    """

    channel: NotificationChannel
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    metadata: dict[str, Any] | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (webhook payload)."""
        return {
            "id": self.id,
            "channel": self.channel.value,
            "priority": self.priority.value,
            "title": self.title,
            "message": self.message,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SlackConfig:
    webhook_url: str


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str
    chat_id: str


@dataclass(frozen=True)
class EmailConfig:
    sender: str
    recipients: list[str]


@dataclass(frozen=True)
class WebhookConfig:
    url: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NotifierConfig:
    """Channel settings; a channel is available when its config is set."""

    slack: SlackConfig | None = None
    telegram: TelegramConfig | None = None
    email: EmailConfig | None = None
    webhook: WebhookConfig | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotifierConfig":
        """Build channel config from application settings."""
        telegram = None
        if settings.telegram_bot_token and settings.telegram_chat_id:
            telegram = TelegramConfig(settings.telegram_bot_token, settings.telegram_chat_id)
        return cls(
            slack=SlackConfig(settings.slack_webhook_url) if settings.slack_webhook_url else None,
            telegram=telegram,
            webhook=WebhookConfig(settings.notify_webhook_url)
            if settings.notify_webhook_url
            else None,
        )


class Notifier:
    """Sends notifications to Slack, Telegram or a webhook.

    Example:
        >>> notifier = Notifier(NotifierConfig(slack=SlackConfig(webhook_url)))
        >>> ok = await notifier.notify("3 urgent emails", priority=NotificationPriority.HIGH)
        >>> if not ok:
        ...     logger.warning("Notification not delivered")
    """

    def __init__(self, config: NotifierConfig, http_client: httpx.AsyncClient | None = None):
        """Initialize notifier.

        Args:
            config: Channel settings
            http_client: Shared HTTP client (one is created if omitted)
        """
        self.config = config
        self._http_client = http_client or httpx.AsyncClient(timeout=10.0)

        logger.info(
            "Notifier initialized (slack=%s, telegram=%s, webhook=%s)",
            bool(config.slack),
            bool(config.telegram),
            bool(config.webhook),
        )

    @property
    def default_channel(self) -> NotificationChannel | None:
        """First configured channel (slack, telegram, webhook)."""
        if self.config.slack:
            return NotificationChannel.SLACK
        if self.config.telegram:
            return NotificationChannel.TELEGRAM
        if self.config.webhook:
            return NotificationChannel.WEBHOOK
        return None

    async def notify(
        self,
        message: str,
        title: str | None = None,
        channel: NotificationChannel | str | None = None,
        priority: NotificationPriority | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Send a notification with defaults filled in.

        Returns:
            True if delivered, False otherwise
        """
        target = NotificationChannel(channel) if channel else self.default_channel
        if target is None:
            logger.error("No notification channel configured")
            return False

        return await self.send(
            Notification(
                channel=target,
                title=title or DEFAULT_TITLE,
                message=message,
                priority=NotificationPriority(priority) if priority else NotificationPriority.MEDIUM,
                metadata=metadata,
            )
        )

    async def send(self, notification: Notification) -> bool:
        """Deliver one notification.

        Returns:
            True if the channel accepted it, False on any failure
        """
        try:
            if notification.channel == NotificationChannel.SLACK:
                return await self._send_slack(notification)
            if notification.channel == NotificationChannel.TELEGRAM:
                return await self._send_telegram(notification)
            if notification.channel == NotificationChannel.WEBHOOK:
                return await self._send_webhook(notification)
            if notification.channel == NotificationChannel.EMAIL:
                logger.warning("Email notifications are not implemented yet")
                return False
            logger.error("Unknown notification channel: %s", notification.channel)
            return False
        except Exception as e:
            logger.error("Failed to send %s notification: %s", notification.channel.value, e)
            return False

    async def _send_slack(self, notification: Notification) -> bool:
        if not self.config.slack or not self.config.slack.webhook_url:
            raise NotificationError("Slack webhook URL not configured", service="slack")

        payload = {
            "blocks": [
                {
                    "type": "header",
                    "text": {
                        "type": "plain_text",
                        "text": f"{notification.priority.emoji} {notification.title}",
                    },
                },
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": notification.message},
                },
            ]
        }
        response = await self._post(self.config.slack.webhook_url, json=payload)
        return response.is_success

    async def _send_telegram(self, notification: Notification) -> bool:
        telegram = self.config.telegram
        if not telegram or not telegram.bot_token or not telegram.chat_id:
            raise NotificationError("Telegram not configured", service="telegram")

        text = f"{notification.priority.emoji} *{notification.title}*\n\n{notification.message}"
        response = await self._post(
            f"https://api.telegram.org/bot{telegram.bot_token}/sendMessage",
            json={"chat_id": telegram.chat_id, "text": text, "parse_mode": "Markdown"},
        )
        return response.is_success

    async def _send_webhook(self, notification: Notification) -> bool:
        if not self.config.webhook or not self.config.webhook.url:
            raise NotificationError("Webhook URL not configured", service="webhook")

        response = await self._post(
            self.config.webhook.url,
            json=notification.to_dict(),
            headers={"Content-Type": "application/json", **self.config.webhook.headers},
        )
        return response.is_success

    @retry(
        wait=wait_exponential(multiplier=0.2, max=2),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._http_client.post(url, **kwargs)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

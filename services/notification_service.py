"""
Notification Service

Posts one Discord webhook alert per change event. A failed send stops the
batch: the caller must not commit the catalog, so the remaining (and the
failed) events are detected again on the next cycle.
"""

import time
import logging
from datetime import datetime, timezone

import requests

from config.errors import NotificationError
from config.models import ContentKind, EventKind
from monitoring.course_scraper import extract_thumbnail

logger = logging.getLogger(__name__)

EMBED_COLORS = {
    EventKind.NEW: 5763719,  # Green
    EventKind.UPGRADED: 16776960,  # Yellow
}

EMBED_TITLES = {
    EventKind.NEW: ":rotating_light: Nouveau contenu disponible !",
    EventKind.UPGRADED: ":fire: Du contenu a été mis à jour !",
}

EMBED_DESCRIPTIONS = {
    EventKind.NEW: "**{title}**\nUne nouvelle leçon a été ajoutée sur la plateforme.",
    EventKind.UPGRADED: "**{title}**\nDu contenu a été mis à jour.",
}

FOOTER_TEXT = "Go grind ! 🚀"


def build_embed(event, image_url, timestamp=None):
    """
    Build the Discord embed for one event.

    Args:
        event (ChangeEvent): Event to announce
        image_url (str): Image shown in the embed
        timestamp (datetime, optional): Defaults to now (UTC)

    Returns:
        dict: Embed object
    """
    item = event.item
    timestamp = timestamp or datetime.now(timezone.utc)

    return {
        "title": EMBED_TITLES[event.kind],
        "description": EMBED_DESCRIPTIONS[event.kind].format(title=item.title),
        "url": item.url,
        "color": EMBED_COLORS[event.kind],
        "image": {"url": image_url},
        "fields": [
            {"name": "Format", "value": item.content_kind.label, "inline": True},
            {
                "name": "Accès Direct",
                "value": f"👉 **[Accéder au Contenu]({item.url})**",
                "inline": True,
            },
        ],
        "footer": {"text": FOOTER_TEXT},
        "timestamp": timestamp.isoformat(),
    }


class NotificationService:
    def __init__(self, config, session=None):
        self.config = config
        self.http = session or requests.Session()

    def resolve_image(self, item, driver):
        """Thumbnail for video items, the configured default image otherwise."""
        if item.content_kind != ContentKind.VIDEO:
            return self.config.default_thumbnail
        if item.thumbnail_url:
            return item.thumbnail_url
        lookup = extract_thumbnail(driver, item.url, self.config)
        return lookup.or_default(self.config.default_thumbnail)

    def send(self, event, image_url):
        """
        Post one alert to the webhook.

        Raises:
            NotificationError: On a non-2xx response or a transport failure
        """
        payload = {
            "username": self.config.username,
            "embeds": [build_embed(event, image_url)],
        }

        try:
            response = self.http.post(
                self.config.webhook_url,
                json=payload,
                timeout=self.config.timeouts.webhook,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to send notification: {e}")
            raise NotificationError(f"Webhook request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Failed to send notification: Discord API returned {response.status_code}")
            raise NotificationError(
                f"Discord API returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.info(f"Notification sent ({event.kind.value}): {event.item.title}")

    def dispatch_all(self, events, driver):
        """
        Send every event in order, stopping at the first failure.

        Returns:
            int: Number of alerts sent

        Raises:
            NotificationError: From the first send that fails
        """
        sent = 0
        for index, event in enumerate(events):
            image_url = self.resolve_image(event.item, driver)
            if index > 0:
                time.sleep(self.config.timeouts.notification_delay)
            self.send(event, image_url)
            sent += 1
        return sent

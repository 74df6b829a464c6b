"""
Change Detection

Compares the scraped content list with the stored catalog.
"""

import logging

from config.models import CatalogRecord, ChangeEvent, ContentKind, EventKind

logger = logging.getLogger(__name__)


def is_upgrade(stored_kind, current_kind):
    # Only a text placeholder turning into a video is announced
    return stored_kind == ContentKind.TEXT and current_kind == ContentKind.VIDEO


def detect_changes(current_items, catalog):
    """
    List the events to announce, in the order the items appear on the page.

    Args:
        current_items (list[ContentItem]): Items scraped this cycle
        catalog (dict[str, CatalogRecord]): Catalog stored by the last successful cycle

    Returns:
        list[ChangeEvent]
    """
    events = []

    for item in current_items:
        stored = catalog.get(item.id)

        if stored is None:
            events.append(ChangeEvent(EventKind.NEW, item))
        elif is_upgrade(stored.content_kind, item.content_kind):
            events.append(ChangeEvent(EventKind.UPGRADED, item))
        elif stored.content_kind != item.content_kind:
            logger.debug(
                f"Ignoring kind change for {item.id}: "
                f"{stored.content_kind.value} -> {item.content_kind.value}"
            )

    return events


def derive_snapshot(current_items):
    """Catalog to store after this cycle. Items no longer listed are dropped."""
    return {
        item.id: CatalogRecord(title=item.title, content_kind=item.content_kind)
        for item in current_items
    }

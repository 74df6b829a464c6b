"""
Persistent Storage

JSON document storage for the content catalog and the browser session cookies.
Every write replaces the whole document; reads that fail degrade to an empty
value and log a warning.
"""

import os
import json
import logging
import tempfile
from pathlib import Path

from config.errors import StorageError
from config.models import CatalogLoad, CatalogRecord

logger = logging.getLogger(__name__)


def read_json(path):
    """
    Read a JSON document.

    Returns:
        tuple: (data, status) where status is 'loaded', 'missing' or 'unreadable'
    """
    path = Path(path)
    if not path.exists():
        return None, "missing"

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f), "loaded"
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return None, "unreadable"


def write_json(path, data):
    """
    Replace a JSON document atomically.

    Raises:
        StorageError: If the document could not be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to write {path}: {e}")
        raise StorageError(f"Failed to write {path}: {e}") from e


class CatalogStore:
    """Last-known state of every course item, keyed by item id."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self):
        data, status = read_json(self.path)
        if status != "loaded":
            return CatalogLoad(records={}, status=status)

        if not isinstance(data, dict):
            logger.warning(f"Ignoring catalog {self.path}: expected an object, got {type(data).__name__}")
            return CatalogLoad(records={}, status="unreadable")

        records = {}
        for item_id, entry in data.items():
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed catalog entry {item_id!r}")
                continue
            records[str(item_id)] = CatalogRecord.from_dict(entry)

        return CatalogLoad(records=records, status="loaded")

    def commit(self, records):
        """Replace the stored catalog with `records` (id -> CatalogRecord)."""
        document = {item_id: record.to_dict() for item_id, record in records.items()}
        write_json(self.path, document)
        logger.info(f"Catalog committed: {len(document)} items")


class CookieJar:
    """Browser cookies saved after a successful login."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self):
        data, status = read_json(self.path)
        if status != "loaded":
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring cookie file {self.path}: expected a list")
            return []
        return [cookie for cookie in data if isinstance(cookie, dict)]

    def save(self, cookies):
        write_json(self.path, list(cookies))
        logger.info(f"Saved {len(cookies)} cookies to {self.path}")


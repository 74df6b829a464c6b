"""
Course Monitor Data Models
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ContentKind(Enum):
    VIDEO = "Video"
    TEXT = "Text"
    QUIZ = "Quiz"
    OTHER = "Other"

    @property
    def label(self):
        """Display label shown in alerts."""
        return CONTENT_KIND_LABELS[self]

    @classmethod
    def from_value(cls, value):
        """Parse a persisted kind, falling back to OTHER for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


CONTENT_KIND_LABELS = {
    ContentKind.VIDEO: "🎥 Vidéo",
    ContentKind.TEXT: "📄 Lecture",
    ContentKind.QUIZ: "❓ Quiz",
    ContentKind.OTHER: "Autre",
}


class EventKind(Enum):
    NEW = "New"
    UPGRADED = "Upgraded"


@dataclass(frozen=True)
class ContentItem:
    id: str
    title: str
    content_kind: ContentKind
    url: str
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class CatalogRecord:
    title: str
    content_kind: ContentKind

    def to_dict(self):
        return {"title": self.title, "contentKind": self.content_kind.value}

    @classmethod
    def from_dict(cls, data):
        return cls(
            title=str(data.get("title", "")),
            content_kind=ContentKind.from_value(data.get("contentKind")),
        )


@dataclass(frozen=True)
class ChangeEvent:
    kind: EventKind
    item: ContentItem


@dataclass(frozen=True)
class ThumbnailLookup:
    """Result of a thumbnail search. Absence is an expected outcome."""

    url: Optional[str] = None

    @property
    def found(self):
        return self.url is not None

    def or_default(self, default):
        return self.url if self.found else default

    @classmethod
    def not_found(cls):
        return cls(None)


@dataclass(frozen=True)
class CatalogLoad:
    """Catalog read result; status is 'loaded', 'missing' or 'unreadable'."""

    records: Dict[str, CatalogRecord] = field(default_factory=dict)
    status: str = "missing"

    @property
    def is_empty(self):
        return not self.records


@dataclass
class SessionState:
    cookies: List[dict] = field(default_factory=list)
    authenticated: bool = False


@dataclass
class CycleReport:
    """Outcome of one monitoring cycle."""

    status: str
    events: List[ChangeEvent] = field(default_factory=list)
    notified: int = 0
    error: Optional[str] = None

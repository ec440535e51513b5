"""Core value types shared by the fetcher, providers and presenter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from marketwatch.config import FEEDS


class Category(str, Enum):
    """Market type of a symbol; decides provider and display format."""

    CRYPTO = "crypto"
    EQUITY_INDEX = "equity-index"
    FOREX = "forex"
    BOND = "bond"


class Period(str, Enum):
    """Comparison window for the previous value."""

    RECENT = "recent"              # previous close / 24h ago
    YEAR_TO_DATE = "year-to-date"  # first close of the calendar year


class DataSource(str, Enum):
    LIVE = "live"
    MOCK = "mock"


class FeedConfigError(ValueError):
    """Raised when a feed definition is invalid (construction time only)."""


@dataclass(frozen=True)
class SymbolRequest:
    """One symbol the caller wants on a feed."""

    identifier: str
    category: Category
    label: str = ""

    def __post_init__(self) -> None:
        if not self.identifier or not self.identifier.strip():
            raise FeedConfigError("Symbol identifier must be a non-empty string")
        # Accept plain strings for the category, e.g. from config tuples.
        try:
            object.__setattr__(self, "category", Category(self.category))
        except ValueError:
            raise FeedConfigError(
                f"Unknown category {self.category!r} for {self.identifier!r}"
            ) from None
        if not self.label:
            object.__setattr__(self, "label", self.identifier)


@dataclass(frozen=True)
class PricePoint:
    """Current and comparison value for one symbol.

    Change figures are derived by the presenter from these two values and
    are intentionally not stored here.
    """

    label: str
    current_value: float
    previous_value: float
    as_of: datetime


@dataclass(frozen=True)
class FeedResult:
    """Outcome of fetching one SymbolRequest within a refresh cycle.

    ``failed`` is True exactly when ``point`` is None.  A live failure that
    was absorbed by mock data is *not* failed: it has a point, ``source`` is
    ``MOCK`` and ``error`` carries the reason.
    """

    request: SymbolRequest
    point: PricePoint | None
    failed: bool = False
    source: DataSource | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.failed != (self.point is None):
            raise ValueError("FeedResult.failed must be True exactly when point is None")
        if self.point is not None and self.source is None:
            raise ValueError("FeedResult with a point must record its source")

    @property
    def errored(self) -> bool:
        """True when the live fetch for this entry raised."""
        return self.error is not None


@dataclass(frozen=True)
class Feed:
    """A named group of symbols displayed together."""

    name: str
    title: str
    requests: tuple[SymbolRequest, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.requests:
            raise FeedConfigError(f"Feed {self.name!r} has no symbols")
        seen: set[str] = set()
        for req in self.requests:
            if req.identifier in seen:
                raise FeedConfigError(
                    f"Feed {self.name!r} lists {req.identifier!r} more than once"
                )
            seen.add(req.identifier)

    @classmethod
    def from_config(cls, name: str, definition: dict) -> Feed:
        """Build a Feed from a ``FEEDS`` entry."""
        try:
            requests = tuple(
                SymbolRequest(identifier, category, label)
                for identifier, category, label in definition["symbols"]
            )
        except FeedConfigError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise FeedConfigError(f"Malformed definition for feed {name!r}: {exc}") from exc
        return cls(name=name, title=str(definition.get("title", name)), requests=requests)


def load_feeds(definitions: dict[str, dict] | None = None) -> dict[str, Feed]:
    """Build every configured feed, failing fast on invalid definitions."""
    if definitions is None:
        definitions = FEEDS
    return {name: Feed.from_config(name, definition) for name, definition in definitions.items()}

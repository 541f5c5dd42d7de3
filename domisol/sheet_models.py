"""Data models for sheet catalog records and filter state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final


class Category(str, Enum):
    """Closed set of sheet categories."""

    VOCAL = "vocal"
    INSTRUMENTAL = "instrumental"

    @classmethod
    def coerce(cls, value: Category | str) -> Category:
        """
        Return ``value`` as a Category.

        Raises:
            ValueError: If ``value`` is not one of the known categories.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class SortMode(str, Enum):
    """Result orderings offered to the user."""

    POPULAR = "popular"
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"

    @property
    def label(self) -> str:
        """Human-readable label, e.g. 'Title A-Z'."""
        return _SORT_LABELS[self]

    @classmethod
    def coerce(cls, value: SortMode | str) -> SortMode:
        """
        Return ``value`` as a SortMode.

        Unknown modes are a caller error and fail loudly instead of falling
        back to ``popular``.

        Raises:
            ValueError: If ``value`` is not one of the four sort modes.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


_SORT_LABELS: dict[SortMode, str] = {
    SortMode.POPULAR: "Most Popular",
    SortMode.NEWEST: "Newest",
    SortMode.OLDEST: "Oldest",
    SortMode.TITLE: "Title A-Z",
}

#: Category facet values, in the order they are offered.
CATEGORIES: Final[tuple[Category, ...]] = (Category.VOCAL, Category.INSTRUMENTAL)


@dataclass(frozen=True)
class SheetKey:
    """Musical key of a sheet, e.g. tonic 'C', mode 'major'."""

    tonic: str
    mode: str

    def __str__(self) -> str:
        return f"{self.tonic} {self.mode}"


@dataclass(frozen=True)
class SheetRecord:
    """
    One catalog entry.

    Attributes:
        title:       Sheet title.
        composer:    Composer name.
        description: Free-text description.
        category:    Vocal or instrumental.
        key:         Tonic and mode.
        year:        Composition year, used for chronological sorting.
        lyricist:    Lyricist name, if any.
        genre:       Genre, if any.
        location:    Place of origin, if any.
    """

    title: str
    composer: str
    description: str
    category: Category
    key: SheetKey
    year: int
    lyricist: str | None = None
    genre: str | None = None
    location: str | None = None


@dataclass
class FilterState:
    """
    Current search, facet and sort selections.

    Empty ``selected_categories`` / ``selected_genres`` mean "no restriction",
    not "match nothing".
    """

    query: str = ""
    selected_categories: set[Category] = field(default_factory=set)
    selected_genres: set[str] = field(default_factory=set)
    sort_mode: SortMode = SortMode.POPULAR

    @property
    def has_active_filters(self) -> bool:
        """True when a query or any facet selection narrows the catalog."""
        return bool(self.query or self.selected_categories or self.selected_genres)

    def copy(self) -> FilterState:
        """Independent snapshot; the selection sets are copied too."""
        return FilterState(
            query=self.query,
            selected_categories=set(self.selected_categories),
            selected_genres=set(self.selected_genres),
            sort_mode=self.sort_mode,
        )

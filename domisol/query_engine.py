"""Query engine: derives the visible, ordered subset of a sheet catalog."""

from __future__ import annotations

import locale
import unicodedata
from collections.abc import Iterable, Sequence

from loguru import logger

from domisol.sheet_models import Category, FilterState, SheetRecord, SortMode


def _searchable_fields(sheet: SheetRecord) -> Iterable[str | None]:
    return (
        sheet.title,
        sheet.composer,
        sheet.description,
        sheet.lyricist,
        sheet.genre,
        sheet.location,
        sheet.key.tonic,
        sheet.key.mode,
    )


def matches_query(sheet: SheetRecord, query: str) -> bool:
    """
    Case-insensitive substring match of ``query`` against a sheet's text fields.

    Searches: title, composer, description, lyricist, genre, location,
    key tonic and key mode. Absent optional fields never match.
    """
    query_lower = query.lower()
    return any(
        value is not None and query_lower in value.lower()
        for value in _searchable_fields(sheet)
    )


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def _title_sort_key(sheet: SheetRecord) -> tuple[str, str]:
    # Primary level ignores case and accents, so "Élégie" sorts with the E titles;
    # the secondary level breaks ties on the accented form.
    folded = sheet.title.casefold()
    return locale.strxfrm(_strip_accents(folded)), locale.strxfrm(folded)


def sort_sheets(sheets: list[SheetRecord], sort_mode: SortMode) -> list[SheetRecord]:
    """
    Return ``sheets`` ordered by ``sort_mode``.

    All orderings are stable: sheets with equal keys keep their input order.
    ``popular`` keeps the input order unchanged.
    """
    if sort_mode is SortMode.NEWEST:
        return sorted(sheets, key=lambda sheet: sheet.year, reverse=True)
    if sort_mode is SortMode.OLDEST:
        return sorted(sheets, key=lambda sheet: sheet.year)
    if sort_mode is SortMode.TITLE:
        return sorted(sheets, key=_title_sort_key)
    return list(sheets)


def evaluate(catalog: Sequence[SheetRecord], state: FilterState) -> list[SheetRecord]:
    """
    Filter and sort ``catalog`` according to ``state``.

    Stages run in a fixed order: text query, category, genre, sort.
    Each filter stage only applies when its selection is non-empty, so the
    default state returns the catalog unchanged. ``catalog`` is never mutated.
    """
    filtered = list(catalog)

    # Text search
    if state.query.strip():
        filtered = [sheet for sheet in filtered if matches_query(sheet, state.query)]

    # Category filter
    if state.selected_categories:
        categories = {Category.coerce(cat) for cat in state.selected_categories}
        filtered = [sheet for sheet in filtered if sheet.category in categories]

    # Genre filter
    if state.selected_genres:
        filtered = [
            sheet
            for sheet in filtered
            if sheet.genre and sheet.genre in state.selected_genres
        ]

    sort_mode = SortMode.coerce(state.sort_mode)
    result = sort_sheets(filtered, sort_mode)
    logger.debug(f"Evaluated {len(catalog)} sheets -> {len(result)} (sort={sort_mode.value})")
    return result


def available_genres(catalog: Iterable[SheetRecord]) -> list[str]:
    """Distinct non-empty genres present in ``catalog``, sorted ascending."""
    return sorted({sheet.genre for sheet in catalog if sheet.genre})

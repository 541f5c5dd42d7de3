"""Renderers that turn a published result list into printable output."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any, Final

from domisol.sheet_models import SheetRecord

SUPPORTED_FORMATS: Final[set[str]] = {"text", "json"}


def _pluralize(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class ResultRenderer(ABC):
    """Abstract result renderer."""

    @abstractmethod
    def render(self, results: Sequence[SheetRecord], catalog_size: int) -> str:
        """Render ``results`` out of ``catalog_size`` sheets into a string."""


class TextResultRenderer(ResultRenderer):
    """Render results as a heading, a count line and one line per sheet."""

    EMPTY_CATALOG_MESSAGE: Final[str] = (
        "There are no sheet music files available right now. "
        "Try again later or add your own sheet."
    )
    NO_MATCH_MESSAGE: Final[str] = (
        "No sheets match your search criteria. Try adjusting your filters or search terms."
    )

    def heading(self, result_count: int, catalog_size: int) -> str:
        if result_count == catalog_size:
            return "Featured Sheets"
        return f"Found {_pluralize(result_count, 'sheet')}"

    def format_sheet(self, index: int, sheet: SheetRecord) -> str:
        """
        One listing line, e.g. ``1. Ave Maria - Bach (1850) [vocal, classical, C major]``.
        """
        tags = [sheet.category.value]
        if sheet.genre:
            tags.append(sheet.genre)
        tags.append(str(sheet.key))
        return f"{index:>3}. {sheet.title} - {sheet.composer} ({sheet.year}) [{', '.join(tags)}]"

    def render(self, results: Sequence[SheetRecord], catalog_size: int) -> str:
        lines = [
            self.heading(len(results), catalog_size),
            f"{len(results)} of {catalog_size} sheets",
            "",
        ]
        if not results:
            lines.append("No sheets found")
            lines.append(
                self.EMPTY_CATALOG_MESSAGE if catalog_size == 0 else self.NO_MATCH_MESSAGE
            )
        else:
            lines.extend(
                self.format_sheet(index, sheet) for index, sheet in enumerate(results, start=1)
            )
        return "\n".join(lines)


class JsonResultRenderer(ResultRenderer):
    """Render results as a JSON array of sheet objects."""

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def _sheet_to_dict(self, sheet: SheetRecord) -> dict[str, Any]:
        data = asdict(sheet)
        data["category"] = sheet.category.value
        return data

    def render(self, results: Sequence[SheetRecord], catalog_size: int) -> str:
        return json.dumps(
            [self._sheet_to_dict(sheet) for sheet in results],
            indent=self.indent,
            ensure_ascii=False,
        )


def build_renderer(output_format: str) -> ResultRenderer:
    """
    Return the renderer for ``output_format``.

    Raises:
        ValueError: If the format is not supported.
    """
    normalized = output_format.strip().lower()
    if normalized not in SUPPORTED_FORMATS:
        supported = ", ".join(sorted(SUPPORTED_FORMATS))
        raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
    if normalized == "json":
        return JsonResultRenderer()
    return TextResultRenderer()

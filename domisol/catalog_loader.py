"""Catalog providers: build SheetRecord lists from JSON files or MusicXML folders."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Final

from loguru import logger

from domisol.sheet_models import Category, SheetKey, SheetRecord

MUSICXML_SUFFIXES: Final[set[str]] = {".musicxml", ".xml", ".mxl"}

_REQUIRED_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "composer",
    "description",
    "category",
    "key",
    "year",
)


class CatalogError(ValueError):
    """Raised when a catalog source cannot be turned into sheet records."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_key(value: Any, source: str) -> SheetKey:
    """Accept either ``{"tonic": "C", "mode": "major"}`` or ``"C major"``."""
    if isinstance(value, dict):
        tonic = value.get("tonic")
        mode = value.get("mode")
        if not tonic or not mode:
            raise CatalogError(source, "key requires both 'tonic' and 'mode'.")
        return SheetKey(tonic=str(tonic), mode=str(mode))

    if isinstance(value, str):
        parts = value.split()
        if len(parts) == 2:
            return SheetKey(tonic=parts[0], mode=parts[1])

    raise CatalogError(source, f"Unrecognised key {value!r}.")


def record_from_dict(data: dict[str, Any], source: str = "<record>") -> SheetRecord:
    """
    Build a SheetRecord from a plain mapping.

    Raises:
        CatalogError: If a required field is missing or has the wrong shape.
    """
    missing = [name for name in _REQUIRED_FIELDS if data.get(name) in (None, "")]
    if missing:
        raise CatalogError(source, f"Missing required field(s): {', '.join(missing)}.")

    try:
        category = Category.coerce(data["category"])
    except ValueError:
        raise CatalogError(source, f"Unknown category {data['category']!r}.") from None

    try:
        year = int(data["year"])
    except (TypeError, ValueError):
        raise CatalogError(source, f"Year must be an integer, got {data['year']!r}.") from None

    return SheetRecord(
        title=str(data["title"]),
        composer=str(data["composer"]),
        description=str(data["description"]),
        category=category,
        key=_parse_key(data["key"], source),
        year=year,
        lyricist=_optional_text(data.get("lyricist")),
        genre=_optional_text(data.get("genre")),
        location=_optional_text(data.get("location")),
    )


def load_json_catalog(path: str | Path) -> list[SheetRecord]:
    """
    Load a catalog from a JSON array of sheet objects.

    Raises:
        CatalogError: If the file is not valid JSON or a record is malformed.
        OSError: If the file cannot be read.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise CatalogError(str(path), f"Invalid JSON ({exc.msg} at line {exc.lineno}).") from exc

    if not isinstance(payload, list):
        raise CatalogError(str(path), "Expected a JSON array of sheet records.")

    records = []
    for index, entry in enumerate(payload):
        source = f"{path}[{index}]"
        if not isinstance(entry, dict):
            raise CatalogError(source, "Each sheet record must be a JSON object.")
        records.append(record_from_dict(entry, source))

    logger.info(f"Loaded {len(records)} sheets from {path}")
    return records


class MusicXmlCatalogLoader:
    """
    Build sheet records from a folder of MusicXML files using music21.

    Title, composer and lyricist come from the score metadata, the key from
    music21's key analysis. A score with any lyric attached to a note is
    ``vocal``; anything else is ``instrumental``. Files music21 cannot parse
    or analyse (a score holding only rests has no key) are skipped with a
    warning.
    """

    _YEAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"(\d{4})")

    def __init__(self, default_genre: str | None = None) -> None:
        self.default_genre = default_genre

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _parse_score(self, path: Path) -> Any:
        from music21 import converter

        return converter.parse(str(path))

    def _metadata_text(self, metadata: Any, attribute: str) -> str | None:
        if metadata is None:
            return None
        return _optional_text(getattr(metadata, attribute, None))

    def _extract_year(self, metadata: Any) -> int:
        date = self._metadata_text(metadata, "date")
        if date is None:
            return 0
        match = self._YEAR_PATTERN.search(date)
        return int(match.group(1)) if match else 0

    def _extract_key(self, score: Any) -> SheetKey:
        analyzed = score.analyze("key")
        return SheetKey(tonic=analyzed.tonic.name, mode=analyzed.mode)

    def _has_lyrics(self, score: Any) -> bool:
        return any(note.lyrics for note in score.recurse().notes)

    def _score_to_record(self, score: Any, path: Path) -> SheetRecord:
        metadata = score.metadata
        title = self._metadata_text(metadata, "title") or path.stem.replace("_", " ")
        composer = self._metadata_text(metadata, "composer") or "Unknown"
        category = Category.VOCAL if self._has_lyrics(score) else Category.INSTRUMENTAL
        part_count = len(score.parts)

        return SheetRecord(
            title=title,
            composer=composer,
            description=f"{part_count} part(s), from {path.name}",
            category=category,
            key=self._extract_key(score),
            year=self._extract_year(metadata),
            lyricist=self._metadata_text(metadata, "lyricist"),
            genre=self.default_genre,
            location=self._metadata_text(metadata, "localeOfComposition"),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, directory: str | Path) -> list[SheetRecord]:
        """
        Parse every MusicXML file directly inside ``directory``, in name order.

        Raises:
            CatalogError: If ``directory`` is not a directory.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise CatalogError(str(directory), "Not a directory.")

        records: list[SheetRecord] = []
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in MUSICXML_SUFFIXES:
                continue
            try:
                score = self._parse_score(path)
                record = self._score_to_record(score, path)
            except Exception as exc:
                logger.warning(f"Skipping {path.name}: music21 could not read it ({exc})")
                continue
            records.append(record)

        logger.info(f"Loaded {len(records)} sheets from {directory}")
        return records


def load_musicxml_catalog(directory: str | Path) -> list[SheetRecord]:
    return MusicXmlCatalogLoader().load(directory)


def load_catalog(path: str | Path) -> list[SheetRecord]:
    """Load a MusicXML folder when ``path`` is a directory, else a JSON catalog."""
    if Path(path).is_dir():
        return load_musicxml_catalog(path)
    return load_json_catalog(path)

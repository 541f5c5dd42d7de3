"""Unit tests for catalog providers (JSON files and MusicXML folders)."""

import json
from pathlib import Path
from typing import Any

import pytest

from domisol.catalog_loader import (
    CatalogError,
    MusicXmlCatalogLoader,
    load_catalog,
    load_json_catalog,
    record_from_dict,
)
from domisol.sheet_models import Category, SheetKey


def _sample_entry(**overrides: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "title": "Ave Maria",
        "composer": "Bach",
        "description": "Prelude setting",
        "category": "vocal",
        "key": {"tonic": "C", "mode": "major"},
        "year": 1850,
        "genre": "classical",
    }
    entry.update(overrides)
    return entry


def _write_catalog(tmp_path: Path, payload: Any) -> Path:
    path = tmp_path / "sheets.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_record_from_dict_builds_record() -> None:
    record = record_from_dict(_sample_entry(lyricist="  "))
    assert record.title == "Ave Maria"
    assert record.category is Category.VOCAL
    assert record.key == SheetKey(tonic="C", mode="major")
    assert record.lyricist is None
    assert record.location is None


def test_record_from_dict_accepts_key_string() -> None:
    record = record_from_dict(_sample_entry(key="E minor"))
    assert record.key == SheetKey(tonic="E", mode="minor")


def test_record_from_dict_missing_field() -> None:
    entry = _sample_entry()
    del entry["composer"]
    with pytest.raises(CatalogError, match="composer"):
        record_from_dict(entry, source="sheets.json[0]")


def test_record_from_dict_unknown_category() -> None:
    with pytest.raises(CatalogError, match="Unknown category"):
        record_from_dict(_sample_entry(category="percussion"))


def test_record_from_dict_bad_year() -> None:
    with pytest.raises(CatalogError, match="Year"):
        record_from_dict(_sample_entry(year="eighteen-fifty"))


def test_record_from_dict_bad_key() -> None:
    with pytest.raises(CatalogError, match="key"):
        record_from_dict(_sample_entry(key={"tonic": "C"}))


def test_catalog_error_is_value_error() -> None:
    error = CatalogError("sheets.json", "broken")
    assert isinstance(error, ValueError)
    assert error.source == "sheets.json"
    assert str(error) == "sheets.json: broken"


def test_load_json_catalog_keeps_order(tmp_path: Path) -> None:
    path = _write_catalog(
        tmp_path,
        [_sample_entry(), _sample_entry(title="Etude", category="instrumental", genre=None)],
    )
    records = load_json_catalog(path)
    assert [record.title for record in records] == ["Ave Maria", "Etude"]
    assert records[1].genre is None


def test_load_json_catalog_rejects_non_array(tmp_path: Path) -> None:
    path = _write_catalog(tmp_path, {"title": "Ave Maria"})
    with pytest.raises(CatalogError, match="JSON array"):
        load_json_catalog(path)


def test_load_json_catalog_reports_record_index(tmp_path: Path) -> None:
    path = _write_catalog(tmp_path, [_sample_entry(), "not a record"])
    with pytest.raises(CatalogError) as excinfo:
        load_json_catalog(path)
    assert excinfo.value.source.endswith("[1]")


def test_load_json_catalog_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(CatalogError, match="Invalid JSON"):
        load_json_catalog(path)


def test_load_json_catalog_missing_file(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        load_json_catalog(tmp_path / "missing.json")


def test_load_catalog_dispatches_on_file(tmp_path: Path) -> None:
    path = _write_catalog(tmp_path, [_sample_entry()])
    assert len(load_catalog(path)) == 1


# ---------------------------------------------------------------------------
# MusicXML loader with a stand-in score (no music21 parsing needed)
# ---------------------------------------------------------------------------

class _FakeTonic:
    name = "G"


class _FakeKey:
    tonic = _FakeTonic()
    mode = "major"


class _FakeNote:
    def __init__(self, lyrics: list[str]) -> None:
        self.lyrics = lyrics


class _FakeRecursion:
    def __init__(self, notes: list[_FakeNote]) -> None:
        self.notes = notes


class _FakeMetadata:
    title = "Minuet"
    composer = "Petzold"
    lyricist = None
    date = "1725/--/--"
    localeOfComposition = "Dresden"


class _FakeScore:
    def __init__(self, lyrics: list[str]) -> None:
        self.metadata = _FakeMetadata()
        self.parts = ["treble", "bass"]
        self._notes = [_FakeNote(lyrics)]

    def analyze(self, method: str) -> _FakeKey:
        assert method == "key"
        return _FakeKey()

    def recurse(self) -> _FakeRecursion:
        return _FakeRecursion(self._notes)


class _StubLoader(MusicXmlCatalogLoader):
    def __init__(self, scores: dict[str, Any]) -> None:
        super().__init__(default_genre="baroque")
        self.scores = scores

    def _parse_score(self, path: Path) -> Any:
        score = self.scores[path.name]
        if isinstance(score, Exception):
            raise score
        return score


def test_musicxml_loader_builds_records(tmp_path: Path) -> None:
    for name in ("b_minuet.musicxml", "a_song.xml", "notes.txt"):
        (tmp_path / name).write_text("", encoding="utf-8")

    loader = _StubLoader(
        {
            "a_song.xml": _FakeScore(lyrics=["la"]),
            "b_minuet.musicxml": _FakeScore(lyrics=[]),
        }
    )
    records = loader.load(tmp_path)

    assert [record.category for record in records] == [Category.VOCAL, Category.INSTRUMENTAL]
    first = records[0]
    assert first.title == "Minuet"
    assert first.composer == "Petzold"
    assert first.year == 1725
    assert first.key == SheetKey(tonic="G", mode="major")
    assert first.genre == "baroque"
    assert first.location == "Dresden"
    assert first.lyricist is None
    assert "2 part(s)" in first.description


def test_musicxml_loader_skips_unparseable_files(tmp_path: Path) -> None:
    (tmp_path / "good.musicxml").write_text("", encoding="utf-8")
    (tmp_path / "bad.musicxml").write_text("", encoding="utf-8")
    loader = _StubLoader(
        {
            "good.musicxml": _FakeScore(lyrics=[]),
            "bad.musicxml": ValueError("not MusicXML"),
        }
    )
    assert len(loader.load(tmp_path)) == 1


class _KeylessScore(_FakeScore):
    def analyze(self, method: str) -> _FakeKey:
        raise ValueError("failed to get likely keys for Stream component")


def test_musicxml_loader_skips_scores_without_a_key(tmp_path: Path) -> None:
    (tmp_path / "good.musicxml").write_text("", encoding="utf-8")
    (tmp_path / "rests.musicxml").write_text("", encoding="utf-8")
    loader = _StubLoader(
        {
            "good.musicxml": _FakeScore(lyrics=[]),
            "rests.musicxml": _KeylessScore(lyrics=[]),
        }
    )
    records = loader.load(tmp_path)
    assert [record.key for record in records] == [SheetKey(tonic="G", mode="major")]


def test_musicxml_loader_rejects_file_path(tmp_path: Path) -> None:
    path = _write_catalog(tmp_path, [])
    with pytest.raises(CatalogError, match="Not a directory"):
        MusicXmlCatalogLoader().load(path)


# ---------------------------------------------------------------------------
# Integration test — requires music21 installed.
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_musicxml_loader_parses_real_score(tmp_path: Path) -> None:
    music21 = pytest.importorskip("music21")

    score = music21.stream.Score()
    score.insert(0, music21.metadata.Metadata())
    score.metadata.title = "Little Song"
    score.metadata.composer = "Tester"
    part = music21.stream.Part()
    for pitch in ("C4", "E4", "G4", "C5"):
        note = music21.note.Note(pitch, quarterLength=1.0)
        note.lyric = "la"
        part.append(note)
    score.insert(0, part)
    score.write("musicxml", fp=str(tmp_path / "little_song.musicxml"))

    records = load_catalog(tmp_path)

    assert len(records) == 1
    assert records[0].title == "Little Song"
    assert records[0].composer == "Tester"
    assert records[0].category is Category.VOCAL


@pytest.mark.integration
def test_musicxml_loader_skips_rest_only_score(tmp_path: Path) -> None:
    music21 = pytest.importorskip("music21")

    for name, make_element in (
        ("melody.musicxml", lambda: music21.note.Note("C4", quarterLength=1.0)),
        ("silence.musicxml", lambda: music21.note.Rest(quarterLength=1.0)),
    ):
        part = music21.stream.Part()
        for _ in range(4):
            part.append(make_element())
        score = music21.stream.Score()
        score.insert(0, part)
        score.write("musicxml", fp=str(tmp_path / name))

    records = load_catalog(tmp_path)

    assert len(records) == 1
    assert "melody.musicxml" in records[0].description

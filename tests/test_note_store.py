"""Tests for the JSON note store."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from note_taker.core.constants import NoteType
from note_taker.core.errors import StoreWriteFailed
from note_taker.core.note import AudioPayload, FilePayload, Note, WebLinkPayload
from note_taker.core.note_store import NoteStore

T0 = datetime(2025, 11, 26, 9, 0, tzinfo=timezone.utc)


def _note(title: str, minutes: int = 0, **kwargs) -> Note:
    kwargs.setdefault("type", NoteType.TEXT)
    return Note(title=title, timestamp=T0 + timedelta(minutes=minutes), **kwargs)


@pytest.fixture
def store(tmp_path: Path) -> NoteStore:
    return NoteStore(tmp_path / "notes.json")


class TestQueries:
    def test_empty(self, store):
        assert store.count == 0
        assert store.query_all() == []

    def test_query_all_newest_first(self, store):
        old, new = _note("old", 0), _note("new", 5)
        store.insert(old)
        store.insert(new)
        assert store.query_all() == [new, old]
        assert store.query_all(newest_first=False) == [old, new]

    def test_query_by_type(self, store):
        text = _note("t")
        link = _note("w", 1, type=NoteType.WEB_LINK, payload=WebLinkPayload("https://a.io"))
        store.insert(text)
        store.insert(link)
        assert store.query_by_type(NoteType.WEB_LINK) == [link]
        assert store.query_by_type(NoteType.AUDIO) == []

    def test_get(self, store):
        note = _note("x")
        store.insert(note)
        assert store.get(note.id) is note
        assert store.get("missing") is None

    def test_duplicate_insert_rejected(self, store):
        note = _note("x")
        store.insert(note)
        with pytest.raises(ValueError):
            store.insert(note)

    def test_search(self, store):
        a = _note("Lecture", content="thermodynamics")
        b = _note("Shopping", 1, content="apples")
        store.insert(a)
        store.insert(b)
        assert store.search("THERMO") == [a]
        assert store.search("  ") == [b, a]


class TestDelete:
    def test_delete_note(self, store):
        note = _note("x")
        store.insert(note)
        assert store.delete(note)
        assert store.count == 0

    def test_delete_by_id(self, store):
        note = _note("x")
        store.insert(note)
        assert store.delete(note.id)

    def test_delete_missing(self, store):
        assert not store.delete(_note("never inserted"))


class TestPersistence:
    def test_save_and_load_round_trip(self, store):
        notes = [
            _note("audio", 0, type=NoteType.AUDIO, payload=AudioPayload("/d/r.wav", 2.3)),
            _note("file", 1, type=NoteType.FILE, payload=FilePayload("/d/a.zip", "a.zip", 77)),
            _note("pdf", 2, type=NoteType.PDF, payload=FilePayload("/d/p.pdf", "p.pdf", 5)),
            _note("text", 3, content="body"),
            _note("link", 4, type=NoteType.WEB_LINK, payload=WebLinkPayload("https://a.io"), content="Web link: https://a.io"),
        ]
        for n in notes:
            store.insert(n)
        store.save()

        reloaded = NoteStore.load(store.path)

        assert reloaded.query_all() == store.query_all()
        audio = reloaded.query_by_type(NoteType.AUDIO)[0]
        assert audio.file_url is None and audio.web_url is None

    def test_saved_json_is_valid(self, store):
        store.insert(_note("x"))
        store.save()
        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert len(data["notes"]) == 1
        assert not store.path.with_name("notes.json.tmp").exists()

    def test_load_missing_file(self, tmp_path):
        store = NoteStore.load(tmp_path / "nope.json")
        assert store.count == 0
        assert store.path == tmp_path / "nope.json"

    def test_load_skips_malformed_records(self, tmp_path):
        good = _note("good").to_dict()
        path = tmp_path / "notes.json"
        path.write_text(
            json.dumps({"version": 1, "notes": [good, {"id": "x", "type": "audio"}]}),
            encoding="utf-8",
        )
        store = NoteStore.load(path)
        assert [n.title for n in store.query_all()] == ["good"]

    @pytest.mark.parametrize("body", [b"{", b"[1, 2]", b'{"notes": 3}', b"\xff\xfe\x00"])
    def test_load_corrupted_file_starts_empty(self, tmp_path, body):
        path = tmp_path / "notes.json"
        path.write_bytes(body)

        store = NoteStore.load(path)

        assert store.count == 0
        assert store.path == path
        assert not path.exists()
        assert (tmp_path / "notes.json.corrupt").exists()

    def test_save_after_corrupted_load(self, tmp_path):
        path = tmp_path / "notes.json"
        path.write_text("{", encoding="utf-8")
        store = NoteStore.load(path)
        store.insert(_note("fresh"))
        store.save()
        assert NoteStore.load(path).count == 1
        assert (tmp_path / "notes.json.corrupt").read_text(encoding="utf-8") == "{"

    def test_save_without_path(self):
        store = NoteStore()
        with pytest.raises(StoreWriteFailed):
            store.save()

    def test_save_failure_keeps_notes(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("i am a file")
        store = NoteStore(blocker / "notes.json")  # parent is a file
        note = _note("keep me")
        store.insert(note)

        with pytest.raises(StoreWriteFailed) as info:
            store.save()

        assert isinstance(info.value.__cause__, OSError)
        assert store.get(note.id) is note

    def test_save_to_explicit_path(self, store, tmp_path):
        store.insert(_note("x"))
        other = tmp_path / "sub" / "copy.json"
        store.save(other)
        assert NoteStore.load(other).count == 1

"""Unit tests for FileCheckpoint."""

from __future__ import annotations

from eventrouter.core.checkpoint import FileCheckpoint
from eventrouter.core.router import EventRouter


class TestFileCheckpoint:
    def test_load_without_file_is_empty(self, tmp_path):
        assert FileCheckpoint(tmp_path / "position").load() == ""

    def test_save_then_load(self, tmp_path):
        store = FileCheckpoint(tmp_path / "state" / "position")
        store.save("1234")
        assert store.load() == "1234"
        assert FileCheckpoint(tmp_path / "state" / "position").load() == "1234"

    def test_save_replaces_previous_token(self, tmp_path):
        store = FileCheckpoint(tmp_path / "position")
        store("100")
        store("200")
        assert store.load() == "200"
        assert [p.name for p in tmp_path.iterdir()] == ["position"]

    def test_router_resumes_from_checkpoint(self, tmp_path, recording_sink, make_event):
        store = FileCheckpoint(tmp_path / "position")
        first = EventRouter(recording_sink, checkpoint=store.save)
        first.on_create(make_event(resource_version="500"))

        resumed = EventRouter(recording_sink, last_seen=store.load(), checkpoint=store.save)
        resumed.on_create(make_event(resource_version="500"))
        resumed.on_create(make_event(resource_version="501"))

        assert recording_sink.positions == ["500", "501"]
        assert store.load() == "501"

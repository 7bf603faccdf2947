"""Unit tests for FanoutSink and the sink registry."""

from __future__ import annotations

import pytest

from eventrouter.config import RouterConfig, StartupConfigurationError
from eventrouter.models.envelopes import EventData
from eventrouter.routing import registry
from eventrouter.routing.dispatcher import FanoutSink
from eventrouter.routing.registry import build_sink, manufacture_sink, register_sink
from eventrouter.routing.sinks.local_file import LocalFileSink
from eventrouter.routing.sinks.log import LogSink
from eventrouter.routing.sinks.stdout import StdoutSink


@pytest.fixture
def config(tmp_path, monkeypatch) -> RouterConfig:
    monkeypatch.chdir(tmp_path)
    return RouterConfig(local_file_path=tmp_path / "events")


@pytest.fixture
def clean_registry(monkeypatch):
    monkeypatch.setattr(registry, "SINK_REGISTRY", dict(registry.SINK_REGISTRY))


class _ClosableSink:
    def __init__(self, fail: bool = False) -> None:
        self.closed = False
        self._fail = fail

    @property
    def sink_name(self) -> str:
        return "closable"

    def accept(self, envelope) -> None:
        pass

    def close(self) -> None:
        if self._fail:
            raise OSError("already closed")
        self.closed = True


# ---------------------------------------------------------------------------
# FanoutSink
# ---------------------------------------------------------------------------


class TestFanoutSink:
    def test_delivers_to_every_member(self, make_recording_sink, make_event):
        a, b = make_recording_sink("a"), make_recording_sink("b")
        fanout = FanoutSink([a, b])

        envelope = EventData.build(make_event(resource_version="2"), make_event())
        succeeded = fanout.accept(envelope)

        assert succeeded == ["a", "b"]
        assert a.positions == ["2"]
        assert b.calls[0][1] is not None

    def test_partial_failure_continues(self, make_recording_sink, failing_sink, make_event):
        after = make_recording_sink("after")
        fanout = FanoutSink([failing_sink, after])

        succeeded = fanout.accept(EventData.build(make_event()))

        assert succeeded == ["after"]
        assert after.call_count == 1

    def test_all_members_failing_does_not_raise(self, failing_sink, make_event):
        assert FanoutSink([failing_sink]).accept(EventData.build(make_event())) == []

    def test_register_is_idempotent(self, recording_sink):
        fanout = FanoutSink()
        fanout.register_sink(recording_sink)
        fanout.register_sink(recording_sink)
        assert fanout.registered_sinks == [recording_sink]

    def test_sink_name_lists_members(self, make_recording_sink):
        fanout = FanoutSink([make_recording_sink("x"), make_recording_sink("y")])
        assert fanout.sink_name == "fanout(x,y)"

    def test_close_reaches_closable_members(self, recording_sink):
        closable, broken = _ClosableSink(), _ClosableSink(fail=True)
        FanoutSink([recording_sink, broken, closable]).close()
        assert closable.closed


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_default_is_stdout(self, config):
        assert isinstance(manufacture_sink(config), StdoutSink)

    def test_stdout_namespace_is_applied(self, config):
        sink = manufacture_sink(config.model_copy(update={"stdout_json_namespace": "k8s"}))
        assert sink.namespace == "k8s"

    @pytest.mark.parametrize("key", ["glog", "log", "LOG"])
    def test_log_aliases(self, config, key):
        assert isinstance(manufacture_sink(config.model_copy(update={"sink": key})), LogSink)

    def test_unknown_key_falls_back_to_stdout(self, config, caplog):
        sink = manufacture_sink(config.model_copy(update={"sink": "rockset"}))
        assert isinstance(sink, StdoutSink)
        assert "Unknown sink" in caplog.text

    def test_empty_key_falls_back_to_stdout(self, config):
        assert isinstance(manufacture_sink(config.model_copy(update={"sink": " "})), StdoutSink)

    def test_comma_list_builds_fanout(self, config):
        sink = manufacture_sink(config.model_copy(update={"sink": "stdout, local_file"}))
        assert isinstance(sink, FanoutSink)
        members = sink.registered_sinks
        assert isinstance(members[0], StdoutSink)
        assert isinstance(members[1], LocalFileSink)

    def test_factory_failure_is_a_startup_error(self, config):
        # The HTTP sink refuses an empty endpoint.
        with pytest.raises(StartupConfigurationError, match="http sink"):
            build_sink("http", config)

    def test_register_custom_sink(self, config, clean_registry, recording_sink):
        register_sink("Recorder", lambda cfg: recording_sink)
        assert manufacture_sink(config.model_copy(update={"sink": "recorder"})) is recording_sink

"""Tests for the AsyncConsole lifecycle and consumer loop."""

import io
import re
import threading
import time

import pytest

from tidelog.base.errors import InvalidPatternError
from tidelog.base.events import LogEvent
from tidelog.base.severity import Severity
from tidelog.core import console as console_module
from tidelog.core.config import ConsoleConfig
from tidelog.core.console import AsyncConsole
from tidelog.core.consumer import ConsumerState

BASE = 1_700_000_000.0


def _event(owner="app.Main", content="hello", at_ms=0, severity=Severity.INFO):
    return LogEvent.create(owner, severity, content, timestamp=BASE + at_ms / 1000)


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def console(stream):
    instance = AsyncConsole(ConsoleConfig(register_atexit=False), stream=stream)
    yield instance
    instance.stop()


class TestLifecycle:
    def test_start_is_idempotent(self, console):
        assert console.state is ConsumerState.STOPPED
        assert console.start() is True
        assert console.start() is False
        assert console.state is ConsumerState.RUNNING
        assert console.is_running

    def test_stop_is_idempotent(self, console):
        assert console.stop() is False
        console.start()
        assert console.stop() is True
        assert console.stop() is False
        assert not console.is_running

    def test_stop_reaches_stopped_state(self, console):
        console.start()
        thread = console._thread
        console.stop()
        thread.join(timeout=2)
        assert console.state is ConsumerState.STOPPED

    def test_restart_after_stop(self, console, stream):
        console.start()
        console.stop()
        assert console.start() is True
        console.submit(_event(content="after restart"))
        assert _wait_for(lambda: "after restart" in stream.getvalue())

    def test_consumer_renders_in_background(self, console, stream):
        console.start()
        console.submit(_event(content="async line"))
        assert _wait_for(lambda: "async line" in stream.getvalue())

    def test_context_manager_drains_on_exit(self, stream):
        with AsyncConsole(ConsoleConfig(register_atexit=False), stream=stream) as console:
            console.submit(_event(content="inside"))
        assert "inside" in stream.getvalue()
        assert console.state is ConsumerState.STOPPED


class TestDrain:
    def test_stop_leaves_events_queued_until_drain(self, console, stream):
        console.start()
        thread = console._thread
        console.stop()
        for i in range(3):
            console.submit(_event(content=f"queued {i}", at_ms=i))
        thread.join(timeout=2)

        assert "queued" not in stream.getvalue()
        assert console.drain_and_flush() == 3

        output = stream.getvalue()
        positions = [output.index(f"queued {i}") for i in range(3)]
        assert positions == sorted(positions)
        assert output.endswith("\n\n")

    def test_drain_without_start(self, console, stream):
        console.submit(_event(content="never started"))
        assert console.drain_and_flush() == 1
        assert "never started" in stream.getvalue()

    def test_drain_applies_filters(self, console, stream):
        console.add_silence_pattern("secret")
        console.submit(_event(content="secret token"))
        console.submit(_event(content="public", at_ms=1))
        assert console.drain_and_flush() == 1
        assert "secret" not in stream.getvalue()


class TestOrdering:
    def test_multi_producer_order_is_preserved(self, console, stream):
        producers, per_producer = 4, 200
        console.start()

        def produce(producer: int) -> None:
            for seq in range(per_producer):
                console.submit(_event(owner=f"producer.P{producer}", content=f"{producer}:{seq}"))

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(producers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        console.drain_and_flush()

        seen = {n: [] for n in range(producers)}
        for match in re.finditer(r"\] (\d+):(\d+)$", stream.getvalue(), re.MULTILINE):
            seen[int(match.group(1))].append(int(match.group(2)))
        for producer in range(producers):
            assert seen[producer] == list(range(per_producer))


class TestFiltering:
    def test_banned_events_never_reach_the_renderer(self, console, stream):
        console.add_ban_pattern(r"^noisy\.")
        console.submit(_event(owner="noisy.AnExtremelyLongComponentName", content="spam"))
        console.submit(_event(owner="app.Main", content="kept", at_ms=1))
        console.drain_and_flush()

        assert console.renderer.state.longest_short_name == 12
        assert "spam" not in stream.getvalue()
        assert "kept" in stream.getvalue()

    def test_ban_applies_to_running_consumer(self, console, stream):
        console.start()
        console.add_ban_pattern("^chatty$")
        console.submit(_event(owner="chatty", content="dropped"))
        console.submit(_event(owner="app.Main", content="marker", at_ms=1))
        assert _wait_for(lambda: "marker" in stream.getvalue())
        assert "dropped" not in stream.getvalue()

    def test_malformed_pattern_raises(self, console):
        with pytest.raises(InvalidPatternError):
            console.add_silence_pattern("*bad")

    def test_config_patterns_are_loaded(self, stream):
        console = AsyncConsole(
            ConsoleConfig(register_atexit=False, silence=["^ping$"], ban=["^legacy"]),
            stream=stream,
        )
        console.submit(_event(content="ping"))
        console.submit(_event(owner="legacy.Thing", content="old", at_ms=1))
        assert console.drain_and_flush() == 0


class TestSettings:
    def test_minimum_severity(self, console):
        assert console.minimum_severity is Severity.INFO
        assert not console.is_enabled(Severity.DEBUG)
        console.set_minimum_severity("trace")
        assert console.is_enabled(Severity.TRACE)
        console.set_minimum_severity(Severity.ERROR)
        assert not console.is_enabled(Severity.WARN)

    def test_render_toggles(self, console, stream):
        console.submit(_event(content="plain"))
        console.drain_and_flush()
        assert "\x1b" not in stream.getvalue()

        console.set_ansi_enabled(True)
        console.set_powerline_enabled(True)
        console.set_repeat_collapse_enabled(True)
        assert console.renderer.options.ansi
        assert console.renderer.options.powerline
        assert console.renderer.options.collapse_repeats

        console.submit(_event(content="colored", at_ms=5))
        console.drain_and_flush()
        assert "\x1b[" in stream.getvalue()
        assert "\ue0b0" in stream.getvalue()


class FailingStream(io.StringIO):
    def write(self, text):
        raise BrokenPipeError("closed pipe")


def test_stream_failure_ends_consumer():
    console = AsyncConsole(ConsoleConfig(register_atexit=False), stream=FailingStream())
    console.start()
    thread = console._thread
    console.submit(_event())
    thread.join(timeout=2)
    assert not thread.is_alive()
    assert console.state is ConsumerState.STOPPED
    console.submit(_event(content="still accepted"))


def test_atexit_registration_follows_lifecycle(monkeypatch, stream):
    registered = []
    monkeypatch.setattr(console_module.atexit, "register", registered.append)
    monkeypatch.setattr(console_module.atexit, "unregister", registered.remove)

    console = AsyncConsole(ConsoleConfig(), stream=stream)
    console.start()
    assert registered == [console.drain_and_flush]
    console.start()
    assert len(registered) == 1
    console.stop()
    assert registered == []
    console.drain_and_flush()

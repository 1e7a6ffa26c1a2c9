"""Tests for silence and ban filters."""

import re
import threading

import pytest

from tidelog.base.errors import InvalidPatternError
from tidelog.base.events import LogEvent
from tidelog.base.filters import FilterSet, PatternSet, compile_pattern
from tidelog.base.severity import Severity


def _event(owner: str, content: str) -> LogEvent:
    return LogEvent.create(owner, Severity.INFO, content, timestamp=1700000000.0)


class TestPatternSet:
    def test_matches_anywhere_in_text(self):
        patterns = PatternSet(["heartbeat"])
        assert patterns.matches("sent heartbeat to peer")
        assert not patterns.matches("sent ping")

    def test_accepts_compiled_patterns(self):
        patterns = PatternSet()
        compiled = re.compile("ping", re.IGNORECASE)
        assert patterns.add(compiled) is compiled
        assert patterns.matches("PING")

    def test_duplicate_patterns_are_stored_once(self):
        patterns = PatternSet()
        patterns.add("a+")
        patterns.add("a+")
        assert len(patterns) == 1

    def test_concurrent_additions_are_all_visible(self):
        patterns = PatternSet()

        def add_many(prefix: int) -> None:
            for i in range(20):
                patterns.add(f"p{prefix}-{i}$")

        threads = [threading.Thread(target=add_many, args=(n,)) for n in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(patterns) == 200
        assert patterns.matches("p7-19")

    def test_readers_see_a_stable_snapshot(self):
        patterns = PatternSet(["one"])
        snapshot = patterns.patterns
        patterns.add("two")
        assert len(snapshot) == 1
        assert len(patterns.patterns) == 2


class TestCompilePattern:
    def test_malformed_pattern_raises_at_registration(self):
        with pytest.raises(InvalidPatternError) as info:
            compile_pattern("(unclosed")
        assert info.value.pattern == "(unclosed"

    def test_invalid_pattern_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            FilterSet().add_ban_pattern("[")

    def test_rejects_non_text_patterns(self):
        with pytest.raises(InvalidPatternError):
            compile_pattern(42)
        with pytest.raises(InvalidPatternError):
            compile_pattern(re.compile(b"bytes"))


class TestFilterSet:
    def test_ban_matches_full_emitter_name(self):
        filters = FilterSet(ban=[r"^noisy\."])
        assert not filters.allows(_event("noisy.Poller", "tick"))
        assert filters.allows(_event("app.Poller", "tick"))

    def test_silence_matches_content(self):
        filters = FilterSet(silence=["tick"])
        assert not filters.allows(_event("app.Poller", "tick 4"))
        assert filters.allows(_event("app.Poller", "tock"))

    def test_ban_does_not_look_at_content(self):
        filters = FilterSet(ban=["secret"])
        assert filters.allows(_event("app.Main", "secret stuff"))

    def test_patterns_added_later_take_effect(self):
        filters = FilterSet()
        event = _event("app.Main", "hello")
        assert filters.allows(event)
        filters.add_silence_pattern("hel+o")
        assert not filters.allows(event)

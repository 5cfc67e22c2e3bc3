"""Tests for the command registry."""

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from relaybot.commands.base import CommandRegistry, SourceKind
from relaybot.config import SourceConfig


def _src(kind, commands, description=None):
    return SourceConfig(type=kind, commands=commands, description=description)


def _make_registry(sources, self_name="RelayBot"):
    registry = CommandRegistry()
    registry.register(sources, self_name=self_name)
    return registry


def test_distinct_words_all_register():
    registry = _make_registry({
        "self": _src("self", ["!help"]),
        "StatsBot": _src("relay", ["!stats"]),
    })
    assert registry.resolve("!help").kind is SourceKind.SELF
    assert registry.resolve("!stats").name == "StatsBot"
    assert registry.command_words == ["!help", "!stats"]


def test_duplicate_word_keeps_first_and_warns():
    with capture_logs() as logs:
        registry = _make_registry({
            "StatsBot": _src("relay", ["!stats"]),
            "OtherBot": _src("relay", ["!STATS", "!other"]),
        })
    assert registry.resolve("!stats").name == "StatsBot"
    assert registry.resolve("!other").name == "OtherBot"
    conflicts = [e for e in logs if e["event"] == "duplicate_command"]
    assert len(conflicts) == 1
    assert conflicts[0]["source"] == "OtherBot"
    assert conflicts[0]["assigned_to"] == "StatsBot"
    assert conflicts[0]["log_level"] == "warning"


def test_resolve_is_case_insensitive():
    registry = _make_registry({"self": _src("self", ["!watch"])})
    assert registry.resolve("!Watch") is registry.resolve("!watch")
    assert registry.resolve("!WATCH") is not None


def test_resolve_unknown_or_garbage_returns_none():
    registry = _make_registry({"self": _src("self", ["!watch"])})
    assert registry.resolve("!nope") is None
    assert registry.resolve(None) is None
    registry._command_map["!broken"] = 42
    assert registry.resolve("!broken") is None


def test_self_source_named_after_main_nick():
    registry = _make_registry({"self": _src("self", ["!help"])}, self_name="Botty")
    assert registry.resolve("!help").name == "Botty"


def test_relay_names_lists_only_relays():
    registry = _make_registry({
        "self": _src("self", ["!help"]),
        "StatsBot": _src("relay", ["!stats"]),
        "QuoteBot": _src("relay", []),
    })
    assert registry.relay_names == ["StatsBot", "QuoteBot"]


def test_register_merges_later_sources():
    registry = _make_registry({"StatsBot": _src("relay", ["!stats"])})
    registry.register({"QuoteBot": _src("relay", ["!quote"])}, self_name="RelayBot")
    assert registry.resolve("!stats").name == "StatsBot"
    assert registry.resolve("!quote").name == "QuoteBot"


def test_source_config_accepts_object_entries_and_drops_garbage():
    cfg = SourceConfig.model_validate({
        "type": "relay",
        "commands": [{"command": "!Stats"}, "!rank", {"command": 5}, None, 7],
    })
    assert cfg.commands == ["!stats", "!rank"]


def test_source_config_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        SourceConfig.model_validate({"type": "webhook", "commands": []})

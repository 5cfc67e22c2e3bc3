"""Shared fixtures: a recording chat client and a minimal config."""

import pytest

from relaybot.bot import RelayBot
from relaybot.config import Config


class FakeClient:
    """Stands in for IRCClient and records everything sent."""

    def __init__(self):
        self.lines = []
        self.joined = []
        self.connected = False
        self.on_message = None
        self.on_join = None
        self.on_kick = None

    def say(self, target, line):
        self.lines.append((target, line))

    def join(self, channel):
        self.joined.append(channel)

    async def connect(self):
        self.connected = True

    def disconnect(self, message=""):
        self.connected = False

    def to(self, target):
        return [line for t, line in self.lines if t == target]


def make_settings(savefile, **overrides):
    settings = {
        "main": {"server": "irc.main.test", "nickname": "RelayBot", "channel": "#lobby"},
        "relay": {"server": "irc.relay.test", "nickname": "RelayNick", "channel": "#bots"},
        "savefile": str(savefile),
        "irc": {"flood_protection": False, "reconnect_delay": 0},
        "sayings": {
            "greeting": "hello",
            "kicked": "ouch",
        },
        "sources": {
            "self": {
                "type": "self",
                "description": "Built-in commands.",
                "commands": ["!watch", "!unwatch", "!watched", "!help"],
            },
            "StatsBot": {
                "type": "relay",
                "description": "Game statistics.",
                "commands": [{"command": "!stats"}, {"command": "!Rank"}],
            },
            "QuoteBot": {
                "type": "relay",
                "commands": ["!quote"],
            },
        },
    }
    settings.update(overrides)
    return settings


@pytest.fixture
def savefile(tmp_path):
    return tmp_path / "data" / "watchlist.json"


@pytest.fixture
def config(tmp_path, savefile):
    return Config(config_dir=tmp_path / "config", settings=make_settings(savefile))


@pytest.fixture
def main_client():
    return FakeClient()


@pytest.fixture
def relay_client():
    return FakeClient()


@pytest.fixture
def bot(config, main_client, relay_client):
    return RelayBot(config, main_client=main_client, relay_client=relay_client)

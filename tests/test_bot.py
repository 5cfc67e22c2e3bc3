"""Tests for bot wiring and join/kick greetings."""

import pytest

from relaybot.bot import RelayBot
from relaybot.config import Config

from conftest import FakeClient, make_settings


def test_join_greets_main_channel(bot, main_client):
    bot.on_join("#lobby", "RelayBot")
    assert main_client.lines == [("#lobby", "hello")]


def test_join_by_someone_else_is_ignored(bot, main_client):
    bot.on_join("#lobby", "alice")
    bot.on_join("#elsewhere", "RelayBot")
    assert main_client.lines == []


def test_rejoin_after_kick_complains_exactly_once(bot, main_client):
    bot.on_join("#lobby", "RelayBot")
    bot.on_kick("#lobby", "RelayBot", "op", "bye")
    bot.on_join("#lobby", "relaybot")
    bot.on_join("#lobby", "RelayBot")
    assert main_client.to("#lobby") == ["hello", "ouch", "hello"]


def test_kick_of_other_nick_does_not_set_flag(bot, main_client):
    bot.on_kick("#lobby", "alice", "op", "spam")
    bot.on_join("#lobby", "RelayBot")
    assert main_client.to("#lobby") == ["hello"]
    assert main_client.joined == []


def test_kick_without_auto_rejoin_stays_out(bot, main_client):
    bot.on_kick("#lobby", "RelayBot", "op", "bye")
    assert bot.ctx.kicked is True
    assert main_client.joined == []


def test_auto_rejoin_after_kick(tmp_path):
    settings = make_settings(
        tmp_path / "w.json",
        irc={"flood_protection": False, "auto_rejoin": True, "reconnect_delay": 0},
    )
    main_client = FakeClient()
    bot = RelayBot(Config(tmp_path, settings=settings), main_client, FakeClient())
    bot.on_kick("#lobby", "RelayBot", "op", "bye")
    assert main_client.joined == ["#lobby"]


def test_clients_are_wired_to_handlers(bot, main_client, relay_client):
    main_client.on_message("alice", "#lobby", "!stats")
    relay_client.on_message("StatsBot", "RelayNick", "done")
    main_client.on_kick("#lobby", "RelayBot", "op", "")
    main_client.on_join("#lobby", "RelayBot")
    assert main_client.lines == [("#lobby", "done"), ("#lobby", "ouch")]


def test_say_transform_applies_to_phrases(config, main_client, relay_client):
    bot = RelayBot(config, main_client, relay_client, say_transform=str.upper)
    bot.on_join("#lobby", "RelayBot")
    assert main_client.lines == [("#lobby", "HELLO")]


def test_existing_watchlist_loaded_at_startup(tmp_path):
    savefile = tmp_path / "w.json"
    savefile.write_text('{"dave": null}', encoding="utf-8")
    bot = RelayBot(Config(tmp_path, settings=make_settings(savefile)), FakeClient(), FakeClient())
    assert bot.ctx.watchlist.contains("Dave")


@pytest.mark.asyncio
async def test_start_and_stop_manage_both_clients(bot, main_client, relay_client):
    await bot.start()
    assert main_client.connected and relay_client.connected
    await bot.stop()
    assert not main_client.connected and not relay_client.connected

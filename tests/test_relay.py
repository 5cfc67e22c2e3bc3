"""Tests for relay forwarding and reply correlation."""

from relaybot.relay import RelayCorrelationEngine


def test_fifo_correlation_routes_replies_to_requesters(bot, main_client, relay_client):
    bot.dispatcher.handle_message("alice", "relaybot", "!stats alice")
    bot.dispatcher.handle_message("bob", "#lobby", "!stats bob")
    assert relay_client.lines == [("StatsBot", "!stats alice"), ("StatsBot", "!stats bob")]

    bot.on_relay_message("StatsBot", "RelayNick", "reply-1")
    bot.on_relay_message("StatsBot", "RelayNick", "reply-2")

    assert main_client.lines == [("alice", "reply-1"), ("#lobby", "reply-2")]
    assert bot.ctx.relays.pending("StatsBot") == 0


def test_queues_are_per_source(bot, main_client):
    bot.dispatcher.handle_message("alice", "#lobby", "!stats")
    bot.dispatcher.handle_message("bob", "relaybot", "!quote")

    bot.on_relay_message("QuoteBot", "RelayNick", "a quote")
    bot.on_relay_message("StatsBot", "RelayNick", "some stats")

    assert main_client.lines == [("bob", "a quote"), ("#lobby", "some stats")]


def test_empty_queue_addressed_reply_broadcasts(bot, main_client):
    bot.on_relay_message("StatsBot", "relaynick", "unsolicited")
    assert main_client.lines == [("#lobby", "unsolicited")]


def test_empty_queue_unaddressed_reply_is_dropped(bot, main_client):
    bot.on_relay_message("StatsBot", "#bots", "channel chatter")
    assert main_client.lines == []


def test_watchlist_match_passes_channel_message(bot, main_client):
    bot.ctx.watchlist.add("Carol")
    bot.on_relay_message("StatsBot", "#bots", "CAROL scored a goal")
    assert main_client.lines == [("#lobby", "CAROL scored a goal")]


def test_unknown_sender_is_ignored(bot, main_client):
    bot.ctx.watchlist.add("carol")
    bot.dispatcher.handle_message("alice", "#lobby", "!stats")
    bot.on_relay_message("RandomUser", "RelayNick", "carol is here")
    assert main_client.lines == []
    assert bot.ctx.relays.pending("StatsBot") == 1


def test_gated_reply_still_consumes_queue_entry(bot, main_client):
    bot.dispatcher.handle_message("alice", "#lobby", "!stats")
    bot.on_relay_message("StatsBot", "#bots", "not for us")
    assert main_client.lines == []
    assert bot.ctx.relays.pending("StatsBot") == 0


def test_peer_nick_matched_case_insensitively(bot, main_client):
    bot.dispatcher.handle_message("alice", "#lobby", "!stats")
    bot.on_relay_message("statsbot", "RelayNick", "ok")
    assert main_client.lines == [("#lobby", "ok")]


def test_long_reply_is_split_for_transport(bot, main_client):
    text = " ".join(["token"] * 100)
    bot.on_relay_message("StatsBot", "RelayNick", text)
    lines = [line for _, line in main_client.lines]
    assert len(lines) == 2
    assert all(len(line) <= 300 for line in lines)
    assert " ".join(lines) == text


def test_reset_clears_pending_entries():
    engine = RelayCorrelationEngine()
    engine.reset(["StatsBot"])
    assert engine.is_relay("STATSBOT")
    assert engine.next_target("StatsBot", fallback="#lobby") == "#lobby"
    engine.reset(["QuoteBot"])
    assert not engine.is_relay("StatsBot")
    assert engine.pending("StatsBot") == 0

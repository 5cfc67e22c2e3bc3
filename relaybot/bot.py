"""Relay bot implementation.

Owns the two IRC connections and the session context, and wires
network events into the dispatcher, the relay engine, and the
join/kick greeting logic.

Key classes:
    RelayBot: Main bot class. Builds the BotContext from Config
        and runs both connections on the current event loop.
"""

from typing import Callable, Optional

import structlog

from .commands.base import BotContext, ChatClient, CommandRegistry
from .config import Config
from .dispatcher import CommandDispatcher
from .formatter import Phrasebook
from .irc_client import IRCClient
from .relay import RelayCorrelationEngine
from .watchlist import WatchlistStore

logger = structlog.get_logger("relaybot.bot")


def build_context(
    config: Config,
    main_client: ChatClient,
    relay_client: ChatClient,
    say_transform: Optional[Callable[[str], str]] = None,
) -> BotContext:
    """Create a BotContext with sources registered and the watchlist loaded."""
    watchlist = WatchlistStore(config.savefile)
    watchlist.load()
    ctx = BotContext(
        config=config,
        registry=CommandRegistry(),
        relays=RelayCorrelationEngine(),
        watchlist=watchlist,
        phrases=Phrasebook(config.sayings, transform=say_transform),
        main_client=main_client,
        relay_client=relay_client,
    )
    ctx.add_sources(config.sources)
    return ctx


class RelayBot:
    """Bridge between the main and relay IRC networks.

    Args:
        config: Validated Config.
        main_client: Client for the main network. Built from config
            when omitted.
        relay_client: Client for the relay network. Built from config
            when omitted.
        say_transform: Optional hook applied to every phrase the bot
            says on the main network.
    """

    def __init__(
        self,
        config: Config,
        main_client: Optional[ChatClient] = None,
        relay_client: Optional[ChatClient] = None,
        say_transform: Optional[Callable[[str], str]] = None,
    ):
        self.config = config
        self.main_client = main_client or IRCClient("main", config.main, config.irc)
        self.relay_client = relay_client or IRCClient("relay", config.relay, config.irc)
        self.ctx = build_context(config, self.main_client, self.relay_client, say_transform)
        self.dispatcher = CommandDispatcher(self.ctx)

        self.main_client.on_message = self.dispatcher.handle_message
        self.main_client.on_join = self.on_join
        self.main_client.on_kick = self.on_kick
        self.relay_client.on_message = self.on_relay_message

    async def start(self):
        """Connect both networks."""
        await self.main_client.connect()
        await self.relay_client.connect()
        logger.info(
            "bot_started",
            main_nick=self.ctx.main_nick,
            relay_nick=self.ctx.relay_nick,
            commands=len(self.ctx.registry.command_words),
            watched=len(self.ctx.watchlist),
        )

    async def stop(self):
        for client in (self.main_client, self.relay_client):
            client.disconnect("Shutting down")
        logger.info("bot_stopped")

    def on_relay_message(self, nick: str, to: str, text: str) -> None:
        self.ctx.relays.handle_reply(self.ctx, nick, to, text)

    def on_join(self, channel: str, nick: str) -> None:
        """Greet the main channel when the bot itself joins it."""
        if nick.lower() != self.ctx.main_nick.lower():
            return
        if channel.lower() != self.ctx.main_channel.lower():
            return
        if self.ctx.kicked:
            self.ctx.kicked = False
            self.ctx.say_phrase(channel, "kicked")
        else:
            self.ctx.say_phrase(channel, "greeting")

    def on_kick(self, channel: str, nick: str, by: str, reason: str) -> None:
        """Remember being kicked so the next join complains about it."""
        if nick.lower() != self.ctx.main_nick.lower():
            return
        if channel.lower() != self.ctx.main_channel.lower():
            return
        self.ctx.kicked = True
        logger.warning("kicked_from_channel", channel=channel, by=by, reason=reason)
        if self.config.irc.auto_rejoin:
            self.main_client.join(channel)

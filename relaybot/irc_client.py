"""IRC network client for relaybot.

Thin wrapper over the ``irc`` library's asyncio reactor. Each network
gets its own reactor on the shared event loop, so both connections
deliver events through the same single-threaded loop.

Inbound ``pubmsg``/``privmsg``, ``join`` and ``kick`` events are
translated into plain callbacks; outbound lines go through ``say``,
optionally paced by an asyncio queue for flood protection.
"""

import asyncio
import re
import ssl
from typing import Callable, List, Optional

import irc.client
import irc.client_aio
import irc.connection
import structlog

from .config import IRCOptions, NetworkSettings
from .exceptions import IRCConnectionError

logger = structlog.get_logger("relaybot.irc")

MessageCallback = Callable[[str, str, str], None]
JoinCallback = Callable[[str, str], None]
KickCallback = Callable[[str, str, str, str], None]

# mIRC colour (\x03fg[,bg]), bold, italics, underline, reverse, reset
_FORMATTING_RE = re.compile(r"\x03(?:\d{1,2}(?:,\d{1,2})?)?|[\x02\x0f\x16\x1d\x1f]")


def strip_formatting(text: str) -> str:
    """Remove mIRC colour and formatting control codes."""
    return _FORMATTING_RE.sub("", text)


class IRCClient:
    """One connection to one IRC network.

    Args:
        label: Short name used in logs ("main" or "relay").
        network: Server, nickname and channel for this network.
        options: Shared client options.
        loop: Event loop to run on. Defaults to the running loop.
    """

    def __init__(
        self,
        label: str,
        network: NetworkSettings,
        options: IRCOptions,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.label = label
        self.network = network
        self.options = options
        self.channels: List[str] = [network.channel]
        self.on_message: Optional[MessageCallback] = None
        self.on_join: Optional[JoinCallback] = None
        self.on_kick: Optional[KickCallback] = None

        self._loop = loop
        self._reactor: Optional[irc.client_aio.AioReactor] = None
        self.connection: Optional[irc.client_aio.AioConnection] = None
        self._outbox: "asyncio.Queue[tuple]" = asyncio.Queue()
        self._drain_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._running = False

    async def connect(self) -> None:
        """Connect, register, and join channels once welcomed.

        Raises:
            IRCConnectionError: The server could not be reached.
        """
        loop = self._loop or asyncio.get_running_loop()
        if self._reactor is None:
            self._reactor = irc.client_aio.AioReactor(loop=loop)
            for event, handler in (
                ("welcome", self._on_welcome),
                ("pubmsg", self._on_msg),
                ("privmsg", self._on_msg),
                ("join", self._on_join),
                ("kick", self._on_kick),
                ("nicknameinuse", self._on_nickname_in_use),
                ("disconnect", self._on_disconnect),
            ):
                self._reactor.add_global_handler(event, handler)
            self.connection = self._reactor.server()

        factory = irc.connection.AioFactory(
            ssl=ssl.create_default_context() if self.network.ssl else None
        )
        logger.info(
            "irc_connecting",
            network=self.label,
            server=self.network.server,
            port=self.network.port,
            nickname=self.network.nickname,
        )
        try:
            await self.connection.connect(
                self.network.server,
                self.network.port,
                self.network.nickname,
                password=self.network.password,
                connect_factory=factory,
            )
        except (OSError, irc.client.ServerConnectionError) as e:
            raise IRCConnectionError(
                f"Could not connect to {self.network.server}",
                network=self.label,
                error=str(e),
            ) from e

        self._running = True
        if self.options.flood_protection and (self._drain_task is None or self._drain_task.done()):
            self._drain_task = loop.create_task(self._drain_outbox())

    def disconnect(self, message: str = "") -> None:
        self._running = False
        for task in (self._drain_task, self._reconnect_task):
            if task is not None and not task.done():
                task.cancel()
        if self.connection is not None and self.connection.is_connected():
            self.connection.disconnect(message)
        logger.info("irc_disconnected", network=self.label)

    def join(self, channel: str) -> None:
        if self.connection is not None and self.connection.is_connected():
            self.connection.join(channel)

    def say(self, target: str, line: str) -> None:
        """Send one line to a channel or nick."""
        if self.options.flood_protection:
            self._outbox.put_nowait((target, line))
        else:
            self._send(target, line)

    def _send(self, target: str, line: str) -> None:
        if self.connection is None:
            logger.warning("irc_send_not_connected", network=self.label, target=target)
            return
        try:
            self.connection.privmsg(target, line)
        except irc.client.ServerNotConnectedError:
            logger.warning("irc_send_not_connected", network=self.label, target=target)
        except ValueError as e:
            # MessageTooLong / InvalidCharacters
            logger.warning("irc_send_rejected", network=self.label, target=target, error=str(e))

    async def _drain_outbox(self) -> None:
        while True:
            target, line = await self._outbox.get()
            self._send(target, line)
            await asyncio.sleep(self.options.flood_protection_delay)

    # --- irc library event handlers ---

    def _text(self, event) -> str:
        text = event.arguments[0] if event.arguments else ""
        return strip_formatting(text) if self.options.strip_colors else text

    def _on_welcome(self, connection, event) -> None:
        logger.info("irc_welcome", network=self.label, nickname=connection.get_nickname())
        for channel in self.channels:
            connection.join(channel)

    def _on_msg(self, connection, event) -> None:
        if self.on_message is not None:
            self.on_message(event.source.nick, event.target, self._text(event))

    def _on_join(self, connection, event) -> None:
        if self.on_join is not None:
            self.on_join(event.target, event.source.nick)

    def _on_kick(self, connection, event) -> None:
        kicked = event.arguments[0] if event.arguments else ""
        reason = event.arguments[1] if len(event.arguments) > 1 else ""
        logger.info("irc_kick", network=self.label, channel=event.target, nick=kicked, by=event.source.nick)
        if self.on_kick is not None:
            self.on_kick(event.target, kicked, event.source.nick, reason)

    def _on_nickname_in_use(self, connection, event) -> None:
        logger.error("irc_nickname_in_use", network=self.label, nickname=self.network.nickname)

    def _on_disconnect(self, connection, event) -> None:
        if not self._running or not self.options.reconnect_delay:
            return
        logger.warning("irc_connection_lost", network=self.label, retry_in=self.options.reconnect_delay)
        loop = self._loop or asyncio.get_running_loop()
        self._reconnect_task = loop.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        while self._running:
            await asyncio.sleep(self.options.reconnect_delay)
            try:
                await self.connect()
                return
            except IRCConnectionError as e:
                logger.warning("irc_reconnect_failed", network=self.label, error=str(e))

"""Relay correlation engine.

Forwards relay-bound commands to their peer on the relay network and
routes the peer's replies back to whoever asked.

The relay protocol carries no request identity, so replies are
correlated purely by order: each peer has a FIFO queue of reply
targets, one entry per forwarded command, and each inbound line from
that peer consumes one entry. A peer that answers with zero or
several lines desynchronizes its queue.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Deque, Dict, Iterable, Optional

import structlog

if TYPE_CHECKING:
    from .commands.base import BotContext, CommandRequest

logger = structlog.get_logger("relaybot.relay")


class RelayCorrelationEngine:
    """Per-peer FIFO queues of pending reply targets."""

    def __init__(self):
        self._queues: Dict[str, Deque[str]] = {}

    def reset(self, names: Iterable[str]) -> None:
        """Start an empty queue for every relay source name."""
        self._queues = {name.lower(): deque() for name in names}

    def is_relay(self, nick: Optional[str]) -> bool:
        return isinstance(nick, str) and nick.lower() in self._queues

    def pending(self, name: str) -> int:
        """Number of replies still expected from ``name``."""
        queue = self._queues.get(name.lower())
        return len(queue) if queue is not None else 0

    def forward(self, ctx: "BotContext", request: "CommandRequest") -> None:
        """Queue the requester and pass the command text to the peer."""
        peer = request.source.name
        queue = self._queues.get(peer.lower())
        if queue is None:
            logger.warning("relay_queue_missing", source=peer)
            return
        queue.append(request.reply)
        ctx.relay_client.say(peer, request.fulltext)
        logger.info(
            "relay_forwarded",
            source=peer,
            action=request.action,
            reply=request.reply,
            pending=len(queue),
        )

    def next_target(self, nick: str, fallback: str) -> str:
        """Pop the oldest pending target for ``nick``, or return ``fallback``."""
        queue = self._queues[nick.lower()]
        if queue:
            return queue.popleft()
        return fallback

    def handle_reply(self, ctx: "BotContext", nick: str, to: str, text: str) -> None:
        """Route a relay-network message back to the main network.

        Messages from nicks that are not relay sources are ignored.
        The queue entry is consumed even when the message is then
        gated off.
        """
        if not self.is_relay(nick):
            return
        target = self.next_target(nick, fallback=ctx.main_channel)
        addressed = isinstance(to, str) and to.lower() == ctx.relay_nick.lower()
        if not (addressed or ctx.watchlist.matches(text)):
            logger.debug("relay_reply_dropped", source=nick, target=target)
            return
        logger.info("relay_reply", source=nick, target=target, addressed=addressed)
        ctx.emit(target, text)

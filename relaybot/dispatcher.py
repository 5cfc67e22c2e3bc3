"""Main-network command dispatch.

Parses the leading command word of each main-network message,
resolves it to a source, and hands it to the self-command handler
or the relay engine. Anything that does not resolve is ignored.
"""

from __future__ import annotations

import structlog

from .commands.base import BotContext, CommandRequest, SourceKind
from .commands.self_commands import SelfCommandHandler

logger = structlog.get_logger("relaybot.bot")


class CommandDispatcher:
    """Routes main-network messages to the handler for their source kind."""

    def __init__(self, ctx: BotContext):
        self.ctx = ctx
        self.self_commands = SelfCommandHandler(ctx)

    def handle_message(self, nick: str, to: str, text: str) -> None:
        """Dispatch one main-network message.

        Args:
            nick: Nickname of the speaker.
            to: Channel the message arrived on, or the bot's own nick
                for a private message.
            text: Message text.
        """
        params = text.split()
        if not params:
            return
        action = params.pop(0).lower()
        source = self.ctx.registry.resolve(action)
        if source is None:
            return

        # Private commands get private replies
        reply = nick if to.lower() == self.ctx.main_nick.lower() else to
        request = CommandRequest(
            source=source,
            fulltext=text,
            action=action,
            reply=reply,
            params=params,
        )
        logger.debug("command_routing", action=action, kind=source.kind.value, reply=reply)

        if source.kind is SourceKind.SELF:
            self.self_commands.handle(request)
        elif source.kind is SourceKind.RELAY:
            self.ctx.relays.forward(self.ctx, request)

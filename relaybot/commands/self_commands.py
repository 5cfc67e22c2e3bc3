"""Commands the bot answers itself.

Handles: !watch, !unwatch, !watched, !help.
"""

from __future__ import annotations

import structlog

from .base import BaseCommandHandler, CommandRequest, SelfCommand

logger = structlog.get_logger("relaybot.bot")


class SelfCommandHandler(BaseCommandHandler):
    """Watchlist management and help."""

    def get_commands(self):
        return {
            SelfCommand.WATCH: self.handle_watch,
            SelfCommand.UNWATCH: self.handle_unwatch,
            SelfCommand.WATCHED: self.handle_watched,
            SelfCommand.HELP: self.handle_help,
        }

    def handle_watch(self, request: CommandRequest) -> None:
        """Add a nick to the watchlist.

        Usage::

            !watch somenick
        """
        if not request.params:
            self.ctx.say_phrase(request.reply, "watch_usage")
            return
        nick = request.params[0]
        if self.ctx.watchlist.contains(nick):
            self.ctx.say_phrase(request.reply, "watched_already", nick)
        elif self.ctx.watchlist.add(nick):
            self.ctx.say_phrase(request.reply, "watch_added", nick)
        else:
            self.ctx.say_phrase(request.reply, "watch_failed", nick)

    def handle_unwatch(self, request: CommandRequest) -> None:
        """Remove a nick from the watchlist.

        Usage::

            !unwatch somenick
        """
        if not request.params:
            self.ctx.say_phrase(request.reply, "unwatch_usage")
            return
        nick = request.params[0]
        if not self.ctx.watchlist.contains(nick):
            self.ctx.say_phrase(request.reply, "unwatched_already", nick)
        elif self.ctx.watchlist.remove(nick):
            self.ctx.say_phrase(request.reply, "watch_removed", nick)
        else:
            self.ctx.say_phrase(request.reply, "watch_failed", nick)

    def handle_watched(self, request: CommandRequest) -> None:
        watched = self.ctx.watchlist.list()
        self.ctx.say_phrase(request.reply, "watched", " ".join(watched) if watched else "nobody")

    def handle_help(self, request: CommandRequest) -> None:
        """List every command word, or describe the source behind one.

        Usage::

            !help
            !help !somecommand
        """
        if not request.params:
            words = self.ctx.registry.command_words
            self.ctx.say_phrase(request.reply, "help", " ".join(words))
            return
        word = request.params[0]
        source = self.ctx.registry.resolve(word)
        if source is None:
            self.ctx.say_phrase(request.reply, "help_notfound", word)
            return
        self.ctx.say_phrase(request.reply, "help_provider", source.name)
        if source.description:
            self.ctx.say_text(request.reply, source.description)
        else:
            self.ctx.say_phrase(request.reply, "help_not_available", word)

"""Command routing for relaybot.

Provides the source registry, the shared BotContext, and the
handler for commands the bot answers itself.
"""

from .base import (
    BaseCommandHandler,
    BotContext,
    CommandRegistry,
    CommandRequest,
    SelfCommand,
    Source,
    SourceKind,
)
from .self_commands import SelfCommandHandler

__all__ = [
    "BaseCommandHandler",
    "BotContext",
    "CommandRegistry",
    "CommandRequest",
    "SelfCommand",
    "SelfCommandHandler",
    "Source",
    "SourceKind",
]

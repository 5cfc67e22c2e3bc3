"""Base types for command routing.

Defines the closed set of source kinds and self-commands, the
command registry that maps command words to sources, and the
session context shared by every handler.

Key classes:
    Source: A registered command provider (self or relay peer).
    CommandRequest: A parsed user command ready for a handler.
    CommandRegistry: Maps lowercased command words to sources.
    BotContext: Explicit session state passed to all handlers.
    BaseCommandHandler: ABC for groups of self-command handlers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Protocol

import structlog

from ..formatter import split_for_transport

if TYPE_CHECKING:
    from ..config import Config, SourceConfig
    from ..formatter import Phrasebook
    from ..relay import RelayCorrelationEngine
    from ..watchlist import WatchlistStore

logger = structlog.get_logger("relaybot.bot")


class SourceKind(str, Enum):
    """Who answers a command: the bot itself or a relay peer."""
    SELF = "self"
    RELAY = "relay"


class SelfCommand(str, Enum):
    """Commands the bot answers itself."""
    WATCH = "!watch"
    UNWATCH = "!unwatch"
    WATCHED = "!watched"
    HELP = "!help"


class ChatClient(Protocol):
    """The slice of a network client the core needs."""

    def say(self, target: str, line: str) -> None: ...


@dataclass
class Source:
    """A registered command provider.

    Attributes:
        name: The bot's main nickname for self sources, the peer's
            relay-network nickname for relay sources.
        kind: SourceKind.SELF or SourceKind.RELAY.
        commands: Lowercased command words, in configuration order.
        description: Optional help text shown by !help.
    """
    name: str
    kind: SourceKind
    commands: List[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class CommandRequest:
    """A user command resolved to its source."""
    source: Source
    fulltext: str
    action: str
    reply: str
    params: List[str] = field(default_factory=list)


class CommandRegistry:
    """Maps lowercased command words to source names.

    The first source to claim a word keeps it; later claims are
    dropped with a warning.
    """

    def __init__(self):
        self._configs: Dict[str, "SourceConfig"] = {}
        self._sources: Dict[str, Source] = {}
        self._command_map: Dict[str, str] = {}

    def register(self, sources: Mapping[str, "SourceConfig"], self_name: str) -> None:
        """Merge ``sources`` into the registry and rebuild the command map.

        Args:
            sources: Source configs keyed by source name. Insertion
                order decides precedence on duplicate words.
            self_name: The bot's main-network nickname, used as the
                name of every self-kind source.
        """
        self._configs.update(sources)
        self._sources = {}
        self._command_map = {}
        for key, cfg in self._configs.items():
            name = self_name if cfg.type is SourceKind.SELF else key
            source = Source(name=name, kind=cfg.type, description=cfg.description)
            self._sources[key] = source
            for word in cfg.commands:
                if not isinstance(word, str):
                    continue
                word = word.lower()
                if word in self._command_map:
                    logger.warning(
                        "duplicate_command",
                        command=word,
                        source=key,
                        assigned_to=self._command_map[word],
                    )
                    continue
                self._command_map[word] = key
                source.commands.append(word)
        logger.debug(
            "commands_registered",
            sources=len(self._sources),
            commands=len(self._command_map),
        )

    def resolve(self, word: Optional[str]) -> Optional[Source]:
        """Look up the source for a command word, ignoring case."""
        if not isinstance(word, str):
            return None
        key = self._command_map.get(word.lower())
        if not isinstance(key, str):
            return None
        return self._sources.get(key)

    @property
    def command_words(self) -> List[str]:
        """All registered command words in registration order."""
        return list(self._command_map)

    @property
    def relay_names(self) -> List[str]:
        """Names of all relay-kind sources."""
        return [s.name for s in self._sources.values() if s.kind is SourceKind.RELAY]

    @property
    def sources(self) -> List[Source]:
        return list(self._sources.values())


@dataclass
class BotContext:
    """Session state shared by every handler.

    Owned by the bot's single event loop; handlers run to completion
    one at a time, so no locking is needed.
    """

    config: "Config"
    registry: CommandRegistry
    relays: "RelayCorrelationEngine"
    watchlist: "WatchlistStore"
    phrases: "Phrasebook"
    main_client: ChatClient
    relay_client: ChatClient
    kicked: bool = False

    @property
    def main_nick(self) -> str:
        return self.config.main.nickname

    @property
    def main_channel(self) -> str:
        return self.config.main.channel

    @property
    def relay_nick(self) -> str:
        return self.config.relay.nickname

    def add_sources(self, sources: Mapping[str, "SourceConfig"]) -> None:
        """Register sources and reset the relay queues to match."""
        self.registry.register(sources, self_name=self.main_nick)
        self.relays.reset(self.registry.relay_names)
        implemented = {c.value for c in SelfCommand}
        for source in self.registry.sources:
            if source.kind is not SourceKind.SELF:
                continue
            for word in source.commands:
                if word not in implemented:
                    logger.warning("self_command_unimplemented", command=word)

    def say_text(self, target: str, template: str, *args) -> None:
        """Render a template and send it to the main network, line by line."""
        self.emit(target, self.phrases.text(template, *args))

    def say_phrase(self, target: str, key: str, *args) -> None:
        """Render a named saying and send it to the main network."""
        self.emit(target, self.phrases.phrase(key, *args))

    def emit(self, target: str, text: str) -> None:
        """Send already-rendered text to the main network, split to fit."""
        for line in split_for_transport(text, self.config.max_line_length):
            self.main_client.say(target, line)


class BaseCommandHandler(ABC):
    """Abstract base class for self-command handler groups.

    Subclasses implement get_commands() to map every SelfCommand
    they answer to a synchronous handler taking a CommandRequest.

    Args:
        ctx: Shared BotContext.
    """

    def __init__(self, ctx: BotContext):
        self.ctx = ctx

    @abstractmethod
    def get_commands(self) -> Dict[SelfCommand, Callable[[CommandRequest], None]]:
        ...

    def handle(self, request: CommandRequest) -> None:
        """Run the handler for ``request.action``, if there is one."""
        try:
            command = SelfCommand(request.action)
        except ValueError:
            return
        handler = self.get_commands().get(command)
        if handler is None:
            return
        logger.debug("self_command", command=command.value, reply=request.reply)
        handler(request)

"""Custom exception hierarchy for relaybot.

Unknown input (unregistered commands, unattributable relay senders) is
never an exception: the dispatcher and relay engine simply ignore it.
The classes below cover the failures that are worth surfacing.
"""

from pathlib import Path
from typing import Any, Optional, Union


class RelayBotError(Exception):
    """Base exception for all relaybot errors.

    Attributes:
        message: Human-readable error description.
        module: Originating module name (e.g. "watchlist").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"{cls}({self.message!r}, module={self.module!r})"


class ConfigurationError(RelayBotError):
    """Invalid or missing configuration. Always fatal at startup."""

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(message, module=module or "config", **context)


class WatchlistError(RelayBotError):
    """Watchlist file could not be read or written.

    Only load failures escape the store; write failures are logged
    and reported to the caller as a boolean.

    Attributes:
        path: The save file involved.
        operation: "load" or "save".
    """

    def __init__(
        self,
        message: str = "",
        *,
        path: Optional[Union[str, Path]] = None,
        operation: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.path = path
        self.operation = operation
        super().__init__(message, module=module or "watchlist", **context)


class TemplateError(RelayBotError):
    """A phrase key is unknown or its template does not fit the arguments.

    This is a programming error, not runtime data, so it propagates.
    """

    def __init__(
        self,
        message: str = "",
        *,
        key: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.key = key
        super().__init__(message, module=module or "formatter", **context)


class IRCConnectionError(RelayBotError):
    """Initial connection to one of the IRC networks failed."""

    def __init__(
        self,
        message: str = "",
        *,
        network: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.network = network
        super().__init__(message, module=module or "irc", **context)

"""Outgoing text formatting for relaybot.

Renders printf-style phrase templates and splits the result into
lines that fit the IRC line-length limit.

Key classes:
    Phrasebook: Named message templates ("sayings") with defaults.

Key functions:
    render: Positional printf-style substitution.
    split_for_transport: Greedy word-boundary line splitting.
"""

import re
from typing import Callable, Dict, List, Mapping, Optional

import structlog

from .exceptions import TemplateError

logger = structlog.get_logger("relaybot.bot")

_CONVERSION_RE = re.compile(r"%[-#0 +]*\d*(?:\.\d+)?[a-zA-Z]")

DEFAULT_SAYINGS: Dict[str, str] = {
    "greeting": "Hello! Say !help to see what I can do.",
    "kicked": "That was rude. I'm back anyway.",
    "watched_already": "%s is already being watched.",
    "watch_added": "Now watching %s.",
    "unwatched_already": "%s is not being watched.",
    "watch_removed": "No longer watching %s.",
    "watch_failed": "Could not save the watchlist, %s was not changed.",
    "watch_usage": "Usage: !watch <nick>",
    "unwatch_usage": "Usage: !unwatch <nick>",
    "watched": "Watching: %s",
    "help": "Commands: %s",
    "help_notfound": "No such command: %s",
    "help_provider": "Provided by: %s",
    "help_not_available": "No description available for %s.",
}


def render(template: str, *args) -> str:
    """Substitute ``args`` into a printf-style template.

    With no args the template is returned untouched so a literal
    ``%`` does not need escaping.

    Raises:
        TemplateError: The template does not fit the arguments.
    """
    if not args:
        return template
    try:
        return template % args
    except (TypeError, ValueError, KeyError) as exc:
        raise TemplateError(
            "Template does not match its arguments",
            template=template,
            arg_count=len(args),
        ) from exc


def placeholder_count(template: str) -> int:
    """Number of positional conversions in a printf-style template."""
    return len(_CONVERSION_RE.findall(template.replace("%%", "")))


def split_for_transport(text: str, max_length: Optional[int]) -> List[str]:
    """Split text into segments of at most ``max_length`` characters.

    Each split happens at the last space at or before ``max_length``;
    the space itself is consumed. A word longer than ``max_length`` is
    hard-cut without dropping any characters. The final remainder is
    always emitted, even if empty.
    """
    if not max_length:
        return [text]
    out = []
    while len(text) > max_length:
        pos = max_length
        while pos > 0 and text[pos] != " ":
            pos -= 1
        if pos == 0:
            out.append(text[:max_length])
            text = text[max_length:]
        else:
            out.append(text[:pos])
            text = text[pos + 1:]
    out.append(text)
    return out


class Phrasebook:
    """Named message templates.

    Configured sayings override the defaults key by key. An optional
    ``transform`` callable is applied to every rendered phrase.
    """

    def __init__(
        self,
        sayings: Optional[Mapping[str, str]] = None,
        transform: Optional[Callable[[str], str]] = None,
    ):
        self.sayings = {**DEFAULT_SAYINGS, **(sayings or {})}
        self.transform = transform

    def phrase(self, key: str, *args) -> str:
        """Render the saying registered under ``key``.

        Raises:
            TemplateError: ``key`` is unknown or its template does not
                fit ``args``.
        """
        template = self.sayings.get(key)
        if not isinstance(template, str):
            logger.error("invalid_phrase_key", key=key)
            raise TemplateError(f"Unknown phrase key: {key}", key=key)
        return self.text(template, *args)

    def text(self, template: str, *args) -> str:
        """Render an arbitrary template and apply the transform hook."""
        text = render(template, *args)
        if self.transform is not None:
            text = self.transform(text)
        return text

"""Persisted watchlist of nicknames.

The save file is a JSON object keyed by lowercased nickname with
``null`` values::

    {
     "alice": null,
     "bob": null
    }

Every mutation rewrites the whole file synchronously. Write failures
are logged and reported as ``False``; they never raise.
"""

import json
from pathlib import Path
from typing import List, Optional, Set, Union

import structlog

from .exceptions import WatchlistError

logger = structlog.get_logger("relaybot.watchlist")


class WatchlistStore:
    """Set of watched nicknames backed by a JSON save file.

    Args:
        savefile: Path to the JSON save file. Need not exist yet.
    """

    def __init__(self, savefile: Union[str, Path]):
        self.savefile = Path(savefile)
        self._nicks: Set[str] = set()

    def load(self) -> None:
        """Load the save file. A missing file means an empty watchlist.

        Raises:
            WatchlistError: The file exists but cannot be read or is
                not a JSON object.
        """
        if not self.savefile.exists():
            self._nicks = set()
            logger.info("watchlist_empty", path=str(self.savefile))
            return
        try:
            data = json.loads(self.savefile.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise WatchlistError(
                "Could not load watchlist",
                path=self.savefile,
                operation="load",
                error=str(e),
            ) from e
        if not isinstance(data, dict):
            raise WatchlistError(
                "Watchlist file must contain a JSON object",
                path=self.savefile,
                operation="load",
            )
        self._nicks = {str(k).lower() for k in data}
        logger.info("watchlist_loaded", path=str(self.savefile), count=len(self._nicks))

    def save(self) -> bool:
        """Write the full watchlist to disk. Returns False on failure."""
        payload = json.dumps(dict.fromkeys(sorted(self._nicks)), indent=1)
        try:
            self.savefile.parent.mkdir(parents=True, exist_ok=True)
            self.savefile.write_text(payload, encoding="utf-8")
        except OSError as e:
            logger.error(
                "watchlist_save_failed",
                path=str(self.savefile),
                error=str(e),
                exc_type=type(e).__name__,
            )
            return False
        return True

    def contains(self, nick: Optional[str]) -> bool:
        if not isinstance(nick, str):
            return False
        return nick.lower() in self._nicks

    def add(self, nick: str) -> bool:
        """Watch ``nick``. Returns whether the save succeeded.

        On failure the in-memory set is left as it was.
        """
        nick = nick.lower()
        is_new = nick not in self._nicks
        self._nicks.add(nick)
        if not self.save():
            if is_new:
                self._nicks.discard(nick)
            return False
        logger.info("watchlist_added", nick=nick)
        return True

    def remove(self, nick: str) -> bool:
        """Stop watching ``nick`` if watched. Returns whether the save succeeded.

        On failure the in-memory set is left as it was.
        """
        nick = nick.lower()
        was_watched = nick in self._nicks
        self._nicks.discard(nick)
        if not self.save():
            if was_watched:
                self._nicks.add(nick)
            return False
        logger.info("watchlist_removed", nick=nick)
        return True

    def matches(self, text: Optional[str]) -> bool:
        """True if any watched nick appears in ``text``, ignoring case."""
        if not isinstance(text, str) or not self._nicks:
            return False
        text = text.lower()
        return any(nick in text for nick in self._nicks)

    def list(self) -> List[str]:
        """Watched nicknames in sorted order."""
        return sorted(self._nicks)

    def __len__(self) -> int:
        return len(self._nicks)

"""Logging setup for relaybot.

Everything goes to stdout and to a combined relaybot.log. Each
subsystem (bot, relay, watchlist, irc) also gets its own rotating
file with an optional level override. Server and NickServ passwords
are masked before any event is rendered.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

SUBSYSTEMS = ("bot", "relay", "watchlist", "irc")

LOGGER_PREFIX = "relaybot"

_SECRET_PATTERNS = [
    # Raw server password line
    re.compile(r"(^PASS\s+)\S+"),
    # NickServ IDENTIFY [account] password
    re.compile(r"(?i)(\bIDENTIFY\s+(?:\S+\s+)?)\S+"),
]

_REDACTED = "***REDACTED***"

_SECRET_KEYS = frozenset({"password", "server_password"})


def _scrub_value(value: str) -> str:
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(lambda m: m.group(1) + _REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that masks IRC passwords.

    Values under password-like keys are replaced outright; other
    string values have PASS / IDENTIFY arguments redacted.
    """
    for key, value in event_dict.items():
        if key in _SECRET_KEYS and value:
            event_dict[key] = _REDACTED
        elif isinstance(value, str):
            event_dict[key] = _scrub_value(value)
    return event_dict


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    return getattr(logging, str(name).upper(), default)


def _reset_logger(
    name: str, level: int, handler: Optional[logging.Handler] = None
) -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(level)
    log.handlers.clear()
    log.propagate = True
    if handler is not None:
        log.addHandler(handler)
    return log


def setup_logging(config=None) -> None:
    """Route relaybot logs to the console and rotating files.

    Called twice by ``main``: once with no config so startup errors are
    visible, and again once settings are loaded. Only the second call
    lets structlog cache its loggers.
    """
    if config is not None:
        log_dir = config.log_dir
        level = _level(config.logging_level, logging.INFO)
        overrides = config.logging_subsystem_levels
        max_mb = config.logging_max_file_size_mb
        backups = config.logging_backup_count
    else:
        log_dir = Path(__file__).parent.parent / "logs"
        level = logging.INFO
        overrides = {}
        max_mb = 10
        backups = 5

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Logging to the console only.",
            file=sys.stderr,
        )
        log_dir = None

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    def file_handler(filename: str, file_level: int) -> Optional[logging.Handler]:
        if log_dir is None:
            return None
        handler = logging.handlers.RotatingFileHandler(
            log_dir / filename,
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backups,
            encoding="utf-8",
        )
        handler.setLevel(file_level)
        handler.setFormatter(file_formatter)
        return handler

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    # Handlers do the level filtering
    _reset_logger("", logging.DEBUG, console)
    _reset_logger(LOGGER_PREFIX, logging.DEBUG, file_handler("relaybot.log", level))
    for subsystem in SUBSYSTEMS:
        sub_level = _level(overrides.get(subsystem), level)
        _reset_logger(
            f"{LOGGER_PREFIX}.{subsystem}",
            sub_level,
            file_handler(f"{subsystem}.log", sub_level),
        )

    # The irc library logs every raw line at DEBUG
    logging.getLogger("irc").setLevel(max(level, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=config is not None,
    )

"""Configuration management for relaybot.

Loads ``settings.yaml`` and ``.env`` from the config directory and
validates them into typed pydantic models at construction time.
Invalid configuration raises ConfigurationError immediately, so the
bot never starts half-configured.

Key classes:
    Config: Loads, validates, and exposes settings.
    BotSettings: Validated top-level settings model.
    NetworkSettings: Server, nickname, and channel for one network.
    IRCOptions: Client options shared by both connections.
    SourceConfig: One configured command source.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .commands.base import SourceKind
from .exceptions import ConfigurationError, TemplateError
from .formatter import DEFAULT_SAYINGS, placeholder_count, render

logger = structlog.get_logger("relaybot.bot")


class NetworkSettings(BaseModel):
    """Connection settings for one IRC network."""
    server: str = Field(..., min_length=1, description="IRC server hostname")
    port: int = Field(default=6667, ge=1, le=65535)
    nickname: str = Field(..., min_length=1, description="The bot's nickname on this network")
    channel: str = Field(..., min_length=1, description="Channel to join")
    ssl: bool = False
    password: Optional[str] = Field(default=None, description="Server password (PASS)")


class IRCOptions(BaseModel):
    """Client behaviour shared by the main and relay connections."""
    strip_colors: bool = True
    flood_protection: bool = True
    flood_protection_delay: float = Field(default=1.0, ge=0)
    auto_rejoin: bool = False
    reconnect_delay: float = Field(default=30.0, ge=0, description="0 disables reconnects")


class SourceConfig(BaseModel):
    """A configured command source.

    ``commands`` accepts plain words or ``{"command": word}`` objects;
    entries without a string word are dropped.
    """
    type: SourceKind
    commands: List[str] = Field(default_factory=list)
    description: Optional[str] = None

    @field_validator("commands", mode="before")
    @classmethod
    def _normalize_commands(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("commands must be a list")
        words = []
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("command")
            if isinstance(entry, str) and entry:
                words.append(entry.lower())
        return words


class LoggingSettings(BaseModel):
    level: str = "INFO"
    subsystem_levels: Dict[str, str] = Field(default_factory=dict)
    max_file_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=5, ge=0)


class BotSettings(BaseModel):
    """Validated contents of settings.yaml."""
    main: NetworkSettings
    relay: NetworkSettings
    savefile: Optional[Path] = None
    log_dir: Optional[Path] = None
    max_line_length: int = Field(default=300, ge=0, description="0 disables line splitting")
    irc: IRCOptions = Field(default_factory=IRCOptions)
    sayings: Dict[str, str] = Field(default_factory=dict)
    sources: Dict[str, SourceConfig] = Field(default_factory=dict)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class Config:
    """Central configuration for relaybot.

    Args:
        config_dir: Directory holding settings.yaml and .env.
            Defaults to ``<repo_root>/config/``.
        settings: Raw settings dict to use instead of reading
            settings.yaml.

    Raises:
        ConfigurationError: Settings are missing or invalid.
    """

    def __init__(self, config_dir: Optional[Path] = None, settings: Optional[dict] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        if settings is None:
            settings = self._load_yaml("settings.yaml")
        self.settings = self._apply_env_overrides(settings)

        try:
            self.bot = BotSettings.model_validate(self.settings)
        except ValidationError as e:
            first = e.errors()[0]
            setting = ".".join(str(part) for part in first["loc"])
            raise ConfigurationError(
                f"Invalid setting {setting}: {first['msg']}",
                setting_name=setting,
                error_count=e.error_count(),
            ) from e
        self._check_sayings()

    def _check_sayings(self) -> None:
        """Every configured saying must take the same arguments as its default."""
        for key, template in self.bot.sayings.items():
            default = DEFAULT_SAYINGS.get(key)
            if default is None:
                continue
            expected = placeholder_count(default)
            if not expected:
                # Rendered verbatim, a literal % is harmless
                continue
            try:
                fits = placeholder_count(template) == expected
                if fits:
                    render(template, *(["nick"] * expected))
            except TemplateError:
                fits = False
            if not fits:
                raise ConfigurationError(
                    f"Saying {key!r} must take {expected} argument(s) like the default {default!r}",
                    setting_name=f"sayings.{key}",
                )

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if not filepath.exists():
            raise ConfigurationError(
                f"Missing configuration file {filepath}", setting_name=filename
            )
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Could not parse {filepath}", setting_name=filename, error=str(e)
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filepath} must contain a mapping", setting_name=filename
            )
        return data

    @staticmethod
    def _apply_env_overrides(settings: dict) -> dict:
        """Environment variables take precedence over settings.yaml."""
        settings = dict(settings)
        for network in ("main", "relay"):
            password = os.environ.get(f"RELAYBOT_{network.upper()}_PASSWORD")
            if password and isinstance(settings.get(network), dict):
                settings[network] = {**settings[network], "password": password}
        savefile = os.environ.get("RELAYBOT_SAVEFILE")
        if savefile:
            settings["savefile"] = savefile
        return settings

    def validate(self):
        """Log warnings for settings that are legal but probably wrong."""
        if not self.sources:
            logger.warning("no_sources_configured", msg="Bot will ignore every command")
        relay_names = {
            name.lower() for name, s in self.sources.items() if s.type is SourceKind.RELAY
        }
        if self.relay.nickname.lower() in relay_names:
            logger.warning(
                "relay_nick_is_source",
                nickname=self.relay.nickname,
                msg="Bot would correlate its own messages",
            )
        if self.max_line_length > 450:
            logger.warning(
                "max_line_length_high",
                value=self.max_line_length,
                msg="Lines may be truncated by the server",
            )

    @property
    def main(self) -> NetworkSettings:
        return self.bot.main

    @property
    def relay(self) -> NetworkSettings:
        return self.bot.relay

    @property
    def irc(self) -> IRCOptions:
        return self.bot.irc

    @property
    def max_line_length(self) -> int:
        return self.bot.max_line_length

    @property
    def sayings(self) -> Dict[str, str]:
        return self.bot.sayings

    @property
    def sources(self) -> Dict[str, SourceConfig]:
        return self.bot.sources

    @property
    def savefile(self) -> Path:
        """Watchlist save file. Defaults to ``data/watchlist.json`` beside the config dir."""
        if self.bot.savefile:
            return Path(self.bot.savefile).expanduser()
        return self.config_dir.parent / "data" / "watchlist.json"

    @property
    def log_dir(self) -> Path:
        if self.bot.log_dir:
            return Path(self.bot.log_dir).expanduser()
        return self.config_dir.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO)."""
        return self.bot.logging.level

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"relay": "DEBUG"}."""
        return self.bot.logging.subsystem_levels

    @property
    def logging_max_file_size_mb(self) -> int:
        return self.bot.logging.max_file_size_mb

    @property
    def logging_backup_count(self) -> int:
        return self.bot.logging.backup_count

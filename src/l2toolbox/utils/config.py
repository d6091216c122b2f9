"""
Configuration management for L2Toolbox.

This module provides the `Settings` record and a `ConfigManager` for loading,
validating, and saving it as a TOML file in the per-user configuration
directory. A file that cannot be parsed is backed up and replaced with
defaults, so callers always receive a fully populated record. Saves go through
a temporary sibling file that atomically replaces the real one, retrying while
another process briefly holds the file locked.
"""

import errno
import logging
import logging.handlers
import os
import re
import tempfile
import time
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import tomli_w

from .helpers import backup_path_for, get_app_data_path, get_config_dir_path, temp_path_for
from l2toolbox import constants
from l2toolbox.core.locale_id import LocaleId, LocaleParseError


class ObfuscatingFormatter(logging.Formatter):
    """
    A logging formatter that redacts user-specific paths from all log records,
    including tracebacks. Patterns are pre-compiled once per formatter.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._path_regexes: List[re.Pattern] = []
        self._setup_paths()

    def _setup_paths(self) -> None:
        """Collects, normalizes and compiles the paths that must not appear in logs."""
        potential_paths = []
        try:
            potential_paths.append(str(Path.home().resolve()))
        except (OSError, RuntimeError):
            pass
        try:
            potential_paths.append(str(get_config_dir_path().resolve()))
        except (OSError, RuntimeError):
            pass
        potential_paths.append(str(Path(tempfile.gettempdir()).resolve()))

        paths_to_obfuscate = set()
        for path_str in potential_paths:
            # Ignore trivial paths such as "/" or "C:\"
            if not path_str or len(path_str) <= 3:
                continue
            paths_to_obfuscate.add(os.path.normcase(os.path.normpath(path_str)))

        # Longest first so a nested path is redacted before its parent.
        sorted_paths = sorted(paths_to_obfuscate, key=len, reverse=True)
        self._path_regexes = [re.compile(re.escape(p), re.IGNORECASE) for p in sorted_paths]

    def format(self, record: logging.LogRecord) -> str:
        sanitized_message = super().format(record)
        for pattern in self._path_regexes:
            sanitized_message = pattern.sub(constants.logs.REDACTED_PATH, sanitized_message)
        return sanitized_message


class ConfigError(Exception):
    """Custom exception for configuration-related errors, such as I/O or permission issues."""


class SettingsParseError(ValueError):
    """Raised when settings file content is not a valid settings record."""


def _default_language() -> LocaleId:
    return LocaleId.parse(constants.config.defaults.DEFAULT_LANGUAGE)


@dataclass
class Settings:
    """
    User-level application preferences persisted in `config.toml`.

    Attributes:
        last_profile: Name of the profile used last, or "" if none.
        language: The UI locale.
    """
    last_profile: str = constants.config.defaults.DEFAULT_LAST_PROFILE
    language: LocaleId = field(default_factory=_default_language)

    def to_dict(self) -> Dict[str, Any]:
        return {"last_profile": self.last_profile, "language": str(self.language)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """
        Builds a record from parsed TOML data. Every field is required.

        Raises:
            SettingsParseError: If a field is missing or has an invalid value.
        """
        missing = [key for key in constants.config.defaults.REQUIRED_KEYS if key not in data]
        if missing:
            raise SettingsParseError(f"missing field(s): {', '.join(missing)}")

        last_profile = data["last_profile"]
        if not isinstance(last_profile, str):
            raise SettingsParseError(f"last_profile must be a string, got {type(last_profile).__name__}")

        language = data["language"]
        if not isinstance(language, str):
            raise SettingsParseError(f"language must be a string, got {type(language).__name__}")
        try:
            locale = LocaleId.parse(language)
        except LocaleParseError as e:
            raise SettingsParseError(f"invalid language: {e}") from e

        return cls(last_profile=last_profile, language=locale)


class ConfigManager:
    """
    Manages loading, saving, and repair of L2Toolbox's settings file.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initializes the ConfigManager.

        Raises:
            ConfigError: If no per-user configuration directory can be determined.
        """
        self.logger = logging.getLogger(f"{constants.app.APP_NAME}.Config")
        if config_path is not None:
            self.config_path = Path(config_path)
        else:
            try:
                self.config_path = get_config_dir_path() / constants.config.defaults.CONFIG_FILENAME
            except RuntimeError as e:
                raise ConfigError(f"Can't obtain default directory paths: {e}") from e

    @classmethod
    def get_log_file_path(cls) -> Path:
        """Returns the absolute path to the log file."""
        return get_app_data_path() / constants.logs.LOG_FILENAME

    @classmethod
    def setup_logging(cls) -> None:
        """
        Initializes logging with handlers for both a file and the console.
        """
        logger = logging.getLogger(constants.app.APP_NAME)
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                cls.get_log_file_path(),
                maxBytes=constants.logs.MAX_LOG_SIZE,
                backupCount=constants.logs.LOG_BACKUP_COUNT,
                encoding='utf-8',
                delay=True,
            )
            file_handler.setLevel(constants.logs.FILE_LOG_LEVEL)
            file_handler.setFormatter(ObfuscatingFormatter(
                constants.logs.LOG_FORMAT,
                datefmt=constants.logs.LOG_DATE_FORMAT,
            ))
            logger.addHandler(file_handler)

            console_handler = logging.StreamHandler()
            console_handler.setLevel(constants.logs.CONSOLE_LOG_LEVEL)
            console_handler.setFormatter(logging.Formatter(constants.logs.CONSOLE_FORMAT))
            logger.addHandler(console_handler)

            logger.info("Logging initialized successfully.")
        except OSError as e:
            logger.handlers.clear()
            logging.basicConfig(level=logging.ERROR)
            logging.error("Failed to initialize file logging, falling back to basic console: %s", e)

    def ensure_directory(self) -> None:
        """Creates the configuration directory if it doesn't exist."""
        config_dir = self.config_path.parent
        try:
            config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory at {config_dir}: {e}") from e

    @staticmethod
    def serialize(settings: Settings) -> str:
        """Serializes a record to TOML text."""
        return tomli_w.dumps(settings.to_dict())

    def parse(self, text: str) -> Settings:
        """
        Parses TOML text into a record. Unknown keys are ignored.

        Raises:
            SettingsParseError: If the text is not valid TOML or not a valid record.
        """
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise SettingsParseError(str(e)) from e

        unknown_keys = set(data) - set(constants.config.defaults.REQUIRED_KEYS)
        if unknown_keys:
            self.logger.warning(constants.config.messages.UNKNOWN_KEYS.format(keys=", ".join(sorted(unknown_keys))))
        return Settings.from_dict(data)

    def load_or_create(self) -> Settings:
        """
        Returns the settings, creating the directory and a default file on first run.

        Raises:
            ConfigError: If the directory cannot be created or the file cannot be read or written.
        """
        self.ensure_directory()
        if self.config_path.exists():
            self.logger.info("Loading existing config file: %s", self.config_path)
        else:
            self.logger.info("Configuration file not found. Creating with default settings: %s", self.config_path)
            self.write_defaults(self.config_path)
        return self.load(self.config_path)

    def load(self, path: Optional[Union[str, Path]] = None) -> Settings:
        """
        Loads the settings from `path` (the manager's config path by default).

        A file that cannot be parsed is renamed to a timestamped backup and replaced
        with defaults, which are then loaded instead.

        Raises:
            ConfigError: On I/O failure, or if freshly written defaults fail to parse.
        """
        path = Path(path) if path is not None else self.config_path
        max_repairs = constants.config.defaults.MAX_REPAIR_ATTEMPTS
        repairs = 0

        while True:
            try:
                raw = path.read_bytes()
            except OSError as e:
                msg = f"OS error reading config file {path}: {e}"
                self.logger.critical(msg)
                raise ConfigError(msg) from e

            try:
                return self.parse(raw.decode("utf-8"))
            except (UnicodeDecodeError, SettingsParseError) as e:
                if repairs >= max_repairs:
                    msg = f"Default configuration written to {path} could not be parsed: {e}"
                    self.logger.critical(msg)
                    raise ConfigError(msg) from e
                self.logger.error(constants.config.messages.CORRUPT_CONFIG.format(path=path, error=e))
                self._backup_corrupt(path)
                self.write_defaults(path)
                repairs += 1

    def _backup_corrupt(self, path: Path) -> Path:
        backup_path = backup_path_for(path)
        try:
            path.replace(backup_path)
        except OSError as e:
            msg = f"Failed to back up corrupt config file {path}: {e}"
            self.logger.critical(msg)
            raise ConfigError(msg) from e
        self.logger.warning(constants.config.messages.BACKUP_CREATED.format(path=backup_path))
        return backup_path

    def write_defaults(self, path: Optional[Union[str, Path]] = None) -> Settings:
        """Writes a default record to `path` and returns it."""
        path = Path(path) if path is not None else self.config_path
        defaults = Settings()
        try:
            path.write_text(self.serialize(defaults), encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write default configuration to {path}: {e}"
            self.logger.critical(msg)
            raise ConfigError(msg) from e
        return defaults

    @staticmethod
    def _is_sharing_violation(error: OSError) -> bool:
        """True if `error` means another process is holding the file for now."""
        winerror = getattr(error, "winerror", None)
        if winerror is not None:
            return winerror in constants.config.defaults.SHARING_VIOLATION_WINERRORS
        return isinstance(error, PermissionError) or error.errno == errno.EBUSY

    def _discard_temp(self, temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning("Failed to remove temporary config file %s: %s", temp_path, e)

    def save(self, settings: Settings) -> None:
        """
        Atomically saves the settings: writes a temporary sibling, then replaces the file.

        Raises:
            ConfigError: If writing fails, replacing fails with a non-transient error,
                or the file is still locked after the last attempt.
        """
        defaults = constants.config.defaults
        messages = constants.config.messages
        temp_path = temp_path_for(self.config_path)

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(self.serialize(settings), encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write temporary config file {temp_path}: {e}"
            self.logger.error(msg)
            raise ConfigError(msg) from e

        for attempt in range(1, defaults.SAVE_MAX_ATTEMPTS + 1):
            try:
                os.replace(temp_path, self.config_path)
            except OSError as e:
                if not self._is_sharing_violation(e):
                    self._discard_temp(temp_path)
                    msg = f"Failed to save configuration to {self.config_path}: {e}"
                    self.logger.error(msg)
                    raise ConfigError(msg) from e
                self.logger.warning(messages.SAVE_RETRY.format(
                    attempt=attempt, path=self.config_path, delay_ms=defaults.SAVE_RETRY_DELAY_MS
                ))
                time.sleep(defaults.SAVE_RETRY_DELAY_MS / 1000.0)
            else:
                self.logger.info("Configuration saved successfully to %s", self.config_path)
                return

        self._discard_temp(temp_path)
        msg = messages.SAVE_LOCKED.format(path=self.config_path)
        self.logger.error(msg)
        raise ConfigError(msg)

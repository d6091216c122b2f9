"""
Constants for the settings file: defaults, file naming and save behaviour.
"""
from typing import Final, Tuple


class ConfigMessages:
    """Log message templates for loading and saving the settings file."""
    CORRUPT_CONFIG: Final[str] = "Failed to parse config file {path}: {error}"
    BACKUP_CREATED: Final[str] = "Corrupt config file backed up to {path}"
    SAVE_RETRY: Final[str] = "Attempt #{attempt}: {path} is locked or access is denied, retrying in {delay_ms} ms"
    SAVE_LOCKED: Final[str] = "Failed to save config: {path} is locked by another process"
    UNKNOWN_KEYS: Final[str] = "Ignoring unknown config fields: {keys}"

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        for attr_name in dir(self):
            if not attr_name.startswith('_') and attr_name.isupper():
                value = getattr(self, attr_name)
                if not isinstance(value, str) or not value:
                    raise ValueError(f"ConfigMessages.{attr_name} must be a non-empty string.")


class ConfigConstants:
    """Defines default values and constraints for the settings file."""
    DEFAULT_LAST_PROFILE: Final[str] = ""
    DEFAULT_LANGUAGE: Final[str] = "en-GB"

    CONFIG_FILENAME: Final[str] = "config.toml"
    TEMP_SUFFIX: Final[str] = ".tmp"
    BACKUP_SUFFIX: Final[str] = ".bak"
    BACKUP_TIMESTAMP_FORMAT: Final[str] = "%Y%m%d_%H%M%S"

    # Corrupt files are replaced once; a second failure means the defaults themselves are broken.
    MAX_REPAIR_ATTEMPTS: Final[int] = 1

    SAVE_MAX_ATTEMPTS: Final[int] = 3
    SAVE_RETRY_DELAY_MS: Final[int] = 300
    # ERROR_ACCESS_DENIED, ERROR_SHARING_VIOLATION
    SHARING_VIOLATION_WINERRORS: Final[Tuple[int, ...]] = (5, 32)

    REQUIRED_KEYS: Final[Tuple[str, ...]] = ("last_profile", "language")

    def __init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.CONFIG_FILENAME:
            raise ValueError("CONFIG_FILENAME must not be empty")
        if not self.DEFAULT_LANGUAGE:
            raise ValueError("DEFAULT_LANGUAGE must not be empty")
        if self.MAX_REPAIR_ATTEMPTS < 1:
            raise ValueError("MAX_REPAIR_ATTEMPTS must be at least 1")
        if self.SAVE_MAX_ATTEMPTS < 1:
            raise ValueError("SAVE_MAX_ATTEMPTS must be at least 1")
        if self.SAVE_RETRY_DELAY_MS < 0:
            raise ValueError("SAVE_RETRY_DELAY_MS must not be negative")


class ConfigurationConstants:
    """Container for configuration-related constant groups."""
    def __init__(self) -> None:
        self.defaults = ConfigConstants()
        self.messages = ConfigMessages()

# Singleton instance for easy access
config = ConfigurationConstants()

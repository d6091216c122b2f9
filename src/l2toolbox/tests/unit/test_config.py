"""
Unit tests for the Settings record and the ConfigManager class.
"""
import errno
import logging
import logging.handlers
import os
import re
from pathlib import Path
from unittest.mock import call, patch

import pytest

from l2toolbox import constants
from l2toolbox.core.locale_id import LocaleId
from l2toolbox.utils.config import (
    ConfigError,
    ConfigManager,
    ObfuscatingFormatter,
    Settings,
    SettingsParseError,
)

BACKUP_NAME_RE = re.compile(r"^config\.toml_\d{8}_\d{6}\.bak$")


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.toml"


@pytest.fixture
def config_manager(config_path):
    return ConfigManager(config_path)


def backups_in(directory: Path):
    return [p for p in directory.iterdir() if BACKUP_NAME_RE.match(p.name)]


def test_default_settings_values():
    settings = Settings()
    assert settings.last_profile == ""
    assert settings.language == LocaleId.parse("en-GB")
    assert settings.language == LocaleId.parse(constants.config.defaults.DEFAULT_LANGUAGE)


def test_write_defaults_writes_file(config_manager, config_path):
    config_manager.write_defaults(config_path)
    contents = config_path.read_text(encoding="utf-8")
    assert 'last_profile = ""' in contents
    assert 'language = "en-GB"' in contents


def test_load_valid_file(config_manager, config_path):
    config_path.write_text('last_profile = "test_user"\nlanguage = "pl-PL"\n', encoding="utf-8")
    settings = config_manager.load(config_path)
    assert settings.last_profile == "test_user"
    assert settings.language == LocaleId.parse("pl-PL")
    assert backups_in(config_path.parent) == []


def test_create_and_load(config_manager, config_path):
    config_manager.write_defaults(config_path)
    assert config_manager.load(config_path) == Settings()


def test_load_defaults_to_manager_path(config_manager, config_path):
    config_path.write_text('last_profile = "abc"\nlanguage = "en-GB"\n', encoding="utf-8")
    assert config_manager.load().last_profile == "abc"


def test_corrupted_config_recovery(config_manager, config_path):
    config_path.write_text("not a valid toml", encoding="utf-8")

    settings = config_manager.load(config_path)

    assert settings == Settings()
    backups = backups_in(config_path.parent)
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "not a valid toml"
    # The original path now holds a parseable default record.
    assert config_manager.load(config_path) == Settings()
    assert len(backups_in(config_path.parent)) == 1


@pytest.mark.parametrize("content", [
    'last_profile = "only_profile"\n',
    'language = "pl-PL"\n',
    'last_profile = 5\nlanguage = "pl-PL"\n',
    'last_profile = "x"\nlanguage = ["pl-PL"]\n',
    'last_profile = "x"\nlanguage = "not a locale!"\n',
    b'last_profile = "\xff\xfe"\nlanguage = "pl-PL"\n',
])
def test_invalid_records_are_replaced_whole(config_manager, config_path, content):
    if isinstance(content, bytes):
        config_path.write_bytes(content)
    else:
        config_path.write_text(content, encoding="utf-8")

    settings = config_manager.load(config_path)

    assert settings == Settings()
    assert len(backups_in(config_path.parent)) == 1


def test_unknown_keys_are_ignored(config_manager, config_path):
    config_path.write_text('last_profile = "p"\nlanguage = "pl-PL"\ntheme = "dark"\n', encoding="utf-8")
    with patch.object(config_manager.logger, "warning") as mock_warning:
        settings = config_manager.load(config_path)
    assert settings == Settings(last_profile="p", language=LocaleId.parse("pl-PL"))
    mock_warning.assert_called_once()
    assert "theme" in mock_warning.call_args[0][0]
    assert backups_in(config_path.parent) == []


def test_repair_gives_up_when_defaults_do_not_parse(config_manager, config_path):
    config_path.write_text("garbage", encoding="utf-8")
    with patch.object(ConfigManager, "serialize", return_value="still = = garbage"):
        with pytest.raises(ConfigError):
            config_manager.load(config_path)
    assert len(backups_in(config_path.parent)) == 1


def test_load_missing_file_raises_config_error(config_manager, tmp_path):
    with pytest.raises(ConfigError):
        config_manager.load(tmp_path / "does-not-exist.toml")


@pytest.mark.parametrize("profile", ["", "user123", "zażółć gęślą jaźń", 'quote " and \\ backslash', "multi\nline"])
@pytest.mark.parametrize("language", ["en-GB", "pl-PL", "sr-Latn-RS", "es-419"])
def test_serialization_round_trip(config_manager, profile, language):
    original = Settings(last_profile=profile, language=LocaleId.parse(language))
    assert config_manager.parse(ConfigManager.serialize(original)) == original


def test_parse_raises_on_invalid_toml(config_manager):
    with pytest.raises(SettingsParseError):
        config_manager.parse("not a valid toml")


def test_load_or_create_creates_directory_and_defaults(tmp_path):
    config_path = tmp_path / "nested" / "L2Toolbox" / "config.toml"
    manager = ConfigManager(config_path)

    settings = manager.load_or_create()

    assert settings == Settings()
    assert config_path.is_file()
    assert manager.load(config_path) == Settings()


def test_load_or_create_loads_existing_file(config_manager, config_path):
    config_path.write_text('last_profile = "main"\nlanguage = "pl-PL"\n', encoding="utf-8")
    with patch.object(config_manager, "write_defaults") as mock_write:
        settings = config_manager.load_or_create()
    mock_write.assert_not_called()
    assert settings.last_profile == "main"


def test_load_or_create_fails_when_directory_cannot_be_created(config_manager):
    with patch.object(Path, "mkdir", side_effect=PermissionError(errno.EACCES, "denied")):
        with pytest.raises(ConfigError):
            config_manager.load_or_create()


def test_default_config_path_uses_platform_config_dir(tmp_path):
    with patch("l2toolbox.utils.config.get_config_dir_path", return_value=tmp_path):
        manager = ConfigManager()
    assert manager.config_path == tmp_path / "config.toml"


def test_save_when_file_is_free(config_manager, config_path):
    config_manager.write_defaults(config_path)
    settings = Settings(last_profile="test_user", language=LocaleId.parse("pl-PL"))

    with patch("l2toolbox.utils.config.os.replace", wraps=os.replace) as mock_replace:
        config_manager.save(settings)

    assert mock_replace.call_count == 1
    assert config_manager.load(config_path) == settings
    assert not (config_path.parent / "config.toml.tmp").exists()


def test_save_creates_file_when_missing(config_manager, config_path):
    settings = Settings(last_profile="fresh")
    config_manager.save(settings)
    assert config_manager.load(config_path) == settings


def test_save_retries_while_file_is_locked(config_manager, config_path):
    config_manager.write_defaults(config_path)
    original = config_path.read_text(encoding="utf-8")
    locked = PermissionError(errno.EACCES, "The process cannot access the file")

    with patch("l2toolbox.utils.config.os.replace", side_effect=locked) as mock_replace, \
            patch("l2toolbox.utils.config.time.sleep") as mock_sleep:
        with pytest.raises(ConfigError):
            config_manager.save(Settings(last_profile="blocked"))

    assert mock_replace.call_count == constants.config.defaults.SAVE_MAX_ATTEMPTS == 3
    assert mock_sleep.call_args_list == [call(0.3)] * 3
    assert config_path.read_text(encoding="utf-8") == original
    assert not (config_path.parent / "config.toml.tmp").exists()


def test_save_succeeds_after_transient_lock(config_manager, config_path):
    real_replace = os.replace
    attempts = []

    def flaky_replace(src, dst):
        attempts.append(src)
        if len(attempts) == 1:
            raise PermissionError(errno.EACCES, "locked")
        return real_replace(src, dst)

    settings = Settings(last_profile="second_try")
    with patch("l2toolbox.utils.config.os.replace", side_effect=flaky_replace), \
            patch("l2toolbox.utils.config.time.sleep") as mock_sleep:
        config_manager.save(settings)

    assert len(attempts) == 2
    mock_sleep.assert_called_once_with(0.3)
    assert config_manager.load(config_path) == settings


def test_save_does_not_retry_other_errors(config_manager, config_path):
    with patch("l2toolbox.utils.config.os.replace", side_effect=OSError(errno.ENOSPC, "No space left")) as mock_replace, \
            patch("l2toolbox.utils.config.time.sleep") as mock_sleep:
        with pytest.raises(ConfigError):
            config_manager.save(Settings())

    assert mock_replace.call_count == 1
    mock_sleep.assert_not_called()
    assert not (config_path.parent / "config.toml.tmp").exists()


def test_save_fails_when_temp_file_cannot_be_written(config_manager):
    with patch.object(Path, "write_text", side_effect=OSError(errno.EROFS, "Read-only file system")):
        with pytest.raises(ConfigError):
            config_manager.save(Settings())


class _SharingViolation(OSError):
    winerror = 32


class _DiskFull(OSError):
    winerror = 112


def test_sharing_violation_classification():
    assert ConfigManager._is_sharing_violation(PermissionError(errno.EACCES, "denied"))
    assert ConfigManager._is_sharing_violation(OSError(errno.EBUSY, "busy"))
    assert ConfigManager._is_sharing_violation(_SharingViolation(errno.EACCES, "in use"))
    assert not ConfigManager._is_sharing_violation(_DiskFull(errno.ENOSPC, "full"))
    assert not ConfigManager._is_sharing_violation(OSError(errno.ENOSPC, "full"))


def test_obfuscating_formatter_redacts_home_path():
    home = str(Path.home().resolve())
    if len(home) <= 3:
        pytest.skip("home directory is too short to be redacted")
    formatter = ObfuscatingFormatter("%(message)s")
    record = logging.LogRecord("L2Toolbox.Test", logging.INFO, __file__, 1, "saved to %s", (os.path.join(home, "cfg"),), None)

    output = formatter.format(record)

    assert constants.logs.REDACTED_PATH in output
    assert home not in output


def test_setup_logging_installs_file_and_console_handlers(tmp_path):
    logger = logging.getLogger(constants.app.APP_NAME)
    try:
        with patch("l2toolbox.utils.config.get_app_data_path", return_value=tmp_path):
            ConfigManager.setup_logging()
        handler_types = {type(h) for h in logger.handlers}
        assert logging.handlers.RotatingFileHandler in handler_types
        assert logging.StreamHandler in handler_types
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

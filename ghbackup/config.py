"""
Configuration loading for ghbackup.

Values come from, highest precedence first: explicit arguments (CLI options,
which typer also fills from environment variables), an optional YAML file,
and built-in defaults. Blank strings count as unset.

The token is never read from the YAML file.

"Configuration is just organized secrets." — schema.cx
"""

from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .models import DEFAULT_BACKUP_FOLDER, DEFAULT_GITHUB_HOST, DEFAULT_INTERVAL, Config

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ghbackup"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

FILE_KEYS = {"backup_folder", "interval", "github_host", "lock_file", "command_timeout"}


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read settings from a YAML file.

    Raises:
        ConfigError: if the file cannot be read or is not a mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    unknown = set(data) - FILE_KEYS
    if "token" in unknown or "github_secret" in unknown:
        raise ConfigError(f"Config file {path} must not contain the token; use GITHUB_SECRET")
    if unknown:
        raise ConfigError(f"Unknown keys in config file {path}: {', '.join(sorted(unknown))}")

    return data


def _positive_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {number}")
    return number


def load_config(
    token: str | None = None,
    backup_folder: str | Path | None = None,
    interval: int | str | None = None,
    github_host: str | None = None,
    lock_file: str | Path | None = None,
    command_timeout: int | str | None = None,
    config_file: Path | None = None,
    dry_run: bool = False,
) -> Config:
    """
    Build a Config from explicit values, the YAML file and defaults.

    ``config_file`` defaults to ``~/.config/ghbackup/config.yaml``; that
    default is optional, but an explicitly named file must exist.

    Missing tokens are not an error here: the orchestrator rejects them
    before contacting GitHub.
    """
    if config_file is not None:
        file_values = read_config_file(config_file)
    elif DEFAULT_CONFIG_FILE.exists():
        file_values = read_config_file(DEFAULT_CONFIG_FILE)
    else:
        file_values = {}

    def pick(key: str, explicit: Any, default: Any) -> Any:
        if _is_set(explicit):
            return explicit
        if _is_set(file_values.get(key)):
            return file_values[key]
        return default

    timeout = pick("command_timeout", command_timeout, None)
    lock = pick("lock_file", lock_file, None)

    return Config(
        token=token.strip() if _is_set(token) else None,
        backup_folder=Path(str(pick("backup_folder", backup_folder, DEFAULT_BACKUP_FOLDER)).strip()),
        github_host=str(pick("github_host", github_host, DEFAULT_GITHUB_HOST)).strip(),
        dry_run=dry_run,
        command_timeout=_positive_int("command_timeout", timeout) if timeout is not None else None,
        interval=_positive_int("interval", pick("interval", interval, DEFAULT_INTERVAL)),
        lock_file=Path(str(lock).strip()) if lock is not None else None,
    )

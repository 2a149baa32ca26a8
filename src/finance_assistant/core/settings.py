import os
import re
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from dotenv import find_dotenv, load_dotenv

from finance_assistant.logger import get_logger

logger = get_logger(__name__)

N = TypeVar("N", int, float)

CONFIG_FILENAME = "config.yaml"

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BULK_CONCURRENCY = 4

SETTING_KEYS = (
    "LOG_LEVEL",
    "LOG_DIR",
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "OPENROUTER_MODEL",
    "OPENROUTER_SITE_URL",
    "OPENROUTER_SITE_NAME",
    "OPENROUTER_TIMEOUT",
    "BULK_CONCURRENCY",
)

_SECRET_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH")
_CONFIG_LINE = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*:(?P<value>.*)$")
_QUOTES = {'"', "'"}


def sanitize_value(raw_value: str | None) -> str:
    """Trim whitespace and one pair of surrounding quotes."""
    value = (raw_value or "").strip()
    if len(value) > 1 and value[0] in _QUOTES and value[-1] == value[0]:
        value = value[1:-1].strip()
    return value


def _config_dir() -> Path | None:
    raw = os.getenv("CONFIG_DIR")
    return Path(raw) if raw else None


def _dotenv_file() -> Path | None:
    config_dir = _config_dir()
    if config_dir and (config_dir / ".env").is_file():
        return config_dir / ".env"
    found = find_dotenv(usecwd=True)
    return Path(found) if found else None


def _config_file() -> Path:
    config_dir = _config_dir()
    if config_dir:
        return config_dir / CONFIG_FILENAME
    nested = Path.cwd() / "config" / CONFIG_FILENAME
    return nested if nested.is_file() else Path.cwd() / CONFIG_FILENAME


def read_config_file(path: str | Path | None) -> dict[str, str]:
    """Flat ``KEY: value`` pairs; quoting and trailing ``#`` comments follow shell rules."""
    if not path or not Path(path).is_file():
        return {}

    values: dict[str, str] = {}
    for number, line in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), start=1):
        match = _CONFIG_LINE.match(line.strip())
        if not match:
            continue
        try:
            value = " ".join(shlex.split(match["value"], comments=True))
        except ValueError:
            logger.warning("[ENV] Ignoring unreadable line %d in %s.", number, path)
            continue
        if value:
            values[match["key"]] = value
    return values


def load_environment() -> None:
    """Fill the process environment from ``.env`` and then ``config.yaml``.

    Neither source overrides a variable that is already set.
    """
    dotenv_file = _dotenv_file()
    if dotenv_file:
        load_dotenv(dotenv_path=dotenv_file, override=False)

    file_values = read_config_file(_config_file())
    for key in SETTING_KEYS:
        if key in file_values:
            os.environ.setdefault(key, file_values[key])


def get_env_str(name: str, default: str | None = None) -> str | None:
    return sanitize_value(os.getenv(name)) or default


def _get_env_number(
    name: str,
    default: N,
    cast: Callable[[str], N],
    min_value: N | None = None,
) -> N:
    raw = get_env_str(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("[ENV] %s='%s' is not a number; using %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("[ENV] %s=%s is below %s; using %s.", name, value, min_value, default)
        return default
    return value


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    return _get_env_number(name, default, int, min_value)


def get_env_float(name: str, default: float, min_value: float | None = None) -> float:
    return _get_env_number(name, default, float, min_value)


@dataclass(frozen=True)
class ModelConfig:
    """Connection settings for the text-generation endpoint.

    Built once at startup and handed to the model client; nothing below the
    client reads the environment.
    """

    api_key: str | None = None
    base_url: str | None = DEFAULT_BASE_URL
    model: str | None = None
    site_url: str | None = None
    site_name: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    @property
    def endpoint(self) -> str:
        return (self.base_url or "").rstrip("/")

    @classmethod
    def from_env(cls) -> "ModelConfig":
        return cls(
            api_key=get_env_str("OPENROUTER_API_KEY"),
            base_url=get_env_str("OPENROUTER_BASE_URL", DEFAULT_BASE_URL),
            model=get_env_str("OPENROUTER_MODEL"),
            site_url=get_env_str("OPENROUTER_SITE_URL"),
            site_name=get_env_str("OPENROUTER_SITE_NAME"),
            timeout=get_env_float("OPENROUTER_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, min_value=0.1),
        )


def get_bulk_concurrency() -> int:
    return get_env_int("BULK_CONCURRENCY", DEFAULT_BULK_CONCURRENCY, min_value=1)


def mask_env_value(name: str, value: str) -> str:
    shown = value.replace("\r", "\\r").replace("\n", "\\n")
    secret = any(marker in name.upper() for marker in _SECRET_MARKERS) or shown.startswith(
        ("sk-", "Bearer ", "bearer ")
    )
    if not secret:
        return shown
    return "****" if len(shown) <= 4 else f"{shown[:2]}...{shown[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Effective settings (secrets masked):")
    for key in SETTING_KEYS:
        value = os.getenv(key)
        logger.info("[ENV] %s=%s", key, "<unset>" if value is None else mask_env_value(key, value))


load_environment()

# config.py
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from utils.recency import DEFAULT_HISTORY_SIZE


class ConfigError(Exception):
    """Raised when the bot cannot start with the given configuration."""


@dataclass(frozen=True)
class Settings:
    bot_token: str
    image_folder: Path
    port: int = 8080
    history_size: int = DEFAULT_HISTORY_SIZE
    fetch_timeout: float = 10.0
    log_level: str = "INFO"


def _int(env, name, default):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float(env, name, default):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_settings(env=None) -> Settings:
    if env is None:
        load_dotenv()
        env = os.environ

    token = env.get("BOT_TOKEN")
    folder = env.get("IMAGE_FOLDER")
    if not token or not folder:
        missing = [name for name, value in (("BOT_TOKEN", token), ("IMAGE_FOLDER", folder)) if not value]
        raise ConfigError(f"Required environment variables not set: {', '.join(missing)}")

    history_size = _int(env, "HISTORY_SIZE", DEFAULT_HISTORY_SIZE)
    if history_size < 1:
        raise ConfigError("HISTORY_SIZE must be at least 1")

    return Settings(
        bot_token=token,
        image_folder=Path(folder),
        port=_int(env, "PORT", 8080),
        history_size=history_size,
        fetch_timeout=_float(env, "FETCH_TIMEOUT", 10.0),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )


def check_image_folder(path: Path):
    """The image folder has to exist and be a directory before the bot connects."""
    try:
        if not path.is_dir():
            if path.exists():
                raise ConfigError(f"IMAGE_FOLDER is not a directory: {path}")
            raise ConfigError(f"IMAGE_FOLDER does not exist: {path}")
    except OSError as e:
        raise ConfigError(f"Cannot access IMAGE_FOLDER {path}: {e}")

from __future__ import annotations

import logging
import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .model import StoreError

logger = logging.getLogger(__name__)

APP_DIR = "dav"
CONTACTS_FILE = "contacts.json"
CONF_FILE = "dav.conf"


@dataclass
class Paths:
    data_dir: Path
    contacts_file: Path
    conf_file: Path


@dataclass
class Settings:
    host: str = "127.0.0.1"
    port: int = 3000


DEFAULT_CONF = """# dav-contacts local config (TOML)
host = "127.0.0.1"
port = 3000
"""


def default_data_dir(
    platform: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Return the per-platform directory holding the contact store.

    Linux:   $XDG_DATA_HOME/dav, else $HOME/.local/share/dav
    macOS:   $HOME/Library/Application Support/dav
    Windows: %APPDATA%\\dav\\data
    """
    platform = platform or sys.platform
    env = os.environ if env is None else env

    if platform.startswith("win"):
        appdata = env.get("APPDATA")
        if not appdata:
            raise StoreError("APPDATA is not set; cannot locate the data directory")
        return Path(appdata) / APP_DIR / "data"

    home = env.get("HOME")
    if platform == "darwin":
        if not home:
            raise StoreError("HOME is not set; cannot locate the data directory")
        return Path(home) / "Library" / "Application Support" / APP_DIR

    xdg = env.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_DIR
    if not home:
        raise StoreError("Neither XDG_DATA_HOME nor HOME is set; cannot locate the data directory")
    return Path(home) / ".local" / "share" / APP_DIR


def ensure_workspace(base: Path | None = None) -> tuple[Paths, Settings]:
    """Create the data directory (and default config) and load settings."""
    data_dir = Path(base) if base is not None else default_data_dir()
    conf = data_dir / CONF_FILE

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        if not conf.exists():
            conf.write_text(DEFAULT_CONF, encoding="utf-8")
    except OSError as exc:
        raise StoreError(f"Cannot prepare data directory {data_dir}: {exc}") from exc

    paths = Paths(data_dir=data_dir, contacts_file=data_dir / CONTACTS_FILE, conf_file=conf)
    return paths, load_settings(conf)


def load_settings(conf: Path) -> Settings:
    settings = Settings()
    try:
        data = tomllib.loads(conf.read_text(encoding="utf-8"))
        settings.host = str(data.get("host", settings.host))
        settings.port = int(data.get("port", settings.port))
    except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as exc:
        # malformed config falls back to defaults
        logger.warning("Ignoring unreadable config %s: %s", conf, exc)
        return Settings()
    return settings

"""Configuration constants for notetree."""

import os
from pathlib import Path

# Environment variable overriding the data directory.
DATA_DIR_ENV: str = "NOTETREE_DATA_DIR"

# Directory with the database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/notetree").expanduser(),
    Path("~/.notetree").expanduser(),
    Path("~/.config/notetree").expanduser(),
]

DB_FILENAME: str = "notetree.db"

DEFAULT_SEARCH_LIMIT: int = 20
MAX_SEARCH_LIMIT: int = 100
DEFAULT_OPEN_LIST_LIMIT: int = 10


def resolve_data_directory() -> Path:
    """Return the data directory: env override, first existing candidate, or the default."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]


def database_path(data_dir: Path | None = None) -> Path:
    """Return the database file path inside ``data_dir`` (resolved if omitted)."""
    return (data_dir or resolve_data_directory()) / DB_FILENAME

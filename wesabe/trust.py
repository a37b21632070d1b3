"""CA bundle discovery.

Connections to the API are verified against a pinned bundle named
``cacert.pem`` rather than the system trust store.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from wesabe.errors import ConfigError

logger = logging.getLogger(__name__)

CA_FILE_NAME = "cacert.pem"

# User override first, then the copy shipped next to the package.
USER_CA_DIR = Path("~/.wesabe")
PACKAGE_CA_DIR = Path(__file__).parent


def default_search_dirs() -> list[Path]:
    return [USER_CA_DIR.expanduser(), PACKAGE_CA_DIR]


def find_ca_file(search_dirs: Iterable[Path] | None = None) -> Path:
    """Return the first existing ``cacert.pem`` in *search_dirs*.

    Args:
        search_dirs: Directories to probe in order. Defaults to
            ``~/.wesabe`` then the package directory.

    Raises:
        ConfigError: If no candidate exists.
    """
    dirs = list(search_dirs) if search_dirs is not None else default_search_dirs()
    for directory in dirs:
        candidate = Path(directory) / CA_FILE_NAME
        if candidate.is_file():
            logger.debug("Using CA bundle %s", candidate)
            return candidate

    searched = ", ".join(str(d) for d in dirs)
    raise ConfigError(f"Unable to find a CA pem file ({CA_FILE_NAME}) in: {searched}")


def resolve_ca_file(ca_file: str | None) -> Path:
    """Validate an explicit CA bundle path, or search for one when None."""
    if ca_file is None:
        return find_ca_file()

    path = Path(ca_file).expanduser()
    if not path.is_file():
        raise ConfigError(f"CA file not found: {path}")
    logger.debug("Using configured CA bundle %s", path)
    return path

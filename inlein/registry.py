"""Locates the inlein home directory and the daemon's advertised port."""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from inlein.exceptions import PortFileError

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "INLEIN_HOME"
DEFAULT_HOME_NAME = ".inlein"
PORT_FILE_NAME = "port"
DAEMONS_DIR_NAME = "daemons"


def resolve_home_directory(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Return the inlein home directory.

    Args:
        environ: Environment to read INLEIN_HOME from (defaults to os.environ)

    Returns:
        INLEIN_HOME when set, otherwise ~/.inlein
    """
    environ = os.environ if environ is None else environ
    override = environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser().absolute()
    return (Path.home() / DEFAULT_HOME_NAME).absolute()


def port_file_path(home: Optional[Path] = None) -> Path:
    """Get the path of the file the daemon writes its port into."""
    return (home or resolve_home_directory()) / PORT_FILE_NAME


def resolve_port(home: Optional[Path] = None) -> Optional[int]:
    """
    Read the daemon's listening port.

    Returns None when the port file does not exist, meaning the daemon
    is not running.

    Raises:
        PortFileError: If the port file exists but is not a decimal integer
    """
    path = port_file_path(home)
    if not path.exists():
        logger.debug("No port file at %s", path)
        return None

    content = path.read_bytes()
    try:
        text = content.decode("ascii").strip()
    except UnicodeDecodeError as e:
        raise PortFileError(f"Malformed port file {path}: {content!r}") from e
    if not text.isdigit():
        raise PortFileError(f"Malformed port file {path}: {content!r}")

    port = int(text)
    logger.debug("Daemon port %d read from %s", port, path)
    return port

"""Client settings.

Values come from the process environment, falling back to an optional
dotenv file at <inlein home>/inlein.env:

    JAVA_CMD=/usr/lib/jvm/java-17/bin/java
    INLEIN_LOG_LEVEL=info

INLEIN_HOME itself can only be set through the environment, since it
decides where the dotenv file is.
"""

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from inlein.registry import resolve_home_directory

ENV_FILE_NAME = "inlein.env"
JAVA_CMD_ENV_VAR = "JAVA_CMD"
LOG_LEVEL_ENV_VAR = "INLEIN_LOG_LEVEL"

DEFAULT_JAVA_CMD = "java"
DEFAULT_LOG_LEVEL = "WARN"


@dataclass
class ClientSettings:
    home: Path
    java_cmd: str = DEFAULT_JAVA_CMD
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def env_file(self) -> Path:
        return self.home / ENV_FILE_NAME


def load_env_file(path: Path) -> Dict[str, str]:
    """
    Load values from a dotenv file.
    Keys are uppercased and empty values dropped. Missing file gives {}.
    """
    if not path.exists():
        return {}
    return {
        key.upper(): value
        for key, value in dotenv_values(path).items()
        if value is not None and value.strip() != ""
    }


def _pick(
    key: str,
    environ: Mapping[str, str],
    file_values: Mapping[str, str],
    default: str,
) -> str:
    for source in (environ, file_values):
        value = source.get(key)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ClientSettings:
    """Resolve the client settings, environment first, then inlein.env."""
    environ = os.environ if environ is None else environ
    home = resolve_home_directory(environ)
    file_values = load_env_file(home / ENV_FILE_NAME)

    return ClientSettings(
        home=home,
        java_cmd=_pick(JAVA_CMD_ENV_VAR, environ, file_values, DEFAULT_JAVA_CMD),
        log_level=_pick(LOG_LEVEL_ENV_VAR, environ, file_values, DEFAULT_LOG_LEVEL),
    )

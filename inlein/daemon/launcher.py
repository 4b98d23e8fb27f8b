"""Starts the inlein daemon in the background.

The daemon ships as a standalone jar under <inlein home>/daemons, named
after the client version so that client and daemon always agree on the
protocol. The daemon prints a line once it has written its port file;
that line is the only readiness signal we wait for.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

from inlein import __version__
from inlein.config import ClientSettings, load_settings
from inlein.exceptions import DownloadNotImplementedError, SnapshotDownloadError
from inlein.registry import DAEMONS_DIR_NAME

logger = logging.getLogger(__name__)

SNAPSHOT_PATTERN = re.compile(r"(-SNAPSHOT|\.dev\d*|(a|b|rc)\d+)$", re.IGNORECASE)


def is_snapshot(version: str) -> bool:
    """True for snapshot and pre-release versions, which are never downloaded."""
    return bool(SNAPSHOT_PATTERN.search(version))


def artifact_name(version: str) -> str:
    return f"daemon-{version}-standalone.jar"


class DaemonLauncher:
    """
    Locates the daemon jar for a client version and launches it.

    The launched process is not tracked: it runs in its own session and
    keeps running after the client exits.
    """

    def __init__(self, settings: Optional[ClientSettings] = None):
        self.settings = settings or load_settings()

    def artifact_path(self, version: str = __version__) -> Path:
        return self.settings.home / DAEMONS_DIR_NAME / artifact_name(version)

    def ensure_artifact(self, path: Path, version: str = __version__) -> None:
        """
        Make sure the daemon jar exists at path.

        Raises:
            SnapshotDownloadError: If the jar is missing for a snapshot version
            DownloadNotImplementedError: If the jar is missing for a release
        """
        if path.exists():
            return

        path.parent.mkdir(parents=True, exist_ok=True)
        if is_snapshot(version):
            raise SnapshotDownloadError(
                "Cannot download inlein daemon snapshots.\n"
                f"Please install manually into {path}, or run manually."
            )
        raise DownloadNotImplementedError("daemon downloads aren't implemented yet")

    def launch(self, path: Path) -> None:
        """
        Spawn the daemon and block until it prints its first line.

        Raises:
            OSError: If the java command cannot be started
        """
        command = [self.settings.java_cmd, "-jar", str(path)]
        logger.debug("Launching daemon: %s", " ".join(command))
        process = subprocess.Popen(
            command,
            cwd=str(Path.home()),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        process.stdout.readline()
        logger.debug("Daemon process %s signalled readiness", process.pid)

    def start(self, version: str = __version__) -> Path:
        """Ensure the jar for version is present and launch it. Returns the jar path."""
        path = self.artifact_path(version)
        self.ensure_artifact(path, version)
        self.launch(path)
        return path

"""Connection to the inlein daemon, launched on demand.

Architecture:
- protocol: bencode reader/writer for the wire frames
- launcher: starts the daemon jar when it is not running
- connection: ServerConnection, the socket and codec lifecycle
- client: DaemonClient, the ack/log/response exchange, and ensure_connected
"""

from inlein.daemon.client import DaemonClient, ensure_connected
from inlein.daemon.connection import ServerConnection
from inlein.daemon.launcher import DaemonLauncher
from inlein.registry import resolve_home_directory, resolve_port

__all__ = [
    "DaemonClient",
    "DaemonLauncher",
    "ServerConnection",
    "ensure_connected",
    "resolve_home_directory",
    "resolve_port",
]

"""Socket connection to the inlein daemon.

:class:`ServerConnection` owns the TCP socket, the bencode writer bound to
its output, the bencode reader bound to its buffered input, and the printer
for daemon log messages. A connection is opened at most once: after
:meth:`ServerConnection.close` a new object is needed to reconnect.
"""

from contextlib import ExitStack
import logging
import socket
from typing import Optional

from inlein.config import ClientSettings, load_settings
from inlein.daemon.protocol import BencodeReader, BencodeWriter
from inlein.exceptions import ConnectionClosedError, DaemonUnreachableError
from inlein.registry import resolve_port
from inlein.ui.log_printer import LogPrinter

logger = logging.getLogger(__name__)

DAEMON_HOST = "localhost"


class ServerConnection:
    """
    A connection to the inlein daemon.

    Parameters:
        settings: Client settings; loaded from the environment when None.
        log_printer: Printer for daemon log frames. When None, one is
            created on connect with the configured threshold (WARN by
            default).
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        log_printer: Optional[LogPrinter] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.log_printer = log_printer
        self.port: Optional[int] = None
        self.connected = False
        self.closed = False
        self._sock: Optional[socket.socket] = None
        self._writer: Optional[BencodeWriter] = None
        self._reader: Optional[BencodeReader] = None

    def try_connect(self) -> bool:
        """
        Connect to the daemon if it is running.

        Returns:
            True when connected (immediately, if already connected),
            False when there is no port file, i.e. the daemon is not running.

        Raises:
            DaemonUnreachableError: If the port file exists but connecting fails
            PortFileError: If the port file is malformed
            ConnectionClosedError: If this connection was already closed
        """
        if self.connected:
            return True
        if self.closed:
            raise ConnectionClosedError("Connection was closed; create a new one to reconnect")

        port = resolve_port(self.settings.home)
        if port is None:
            return False

        try:
            sock = socket.create_connection((DAEMON_HOST, port))
        except OSError as e:
            raise DaemonUnreachableError(
                f"Cannot connect to inlein daemon at {DAEMON_HOST}:{port}: {e}"
            ) from e

        self.attach(sock)
        self.port = port
        logger.debug("Connected to daemon on port %d", port)
        return True

    def attach(self, sock: socket.socket) -> None:
        """Take ownership of a connected socket and mark the connection live."""
        if self.closed:
            raise ConnectionClosedError("Connection was closed; create a new one to reconnect")
        if self.connected:
            self._close_endpoints()
        self._sock = sock
        self._writer = BencodeWriter(sock.makefile("wb"))
        self._reader = BencodeReader(sock.makefile("rb"))
        if self.log_printer is None:
            self.log_printer = LogPrinter(self.settings.log_level)
        self.connected = True

    def close(self) -> None:
        """Close the socket and both codec endpoints."""
        try:
            self._close_endpoints()
        finally:
            self.closed = True

    def _close_endpoints(self) -> None:
        endpoints = (self._sock, self._reader, self._writer)
        self._writer = self._reader = self._sock = None
        self.connected = False
        # Writer, reader, then socket; every close runs even if one raises.
        with ExitStack() as stack:
            for endpoint in endpoints:
                if endpoint is not None:
                    stack.callback(endpoint.close)

    def __enter__(self) -> "ServerConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

"""Request/response client for the inlein daemon.

Usage:
    client = ensure_connected()
    try:
        response = client.send_request({"op": "ping"})
    finally:
        client.close()

Each request is answered by an ``ack`` frame and then a ``response`` frame.
The daemon may interleave ``log`` frames anywhere before those; they are
printed as they arrive and never returned.
"""

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from inlein.config import ClientSettings
from inlein.daemon.connection import ServerConnection
from inlein.daemon.launcher import DaemonLauncher
from inlein.exceptions import (
    DaemonNotRunningError,
    NotConnectedError,
    ProtocolViolation,
    RemoteOperationError,
)
from inlein.ui.log_printer import Level

logger = logging.getLogger(__name__)


class DaemonClient(ServerConnection):
    """
    Synchronous client for one daemon connection.

    Only one request may be in flight at a time; send_request must return
    before it is called again.
    """

    def send_request(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Send a request and wait for its response.

        Args:
            request: Request dictionary; must contain "op"

        Returns:
            The response frame as sent by the daemon

        Raises:
            NotConnectedError: If the connection is not live
            ProtocolViolation: If the reply is not ack then response for this op
            RemoteOperationError: If the daemon reported an error
        """
        if not self.connected:
            raise NotConnectedError("Not connected to the inlein daemon")
        if "op" not in request:
            raise ValueError("Request has no 'op'")

        op = request["op"]
        logger.debug("Sending %s request", op)
        self._writer.write(dict(request))

        ack = self.read_non_log()
        if ack is None:
            raise ProtocolViolation(f"Connection closed before ack for {op!r}")
        if ack.get("type") != "ack" or ack.get("op") != op:
            raise ProtocolViolation(f"Expected ack for {op!r}, got {ack!r}")

        response = self.read_non_log()
        if response is None:
            raise ProtocolViolation(f"Connection closed before response to {op!r}")
        if response.get("type") != "response":
            raise ProtocolViolation(f"Expected response to {op!r}, got {response!r}")

        error = response.get("error")
        if isinstance(error, str) and error:
            raise RemoteOperationError(error)
        return response

    def read_non_log(self) -> Optional[Dict[str, Any]]:
        """
        Read frames until one is not a log frame.

        Log frames are handed to the log printer on the way.

        Returns:
            The first non-log frame, or None if the stream ended first
        """
        if not self.connected:
            raise NotConnectedError("Not connected to the inlein daemon")
        while True:
            frame = self._reader.read_dict()
            if frame is None:
                return None
            if frame.get("type") != "log":
                return frame
            self.log_printer.print_log(Level.parse(frame.get("level")), str(frame.get("msg", "")))

    def frames(self) -> Iterator[Dict[str, Any]]:
        """Lazily yield non-log frames until the daemon closes the stream."""
        while True:
            frame = self.read_non_log()
            if frame is None:
                return
            yield frame

    def ping(self) -> Dict[str, Any]:
        return self.send_request({"op": "ping"})

    def shutdown(self) -> Dict[str, Any]:
        """Ask the daemon to shut down."""
        return self.send_request({"op": "shutdown"})


def ensure_connected(
    client: Optional[DaemonClient] = None,
    settings: Optional[ClientSettings] = None,
    launcher: Optional[DaemonLauncher] = None,
) -> DaemonClient:
    """
    Return a connected client, starting the daemon once if it is not running.

    Args:
        client: Connection to reuse; a new one is created when None
        settings: Settings for a new client and launcher
        launcher: Launcher used when the daemon is not running

    Raises:
        DaemonNotRunningError: If the daemon is still not running after launch
        DaemonUnreachableError: If the port file exists but connecting fails
        FatalError: If the daemon jar is missing and cannot be downloaded
    """
    if client is None:
        client = DaemonClient(settings)
    if client.try_connect():
        return client

    logger.debug("Daemon not running, starting it")
    launcher = launcher or DaemonLauncher(client.settings)
    launcher.start()

    if not client.try_connect():
        raise DaemonNotRunningError("Inlein server not running!")
    return client

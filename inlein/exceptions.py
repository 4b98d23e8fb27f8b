"""Exception hierarchy for the inlein client.

Everything raised on purpose by the client inherits from :class:`InleinError`
so callers can catch a single base class. :class:`FatalError` marks the
conditions a command line front end should end the process on.
"""


class InleinError(Exception):
    """Base exception for all inlein client failures."""


class PortFileError(InleinError, ValueError):
    """Raised when the daemon's port file exists but does not hold a port."""


class DecodeError(InleinError, ValueError):
    """Raised when bytes read from the daemon are not valid bencode."""


class DaemonUnreachableError(InleinError):
    """Raised when the port file exists but the daemon refuses the connection.

    This is distinct from the daemon not running at all (no port file), which
    is reported as a ``False`` result and may trigger an automatic start.
    """


class NotConnectedError(InleinError):
    """Raised when a request is sent over a connection that was never opened."""


class ConnectionClosedError(InleinError):
    """Raised when a closed connection is asked to connect again."""


class ProtocolViolation(InleinError):
    """Raised when the daemon's reply does not follow the ack/response sequence.

    Usually means the client and daemon versions disagree. The connection
    should not be trusted for further requests.
    """


class RemoteOperationError(InleinError):
    """Raised when the daemon answers a request with an ``error`` message."""


class FatalError(InleinError):
    """A condition the command line reports and exits with status 1 on."""


class SnapshotDownloadError(FatalError):
    """Raised when a snapshot daemon is missing and cannot be downloaded."""


class DownloadNotImplementedError(FatalError):
    """Raised when a release daemon is missing; downloads are not supported yet."""


class DaemonNotRunningError(FatalError):
    """Raised when the daemon is still unreachable after starting it."""

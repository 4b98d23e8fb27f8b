"""Client for the inlein daemon.

The daemon is a long-running background process listening on localhost. This
package finds it through the port file in the inlein home directory, starts it
when it is not running, and exchanges bencoded request/response frames with it.
"""

__version__ = "0.2.0"

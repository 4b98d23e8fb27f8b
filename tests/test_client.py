"""
Tests for daemon/client.py - the ack/log/response exchange.

A socketpair stands in for the daemon: replies are written to the daemon
end before the request is sent, and the request is read back afterwards.
"""

import io
import socket
import unittest
from pathlib import Path
from unittest.mock import patch

from inlein.config import ClientSettings
from inlein.daemon.client import DaemonClient
from inlein.daemon.protocol import BencodeReader, encode
from inlein.exceptions import (
    ConnectionClosedError,
    NotConnectedError,
    ProtocolViolation,
    RemoteOperationError,
)
from inlein.ui.log_printer import Level, LogPrinter


class RecordingPrinter(LogPrinter):
    """LogPrinter that remembers every log frame it is handed."""

    def __init__(self):
        super().__init__(Level.DEBUG, stream=io.StringIO())
        self.records = []

    def print_log(self, level, message):
        self.records.append((level, message))
        return super().print_log(level, message)


def ack(op="ping"):
    return {"type": "ack", "op": op}


def log(level, msg):
    return {"type": "log", "level": level, "msg": msg}


class TestDaemonClient(unittest.TestCase):
    """Test cases for DaemonClient.send_request and friends."""

    def setUp(self):
        self.printer = RecordingPrinter()
        self.client = DaemonClient(
            ClientSettings(home=Path("/nonexistent/inlein")),
            log_printer=self.printer,
        )
        client_sock, self.daemon_sock = socket.socketpair()
        self.client.attach(client_sock)

    def tearDown(self):
        self.client.close()
        self.daemon_sock.close()

    def _reply(self, *frames, end=False):
        self.daemon_sock.sendall(b"".join(encode(frame) for frame in frames))
        if end:
            self.daemon_sock.shutdown(socket.SHUT_WR)

    def _received_request(self):
        with self.daemon_sock.makefile("rb") as stream:
            return BencodeReader(stream).read_dict()

    def test_conforming_reply_returns_response_unmodified(self):
        response = {"type": "response", "returns": ["pong", 1]}
        self._reply(ack(), response)

        result = self.client.send_request({"op": "ping"})

        self.assertEqual(result, response)
        self.assertEqual(self._received_request(), {"op": "ping"})
        self.assertEqual(self.printer.records, [])

    def test_request_keys_are_sent(self):
        self._reply(ack("deps"), {"type": "response"})
        self.client.send_request({"op": "deps", "file": "script.clj"})
        self.assertEqual(self._received_request(), {"op": "deps", "file": "script.clj"})

    def test_log_frames_go_to_printer_in_arrival_order(self):
        self._reply(
            log("info", "one"),
            ack(),
            log("warn", "two"),
            log("error", "three"),
            {"type": "response"},
        )

        result = self.client.send_request({"op": "ping"})

        self.assertEqual(result, {"type": "response"})
        self.assertEqual(
            self.printer.records,
            [(Level.INFO, "one"), (Level.WARN, "two"), (Level.ERROR, "three")],
        )

    def test_ack_for_other_op_is_a_protocol_violation(self):
        self._reply(ack("shutdown"), {"type": "response"})
        with self.assertRaises(ProtocolViolation):
            self.client.send_request({"op": "ping"})

    def test_first_frame_must_be_ack(self):
        self._reply({"type": "response"})
        with self.assertRaises(ProtocolViolation):
            self.client.send_request({"op": "ping"})

    def test_final_frame_must_be_response(self):
        self._reply(ack(), ack())
        with self.assertRaises(ProtocolViolation):
            self.client.send_request({"op": "ping"})

    def test_remote_error_is_raised_with_its_message(self):
        self._reply(ack(), log("WARN", "slow"), {"type": "response", "error": "boom"})

        with self.assertRaises(RemoteOperationError) as context:
            self.client.send_request({"op": "ping"})

        self.assertEqual(str(context.exception), "boom")
        self.assertEqual(self.printer.records, [(Level.WARN, "slow")])

    def test_empty_error_is_not_a_failure(self):
        self._reply(ack(), {"type": "response", "error": ""})
        self.assertEqual(
            self.client.send_request({"op": "ping"}),
            {"type": "response", "error": ""},
        )

    def test_end_of_stream_before_ack(self):
        self._reply(log("warn", "going away"), end=True)
        with self.assertRaises(ProtocolViolation):
            self.client.send_request({"op": "ping"})
        self.assertEqual(self.printer.records, [(Level.WARN, "going away")])

    def test_end_of_stream_before_response(self):
        self._reply(ack(), end=True)
        with self.assertRaises(ProtocolViolation):
            self.client.send_request({"op": "ping"})

    def test_read_non_log_returns_none_at_end_of_stream(self):
        self._reply(log("info", "only logs"), end=True)
        self.assertIsNone(self.client.read_non_log())
        self.assertEqual(self.printer.records, [(Level.INFO, "only logs")])

    def test_frames_skips_logs_and_stops_at_end_of_stream(self):
        self._reply(ack(), log("debug", "x"), {"type": "response"}, end=True)
        self.assertEqual(list(self.client.frames()), [ack(), {"type": "response"}])
        self.assertEqual(self.printer.records, [(Level.DEBUG, "x")])

    def test_ping_and_shutdown_send_their_ops(self):
        self._reply(ack("ping"), {"type": "response"})
        self.client.ping()
        self.assertEqual(self._received_request(), {"op": "ping"})

        self._reply(ack("shutdown"), {"type": "response"})
        self.client.shutdown()
        self.assertEqual(self._received_request(), {"op": "shutdown"})

    def test_request_without_op_is_rejected(self):
        with self.assertRaises(ValueError):
            self.client.send_request({"file": "script.clj"})


class TestDaemonClientLifecycle(unittest.TestCase):
    """Test cases for connection state."""

    def setUp(self):
        self.client = DaemonClient(ClientSettings(home=Path("/nonexistent/inlein")))

    def test_new_client_is_not_connected(self):
        self.assertFalse(self.client.connected)
        with self.assertRaises(NotConnectedError):
            self.client.send_request({"op": "ping"})

    def test_attach_creates_warn_printer(self):
        client_sock, daemon_sock = socket.socketpair()
        self.client.attach(client_sock)
        try:
            self.assertTrue(self.client.connected)
            self.assertEqual(self.client.log_printer.threshold, Level.WARN)
        finally:
            self.client.close()
            daemon_sock.close()

    def test_close_invalidates_connection(self):
        client_sock, daemon_sock = socket.socketpair()
        self.client.attach(client_sock)
        self.client.close()
        daemon_sock.close()

        self.assertFalse(self.client.connected)
        self.assertTrue(self.client.closed)
        self.client.close()
        with self.assertRaises(ConnectionClosedError):
            self.client.try_connect()
        with self.assertRaises(NotConnectedError):
            self.client.send_request({"op": "ping"})

    def test_attach_on_live_connection_closes_previous_socket(self):
        old_sock, old_peer = socket.socketpair()
        new_sock, new_peer = socket.socketpair()
        self.client.attach(old_sock)
        self.client.attach(new_sock)
        try:
            self.assertEqual(old_sock.fileno(), -1)
            self.assertTrue(self.client.connected)
        finally:
            self.client.close()
            old_peer.close()
            new_peer.close()

    def test_close_finishes_when_an_endpoint_fails(self):
        client_sock, daemon_sock = socket.socketpair()
        self.client.attach(client_sock)
        reader = self.client._reader
        writer = self.client._writer

        with patch.object(writer, "close", side_effect=OSError("broken")):
            with self.assertRaises(OSError):
                self.client.close()

        writer.stream.close()
        daemon_sock.close()
        self.assertTrue(reader.stream.closed)
        self.assertFalse(self.client.connected)
        self.assertTrue(self.client.closed)
        self.assertEqual(client_sock.fileno(), -1)

    def test_context_manager_closes(self):
        client_sock, daemon_sock = socket.socketpair()
        with self.client as client:
            client.attach(client_sock)
            self.assertTrue(client.connected)
        daemon_sock.close()
        self.assertFalse(self.client.connected)


if __name__ == "__main__":
    unittest.main()

import errno
import socket
import threading
import unittest
import pytest
from unittest.mock import MagicMock, patch

from cse5462_lab0 import client as client_mod
from cse5462_lab0.client import GreetingClient
from cse5462_lab0.config import ClientConfig
from cse5462_lab0.endpoint import Endpoint
from cse5462_lab0.protocol import GREETING, WELCOME

SERVER_ADDR = ("127.0.0.1", 40001)


class TestGreetingClientRetry(unittest.TestCase):
    """Receive loop behaviour against a scripted socket."""

    def setUp(self):
        self.sleep = MagicMock()
        self.logger = MagicMock()
        self.client = GreetingClient(Endpoint(*SERVER_ADDR), logger=self.logger, sleep=self.sleep)
        self.client.sock = MagicMock()
        self.client.sock.sendto.return_value = len(GREETING)

    def test_sends_greeting_once(self):
        self.client.sock.recvfrom.return_value = (WELCOME, SERVER_ADDR)
        self.assertEqual(self.client.run(), WELCOME)
        self.client.sock.sendto.assert_called_once_with(b"Hello, World!", SERVER_ADDR)
        self.sleep.assert_not_called()

    def test_timeouts_sleep_and_retry(self):
        self.client.sock.recvfrom.side_effect = [socket.timeout(), socket.timeout(), (WELCOME, SERVER_ADDR)]
        self.assertEqual(self.client.run(), WELCOME)
        self.assertEqual(self.client.attempts, 3)
        self.assertEqual(self.sleep.call_count, 2)
        self.sleep.assert_called_with(1.0)
        # Retries never resend the greeting.
        self.assertEqual(self.client.sock.sendto.call_count, 1)

    def test_would_block_is_timeout_class(self):
        self.client.sock.recvfrom.side_effect = [BlockingIOError(), (WELCOME, SERVER_ADDR)]
        self.assertEqual(self.client.run(), WELCOME)
        self.assertEqual(self.sleep.call_count, 1)

    def test_one_attempt_per_interval(self):
        n = 25
        self.client.sock.recvfrom.side_effect = [socket.timeout()] * n + [(WELCOME, SERVER_ADDR)]
        self.client.run()
        self.assertEqual(self.sleep.call_count, n)
        self.assertEqual(self.client.attempts, n + 1)

    def test_empty_reply_is_valid(self):
        self.client.sock.recvfrom.return_value = (b"", SERVER_ADDR)
        self.assertEqual(self.client.run(), b"")
        self.sleep.assert_not_called()

    def test_other_receive_error_exits_with_errno(self):
        self.client.sock.recvfrom.side_effect = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
        with self.assertRaises(SystemExit) as cm:
            self.client.run()
        self.assertEqual(cm.exception.code, errno.ECONNREFUSED)
        self.sleep.assert_not_called()

    def test_bad_descriptor_on_receive_exits_with_errno(self):
        self.client.sock.recvfrom.side_effect = OSError(errno.EBADF, "Bad file descriptor")
        with self.assertRaises(SystemExit) as cm:
            self.client.run()
        self.assertEqual(cm.exception.code, errno.EBADF)

    def test_short_send_is_fatal(self):
        self.client.sock.sendto.return_value = 5
        with self.assertRaises(SystemExit) as cm:
            self.client.run()
        self.assertEqual(cm.exception.code, 1)
        self.client.sock.recvfrom.assert_not_called()


class TestGreetingClientSocket(unittest.TestCase):

    def test_open_sets_receive_timeout(self):
        with GreetingClient(Endpoint("127.0.0.1", 9), logger=MagicMock()) as c:
            c.open()
            self.assertEqual(c.sock.gettimeout(), 5.0)
            self.assertEqual(c.sock.type, socket.SOCK_DGRAM)

    def test_custom_timeout(self):
        with GreetingClient(Endpoint("127.0.0.1", 9), ClientConfig(recv_timeout=0.25), logger=MagicMock()) as c:
            c.open()
            self.assertEqual(c.sock.gettimeout(), 0.25)

    def test_bad_address_is_fatal(self):
        with GreetingClient(Endpoint("999.1.1.1", 80), logger=MagicMock()) as c:
            with self.assertRaises(SystemExit) as cm:
                c.open()
            self.assertEqual(cm.exception.code, 1)

    def test_close_is_idempotent(self):
        c = GreetingClient(Endpoint("127.0.0.1", 9), logger=MagicMock())
        c.open()
        c.close()
        c.close()
        self.assertIsNone(c.sock)


@pytest.fixture
def responder(request):
    """One-shot UDP peer on loopback that answers the first datagram (welcome string unless parametrized)."""
    reply = getattr(request, "param", WELCOME)
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(5)
    received = []

    def serve():
        data, addr = sock.recvfrom(65535)
        received.append(data)
        sock.sendto(reply, addr)

    t = threading.Thread(target=serve, daemon=True)
    t.start()
    yield sock.getsockname()[1], received, reply
    t.join(timeout=5)
    sock.close()


def test_main_prints_reply(responder, capsysbinary):
    port, received, _ = responder
    assert client_mod.main(["127.0.0.1", str(port)]) == 0
    assert capsysbinary.readouterr().out == b"Server: Welcome to CSE5462.\n"
    assert received == [b"Hello, World!"]


@pytest.mark.parametrize("responder", [b"\xff\xfe raw", "caf\u00e9".encode(), b""], indirect=True)
def test_main_prints_reply_bytes_unchanged(responder, capsysbinary):
    port, _, reply = responder
    assert client_mod.main(["127.0.0.1", str(port)]) == 0
    assert capsysbinary.readouterr().out == b"Server: " + reply + b"\n"


@pytest.mark.parametrize("argv", [
    [],
    ["127.0.0.1"],
    ["127.0.0.1", "80", "extra"],
    ["127.0.0.1", "80", "--log-level", "DEBUG"],
    ["127.0.0.1", "0"],
    ["127.0.0.1", "65536"],
    ["127.0.0.1", "abc"],
    ["127.0.0.1", "80x"],
])
def test_main_usage_errors_before_any_socket(argv):
    with patch("socket.socket") as sock_cls:
        with pytest.raises(SystemExit) as exc:
            client_mod.main(argv)
    assert exc.value.code == 1
    sock_cls.assert_not_called()


def test_main_bad_ip(capsys):
    with pytest.raises(SystemExit) as exc:
        client_mod.main(["127.0.0.256", "5462"])
    assert exc.value.code == 1
    assert "Error: IP wrong format" in capsys.readouterr().err

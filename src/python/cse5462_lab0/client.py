import socket
import sys
import time
from typing import Optional

from .config import ClientConfig
from .endpoint import Endpoint, parse_ipv4
from .errors import checked, die, exit_code_for
from .logger import LogLevel, ConsoleLogger, ILogger
from . import cli

class GreetingClient:
    """
    Sends the greeting datagram once and waits for a single reply.
    A receive timeout is not an error: the client sleeps and receives again, with no cap.
    """
    def __init__(self, endpoint: Endpoint, config: Optional[ClientConfig] = None,
                 logger: Optional[ILogger] = None, sleep=time.sleep):
        self.endpoint = endpoint
        self.config = config or ClientConfig()
        self.logger = logger or ConsoleLogger()
        self.sleep = sleep
        self.sock: Optional[socket.socket] = None
        self.attempts = 0

    def open(self):
        self.sock = checked("socket", socket.socket, socket.AF_INET, socket.SOCK_DGRAM, logger=self.logger)
        checked("settimeout", self.sock.settimeout, self.config.recv_timeout, logger=self.logger)
        try:
            parse_ipv4(self.endpoint.ip)
        except ValueError:
            die("IP wrong format", logger=self.logger)
        self.logger.log(LogLevel.DEBUG, "Client", f"Socket ready for {self.endpoint} (timeout={self.config.recv_timeout}s)")

    def send_greeting(self):
        msg = self.config.message
        sent = checked("sendto", self.sock.sendto, msg, self.endpoint.address, logger=self.logger)
        if sent != len(msg):
            die("Failed to send message to server", logger=self.logger)
        self.logger.log(LogLevel.DEBUG, "Client", f"Sent {sent} bytes to {self.endpoint}")

    def receive_reply(self) -> bytes:
        while True:
            self.attempts += 1
            try:
                data, _ = self.sock.recvfrom(self.config.buffer_size)
                return data
            except (socket.timeout, BlockingIOError):
                self.logger.log(LogLevel.INFO, "Client", f"No reply yet (attempt {self.attempts}), retrying in {self.config.retry_interval}s")
                self.sleep(self.config.retry_interval)
            except OSError as e:
                self.logger.log(LogLevel.ERROR, "Client", f"recvfrom: {e}")
                die("Receive failed", code=exit_code_for(e), logger=self.logger)

    def run(self) -> bytes:
        if self.sock is None:
            self.open()
        self.send_greeting()
        return self.receive_reply()

    def close(self):
        if self.sock:
            self.sock.close()
            self.sock = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

def main(argv=None) -> int:
    parser = cli.build_parser("client", "Send one greeting datagram and print the reply.")
    ip, port, logger = cli.parse_args(parser, argv, "Invalid port number (must be between 1 and 65535)")
    with GreetingClient(Endpoint(ip, port), logger=logger) as client:
        reply = client.run()
    sys.stdout.buffer.write(b"Server: " + reply + b"\n")
    sys.stdout.buffer.flush()
    return 0

if __name__ == "__main__":
    sys.exit(main())

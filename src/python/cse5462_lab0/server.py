import socket
import sys
from typing import Optional, Tuple

from .config import ServerConfig
from .endpoint import Endpoint, parse_ipv4, format_sender
from .errors import checked, die
from .logger import LogLevel, ConsoleLogger, ILogger
from . import cli

class WelcomeServer:
    def __init__(self, endpoint: Endpoint, config: Optional[ServerConfig] = None,
                 logger: Optional[ILogger] = None, out=None):
        self.endpoint = endpoint
        self.config = config or ServerConfig()
        self.logger = logger or ConsoleLogger()
        self.out = out
        self.sock: Optional[socket.socket] = None
        self.bound_port = None
        self.handled = 0

    def _write(self, line: bytes):
        # Raw bytes: the payload is logged exactly as received, whatever the console encoding.
        out = self.out or sys.stdout.buffer
        out.write(line + b"\n")
        out.flush()

    def bind(self):
        self.sock = checked("socket", socket.socket, socket.AF_INET, socket.SOCK_DGRAM, logger=self.logger)
        if self.config.reuse_address:
            checked("setsockopt(SO_REUSEADDR)", self.sock.setsockopt,
                    socket.SOL_SOCKET, socket.SO_REUSEADDR, 1, logger=self.logger)
        try:
            parse_ipv4(self.endpoint.ip)
        except ValueError:
            die("Invalid ip address given", logger=self.logger)
        checked("bind", self.sock.bind, self.endpoint.address, logger=self.logger)
        self.bound_port = self.sock.getsockname()[1]
        self.logger.log(LogLevel.INFO, "Server", f"Bound {self.endpoint.ip}:{self.bound_port} (udp)")
        self._write(f"bound on port: {self.bound_port}".encode())

    def handle_one(self) -> Tuple[bytes, Tuple[str, int]]:
        """Receives one datagram, logs it, and answers the sender with the welcome reply."""
        data, addr = checked("recvfrom", self.sock.recvfrom, self.config.buffer_size, logger=self.logger)
        try:
            sender = format_sender(addr, network_order=self.config.network_order_port)
        except (OSError, ValueError):
            die("Unable to translate client ip address into human format", logger=self.logger)
        self._write(b"recv: " + data + b" from " + sender.encode())

        reply = self.config.reply
        sent = checked("sendto", self.sock.sendto, reply, addr, logger=self.logger)
        if sent != len(reply):
            die("Failed to send response to client", logger=self.logger)
        self.handled += 1
        self.logger.log(LogLevel.DEBUG, "Server", f"Replied {sent} bytes to {addr[0]}:{addr[1]}")
        return data, addr

    def serve_forever(self):
        if self.sock is None:
            self.bind()
        while True:
            self.handle_one()

    def close(self):
        if self.sock:
            self.sock.close()
            self.sock = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

def main(argv=None) -> int:
    parser = cli.build_parser("server", "Answer every datagram with the CSE5462 welcome.")
    ip, port, logger = cli.parse_args(parser, argv, "Invalid port number (must be 1 - 65535)")
    with WelcomeServer(Endpoint(ip, port), logger=logger) as server:
        server.serve_forever()
    return 0

if __name__ == "__main__":
    sys.exit(main())

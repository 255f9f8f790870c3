import re
import socket
from typing import NamedTuple, Tuple

MIN_PORT = 1
MAX_PORT = 65535

# strtol(..., 10) accepts leading whitespace and one sign before the digits.
_PORT_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)

def parse_port(text: str) -> int:
    m = _PORT_RE.fullmatch(text)
    if not m:
        raise ValueError(f"not a decimal port: {text!r}")
    port = int(m.group(1))
    if port < MIN_PORT or port > MAX_PORT:
        raise ValueError(f"port out of range: {port}")
    return port

def parse_ipv4(text: str) -> bytes:
    """Dotted-decimal IPv4 to its 4 byte network form."""
    try:
        return socket.inet_pton(socket.AF_INET, text)
    except (OSError, ValueError):
        raise ValueError(f"not an IPv4 address: {text!r}")

def format_sender(addr: Tuple[str, int], network_order: bool = False) -> str:
    """
    Renders a recvfrom() address as ``ip:port``.
    With network_order the port is shown as its raw big-endian value read
    back in host order, which is what printing sin_port directly produces.
    """
    ip, port = addr[0], addr[1]
    ip = socket.inet_ntop(socket.AF_INET, socket.inet_pton(socket.AF_INET, ip))
    if network_order:
        port = socket.htons(port)
    return f"{ip}:{port}"

class Endpoint(NamedTuple):
    ip: str
    port: int

    @property
    def address(self) -> Tuple[str, int]:
        return (self.ip, self.port)

    def __str__(self):
        return f"{self.ip}:{self.port}"

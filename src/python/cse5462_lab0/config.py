from dataclasses import dataclass

from .protocol import GREETING, WELCOME, MAX_DATAGRAM, RECV_TIMEOUT, RETRY_INTERVAL

@dataclass
class ClientConfig:
    recv_timeout: float = RECV_TIMEOUT
    retry_interval: float = RETRY_INTERVAL
    buffer_size: int = MAX_DATAGRAM
    message: bytes = GREETING

@dataclass
class ServerConfig:
    reuse_address: bool = True
    buffer_size: int = MAX_DATAGRAM
    reply: bytes = WELCOME
    # Log the sender port as the raw sin_port value instead of host order.
    network_order_port: bool = False

from .logger import LogLevel, ILogger, ConsoleLogger
from .protocol import GREETING, WELCOME, MAX_DATAGRAM
from .endpoint import Endpoint, parse_port, parse_ipv4, format_sender
from .config import ClientConfig, ServerConfig
from .errors import die, checked

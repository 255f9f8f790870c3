import argparse
from typing import List, Optional, Tuple

from .errors import die, set_logger
from .endpoint import parse_port
from .logger import ConsoleLogger

class LabArgumentParser(argparse.ArgumentParser):
    """Routes argparse usage errors through the fatal policy (exit 1, ``Error:`` line)."""
    def __init__(self, prog: str, usage_hint: str, **kwargs):
        super().__init__(prog=prog, **kwargs)
        self.usage_hint = usage_hint

    def error(self, message):
        die(self.usage_hint)

def build_parser(prog: str, description: str) -> LabArgumentParser:
    parser = LabArgumentParser(prog, f"example: {prog} <ip> <port>", description=description)
    parser.add_argument("ip", help="dotted-decimal IPv4 address")
    parser.add_argument("port", help="decimal port, 1 - 65535")
    return parser

def parse_args(parser: LabArgumentParser, argv: Optional[List[str]], port_error: str) -> Tuple[str, int, ConsoleLogger]:
    """
    Parses ``<ip> <port>`` and installs the console logger.
    Only the port is validated here; the address is checked once the socket exists.
    """
    args = parser.parse_args(argv)
    logger = ConsoleLogger()
    set_logger(logger)
    try:
        port = parse_port(args.port)
    except ValueError:
        die(port_error)
    return args.ip, port, logger

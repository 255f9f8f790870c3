import datetime
import sys
from enum import Enum

class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

class ILogger:
    def log(self, level: LogLevel, component: str, msg: str):
        pass

class ConsoleLogger(ILogger):
    """Timestamped console logger. Writes to stderr so stdout stays free for the lab output."""
    def __init__(self, stream=None, min_level: LogLevel = LogLevel.INFO):
        self.stream = stream
        self.min_level = min_level

    def log(self, level: LogLevel, component: str, msg: str):
        if level.value < self.min_level.value:
            return
        ts = datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]
        print(f"[{ts}] [{level.name:5}] [{component}] {msg}", file=self.stream or sys.stderr, flush=True)

import os
from typing import Optional

from .logger import LogLevel, ConsoleLogger, ILogger

EXIT_FAILURE = 1

_logger: ILogger = ConsoleLogger()

def set_logger(logger: ILogger):
    global _logger
    _logger = logger

def die(message: str, code: int = EXIT_FAILURE, logger: Optional[ILogger] = None):
    """Prints ``Error: <message>`` and terminates the process."""
    (logger or _logger).log(LogLevel.ERROR, "Fatal", f"Error: {message}")
    raise SystemExit(code)

def exit_code_for(err: OSError) -> int:
    # Exit statuses are 8 bit; an errno that wraps to 0 would read as success.
    code = (err.errno or EXIT_FAILURE) & 0xFF
    return code or EXIT_FAILURE

def checked(description: str, func, *args, logger: Optional[ILogger] = None, **kwargs):
    """
    Evaluates a fallible socket call.
    Returns its value, or reports ``description: strerror`` and exits with the
    OS error code when the call raises OSError.
    """
    try:
        return func(*args, **kwargs)
    except OSError as e:
        reason = e.strerror or (os.strerror(e.errno) if e.errno else str(e))
        (logger or _logger).log(LogLevel.ERROR, "Fatal", f"{description}: {reason}")
        raise SystemExit(exit_code_for(e))

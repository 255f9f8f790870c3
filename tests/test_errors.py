import errno
import pytest
from unittest.mock import MagicMock

from cse5462_lab0.errors import die, checked, exit_code_for, EXIT_FAILURE
from cse5462_lab0.logger import LogLevel


def test_die_exits_with_failure_and_reports():
    logger = MagicMock()
    with pytest.raises(SystemExit) as exc:
        die("Invalid port number (must be 1 - 65535)", logger=logger)
    assert exc.value.code == EXIT_FAILURE
    logger.log.assert_called_once_with(LogLevel.ERROR, "Fatal", "Error: Invalid port number (must be 1 - 65535)")


def test_checked_returns_value():
    assert checked("sendto", lambda data: len(data), b"abc", logger=MagicMock()) == 3


def test_checked_exits_with_errno():
    logger = MagicMock()

    def bind(addr):
        raise OSError(errno.EADDRINUSE, "Address already in use")

    with pytest.raises(SystemExit) as exc:
        checked("bind", bind, ("127.0.0.1", 80), logger=logger)
    assert exc.value.code == errno.EADDRINUSE
    logger.log.assert_called_once_with(LogLevel.ERROR, "Fatal", "bind: Address already in use")


def test_checked_passes_keyword_arguments():
    func = MagicMock(return_value=7)
    assert checked("recvfrom", func, 1024, flags=0, logger=MagicMock()) == 7
    func.assert_called_once_with(1024, flags=0)


def test_exit_code_without_errno_is_failure():
    assert exit_code_for(OSError("boom")) == EXIT_FAILURE


def test_exit_code_never_reads_as_success():
    assert exit_code_for(OSError(256, "wrapped")) == EXIT_FAILURE
    assert exit_code_for(OSError(errno.EACCES, "denied")) == errno.EACCES

"""The write-ahead log file.

The file starts with a four-byte big-endian checksum over all log records.
"""

from __future__ import annotations

import os
import struct
import threading
from typing import BinaryIO

from burrowdb.errors import (
    BadLogFileError,
    FileCannotRWError,
    FileExistsDatabaseError,
    FileNotExistsError,
)

SEED = 13331
OF_SIZE = 0
OF_CHECKSUM = OF_SIZE + 4
OF_LOG_DATA = OF_CHECKSUM + 4
LOG_SUFFIX = ".log"

_HEADER = struct.Struct(">I")


class Logger:
    """An open log file whose header has been checked."""

    def __init__(self, file: BinaryIO) -> None:
        self._file = file
        self._lock = threading.Lock()
        self._position = 0
        self._file_size = os.fstat(file.fileno()).st_size
        if self._file_size < _HEADER.size:
            raise BadLogFileError()
        file.seek(0)
        header = file.read(_HEADER.size)
        if header is None or len(header) != _HEADER.size:
            raise BadLogFileError()
        (self._x_checksum,) = _HEADER.unpack(header)

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def x_checksum(self) -> int:
        """The checksum stored in the header."""
        return self._x_checksum

    @property
    def file_size(self) -> int:
        """The size of the log file when it was opened."""
        return self._file_size

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self) -> None:
        """Close the log file."""
        with self._lock:
            self._file.close()


def _open_log_file(file_path: str, create: bool) -> BinaryIO:
    try:
        if create:
            fd = os.open(file_path, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o600)
        else:
            fd = os.open(file_path, os.O_RDWR)
    except FileExistsError as exc:
        raise FileExistsDatabaseError() from exc
    except FileNotFoundError as exc:
        raise FileNotExistsError() from exc
    except PermissionError as exc:
        raise FileCannotRWError() from exc
    return os.fdopen(fd, "r+b", buffering=0)


def create_logger(path: str | os.PathLike[str]) -> Logger:
    """Create ``<path>.log`` with an empty checksum and return its logger."""
    file = _open_log_file(os.fspath(path) + LOG_SUFFIX, create=True)
    try:
        file.seek(0)
        file.write(_HEADER.pack(0))
        file.flush()
        os.fsync(file.fileno())
        return Logger(file)
    except BaseException:
        file.close()
        raise


def open_logger(path: str | os.PathLike[str]) -> Logger:
    """Open an existing ``<path>.log``, checking its header."""
    file = _open_log_file(os.fspath(path) + LOG_SUFFIX, create=False)
    try:
        return Logger(file)
    except BaseException:
        file.close()
        raise
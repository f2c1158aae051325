"""Transaction id allocation and status tracking backed by a file."""

from __future__ import annotations

import enum
import os
import struct
import threading
from typing import BinaryIO

from burrowdb.errors import (
    BadXIDFileError,
    FileExistsDatabaseError,
    FileNotExistsError,
    InvalidFileAccessError,
)

XID_HEADER_LENGTH = 8
XID_FIELD_SIZE = 1
SUPER_XID = 0
XID_SUFFIX = ".xid"

_HEADER = struct.Struct("<Q")


class TransactionStatus(enum.IntEnum):
    """The state recorded for each transaction."""

    ACTIVE = 0
    COMMITTED = 1
    ABORTED = 2


class TransactionManager:
    """Allocates transaction ids and records their status in an ``.xid`` file.

    The file starts with an 8-byte little-endian counter of allocated ids,
    followed by one status byte per transaction. Transaction ``0`` is the
    super transaction and is always committed.
    """

    def __init__(self, file: BinaryIO, xid_counter: int = 0) -> None:
        self._file = file
        self._xid_counter = xid_counter
        self._counter_lock = threading.Lock()
        self._file_lock = threading.Lock()

    def __enter__(self) -> TransactionManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _position(xid: int) -> int:
        return XID_HEADER_LENGTH + (xid - 1) * XID_FIELD_SIZE

    def _write_at(self, offset: int, data: bytes) -> None:
        with self._file_lock:
            try:
                self._file.seek(offset)
                self._file.write(data)
                self._file.flush()
                os.fsync(self._file.fileno())
            except (OSError, ValueError) as exc:
                raise InvalidFileAccessError() from exc

    def _read_at(self, offset: int, size: int) -> bytes:
        with self._file_lock:
            try:
                self._file.seek(offset)
                data = self._file.read(size)
            except (OSError, ValueError) as exc:
                raise InvalidFileAccessError() from exc
        if len(data) != size:
            raise InvalidFileAccessError()
        return data

    def _update(self, xid: int, status: TransactionStatus) -> None:
        self._write_at(self._position(xid), bytes([status]))

    def _increment_counter(self) -> None:
        self._xid_counter += 1
        self._write_at(0, _HEADER.pack(self._xid_counter))

    def _check(self, xid: int, status: TransactionStatus) -> bool:
        return self._read_at(self._position(xid), XID_FIELD_SIZE)[0] == status

    def begin(self) -> int:
        """Start a new transaction and return its id."""
        with self._counter_lock:
            xid = self._xid_counter + 1
            self._update(xid, TransactionStatus.ACTIVE)
            self._increment_counter()
            return xid

    def commit(self, xid: int) -> None:
        """Mark ``xid`` as committed."""
        if xid != SUPER_XID:
            self._update(xid, TransactionStatus.COMMITTED)

    def abort(self, xid: int) -> None:
        """Mark ``xid`` as aborted."""
        if xid != SUPER_XID:
            self._update(xid, TransactionStatus.ABORTED)

    def is_active(self, xid: int) -> bool:
        if xid == SUPER_XID:
            return False
        return self._check(xid, TransactionStatus.ACTIVE)

    def is_committed(self, xid: int) -> bool:
        if xid == SUPER_XID:
            return True
        return self._check(xid, TransactionStatus.COMMITTED)

    def is_aborted(self, xid: int) -> bool:
        if xid == SUPER_XID:
            return False
        return self._check(xid, TransactionStatus.ABORTED)

    def close(self) -> None:
        """Close the backing file."""
        self._file.close()


def create_manager(path: str | os.PathLike[str]) -> TransactionManager:
    """Create a new ``<path>.xid`` file and return its manager."""
    file_path = os.fspath(path) + XID_SUFFIX
    try:
        fd = os.open(file_path, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError as exc:
        raise FileExistsDatabaseError() from exc
    file = os.fdopen(fd, "r+b", buffering=0)
    try:
        file.write(bytes(XID_HEADER_LENGTH))
        os.fsync(file.fileno())
    except OSError:
        file.close()
        raise
    return TransactionManager(file, 0)


def open_manager(path: str | os.PathLike[str]) -> TransactionManager:
    """Open an existing ``<path>.xid`` file, validating its header."""
    file_path = os.fspath(path) + XID_SUFFIX
    try:
        file = open(file_path, "r+b", buffering=0)
    except FileNotFoundError as exc:
        raise FileNotExistsError() from exc
    try:
        size = os.fstat(file.fileno()).st_size
        if size < XID_HEADER_LENGTH:
            raise BadXIDFileError()
        header = file.read(XID_HEADER_LENGTH)
        (counter,) = _HEADER.unpack(header)
        if size != XID_HEADER_LENGTH + counter * XID_FIELD_SIZE:
            raise BadXIDFileError()
    except BaseException:
        file.close()
        raise
    return TransactionManager(file, counter)
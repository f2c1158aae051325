"""Fixed-size pages, with helpers for the first page and for data pages.

The first page carries a validity check: random bytes are written at
``OF_VC`` when the database opens and copied to the following eight bytes
when it closes cleanly. Data pages start with a two-byte big-endian free
space offset (FSO) that points just past the last byte in use.
"""

from __future__ import annotations

import os
import struct
import threading
from typing import Protocol

PAGE_SIZE = 1 << 13
OF_VC = 100
LEN_VC = 8
OF_FREE = 0
OF_DATA = 2
MAX_FREE_SPACE = PAGE_SIZE - OF_DATA

_FSO = struct.Struct(">H")


class _PageOwner(Protocol):
    def release_page(self, page: Page) -> None: ...


class Page:
    """A page of data held in memory, with a lock and a dirty flag."""

    def __init__(
        self,
        page_number: int,
        data: bytes | bytearray,
        cache: _PageOwner | None = None,
    ) -> None:
        self.page_number = page_number
        self.data = bytearray(data)
        self.dirty = False
        self._cache = cache
        self._lock = threading.Lock()

    def __enter__(self) -> Page:
        self.lock()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unlock()

    def lock(self) -> None:
        self._lock.acquire()

    def unlock(self) -> None:
        self._lock.release()

    def release(self) -> None:
        """Hand the page back to the cache it came from."""
        if self._cache is None:
            raise RuntimeError("page is not owned by a cache")
        self._cache.release_page(self)


def _copy_into(data: bytearray, offset: int, raw: bytes) -> None:
    count = max(0, min(len(raw), len(data) - offset))
    data[offset:offset + count] = raw[:count]


def init_raw_first_page() -> bytearray:
    """Return the raw bytes of a fresh first page with a new open mark."""
    raw = bytearray(PAGE_SIZE)
    _set_vc_open_bytes(raw)
    return raw


def _set_vc_open_bytes(raw: bytearray) -> None:
    raw[OF_VC:OF_VC + LEN_VC] = os.urandom(LEN_VC)


def _set_vc_close_bytes(raw: bytearray) -> None:
    raw[OF_VC + LEN_VC:OF_VC + 2 * LEN_VC] = raw[OF_VC:OF_VC + LEN_VC]


def set_vc_open(page: Page) -> None:
    """Write a fresh random open mark into the first page."""
    page.dirty = True
    _set_vc_open_bytes(page.data)


def set_vc_close(page: Page) -> None:
    """Copy the open mark into the close mark of the first page."""
    page.dirty = True
    _set_vc_close_bytes(page.data)


def check_vc(page: Page) -> bool:
    """Tell whether the database was closed cleanly last time."""
    raw = page.data
    return raw[OF_VC:OF_VC + LEN_VC] == raw[OF_VC + LEN_VC:OF_VC + 2 * LEN_VC]


def _set_fso(raw: bytearray, offset: int) -> None:
    _FSO.pack_into(raw, OF_FREE, offset)


def _get_fso(raw: bytes | bytearray) -> int:
    return _FSO.unpack_from(raw, OF_FREE)[0]


def init_raw_data_page() -> bytearray:
    """Return the raw bytes of an empty data page."""
    raw = bytearray(PAGE_SIZE)
    _set_fso(raw, OF_DATA)
    return raw


def get_fso(page: Page) -> int:
    """Return the free space offset of a data page."""
    return _get_fso(page.data)


def insert(page: Page, raw: bytes) -> int:
    """Append ``raw`` at the free space offset and return where it went."""
    page.dirty = True
    offset = _get_fso(page.data)
    _copy_into(page.data, offset, raw)
    _set_fso(page.data, offset + len(raw))
    return offset


def get_free_space(page: Page) -> int:
    """Return how many bytes are still free in a data page."""
    return PAGE_SIZE - _get_fso(page.data)


def recover_insert(page: Page, raw: bytes, offset: int) -> None:
    """Redo an insert at ``offset``, moving the FSO forward if needed."""
    page.dirty = True
    _copy_into(page.data, offset, raw)
    if _get_fso(page.data) < offset + len(raw):
        _set_fso(page.data, offset + len(raw))


def recover_update(page: Page, raw: bytes, offset: int) -> None:
    """Redo an update at ``offset`` without touching the FSO."""
    page.dirty = True
    _copy_into(page.data, offset, raw)
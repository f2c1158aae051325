"""A cache of pages backed by a ``.db`` file."""

from __future__ import annotations

import os
import threading
from typing import BinaryIO

from burrowdb.cache import AbstractCache
from burrowdb.errors import (
    FileCannotRWError,
    FileExistsDatabaseError,
    FileNotExistsError,
    InvalidFileAccessError,
    MemoryTooSmallError,
)
from burrowdb.page import PAGE_SIZE, Page

MEM_MIN_LIM = 10
DB_SUFFIX = ".db"


def _page_offset(pgno: int) -> int:
    return (pgno - 1) * PAGE_SIZE


class PageCache(AbstractCache[Page]):
    """Loads pages from the database file and writes dirty ones back.

    Page numbers start at 1.
    """

    def __init__(self, file: BinaryIO, max_resource: int) -> None:
        if max_resource < MEM_MIN_LIM:
            raise MemoryTooSmallError()
        super().__init__(max_resource)
        self._file = file
        self._file_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._page_numbers = os.fstat(file.fileno()).st_size // PAGE_SIZE

    def __enter__(self) -> PageCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def page_count(self) -> int:
        """The number of pages in the database file."""
        return self._page_numbers

    def new_page(self, init_data: bytes) -> int:
        """Append a page holding ``init_data`` and return its number."""
        with self._counter_lock:
            self._page_numbers += 1
            pgno = self._page_numbers
        self.flush_page(Page(pgno, init_data))
        return pgno

    def get_page(self, pgno: int) -> Page:
        return self.get(pgno)

    def get_for_cache(self, key: int) -> Page:
        with self._file_lock:
            try:
                self._file.seek(_page_offset(key))
                data = self._file.read(PAGE_SIZE)
            except (OSError, ValueError) as exc:
                raise InvalidFileAccessError() from exc
        if data is None or len(data) != PAGE_SIZE:
            raise InvalidFileAccessError()
        return Page(key, data, self)

    def release_for_cache(self, obj: Page) -> None:
        if obj.dirty:
            self.flush_page(obj)
            obj.dirty = False

    def release_page(self, page: Page) -> None:
        self.release(page.page_number)

    def flush_page(self, page: Page) -> None:
        """Write ``page`` to its place in the file and sync it."""
        with self._file_lock:
            try:
                self._file.seek(_page_offset(page.page_number))
                self._file.write(page.data)
                self._file.flush()
                os.fsync(self._file.fileno())
            except (OSError, ValueError) as exc:
                raise InvalidFileAccessError() from exc

    def truncate_by_pgno(self, max_pgno: int) -> None:
        """Cut the file so that ``max_pgno`` is its last page."""
        with self._file_lock:
            try:
                self._file.truncate(_page_offset(max_pgno + 1))
            except (OSError, ValueError) as exc:
                raise InvalidFileAccessError() from exc
        with self._counter_lock:
            self._page_numbers = max_pgno

    def close(self) -> None:
        """Write back every cached page and close the file."""
        super().close()
        self._file.close()


def _open_db_file(file_path: str, create: bool) -> BinaryIO:
    try:
        if create:
            fd = os.open(file_path, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o666)
        else:
            fd = os.open(file_path, os.O_RDWR)
    except FileExistsError as exc:
        raise FileExistsDatabaseError() from exc
    except FileNotFoundError as exc:
        raise FileNotExistsError() from exc
    except PermissionError as exc:
        raise FileCannotRWError() from exc
    return os.fdopen(fd, "r+b", buffering=0)


def _build(file: BinaryIO, memory: int) -> PageCache:
    try:
        return PageCache(file, memory // PAGE_SIZE)
    except BaseException:
        file.close()
        raise


def create_page_cache(path: str | os.PathLike[str], memory: int) -> PageCache:
    """Create ``<path>.db`` and return a cache of ``memory`` bytes over it."""
    return _build(_open_db_file(os.fspath(path) + DB_SUFFIX, create=True), memory)


def open_page_cache(path: str | os.PathLike[str], memory: int) -> PageCache:
    """Open an existing ``<path>.db`` with a cache of ``memory`` bytes."""
    return _build(_open_db_file(os.fspath(path) + DB_SUFFIX, create=False), memory)
"""A reference-counting cache that loads resources on demand."""

from __future__ import annotations

import abc
import threading
from typing import Generic, TypeVar

from burrowdb.errors import CacheFullError

T = TypeVar("T")


class AbstractCache(abc.ABC, Generic[T]):
    """Cache keyed by integers, with reference counting.

    Subclasses supply :meth:`get_for_cache`, which loads a resource, and
    :meth:`release_for_cache`, which writes it back when it is evicted.
    A ``max_resource`` of zero or less means the cache has no limit.
    """

    def __init__(self, max_resource: int) -> None:
        self._max_resource = max_resource
        self._cache: dict[int, T] = {}
        self._references: dict[int, int] = {}
        self._getting: set[int] = set()
        self._count = 0
        self._cond = threading.Condition()

    def __len__(self) -> int:
        with self._cond:
            return self._count

    def get(self, key: int) -> T:
        """Return the resource for ``key``, loading it if it is not cached."""
        with self._cond:
            self._cond.wait_for(lambda: key not in self._getting)

            if key in self._cache:
                self._references[key] += 1
                return self._cache[key]

            if self._max_resource > 0 and self._count >= self._max_resource:
                raise CacheFullError()

            self._getting.add(key)
            self._count += 1

        try:
            obj = self.get_for_cache(key)
        except BaseException:
            with self._cond:
                self._getting.discard(key)
                self._count -= 1
                self._cond.notify_all()
            raise

        with self._cond:
            self._getting.discard(key)
            self._cache[key] = obj
            self._references[key] = 1
            self._cond.notify_all()
        return obj

    def release(self, key: int) -> None:
        """Drop one reference to ``key``; evict it when none remain."""
        with self._cond:
            ref = self._references.get(key)
            if ref is None:
                return
            ref -= 1
            if ref == 0:
                obj = self._cache.pop(key)
                del self._references[key]
                self._count -= 1
                self.release_for_cache(obj)
            else:
                self._references[key] = ref

    def close(self) -> None:
        """Evict every cached resource."""
        with self._cond:
            for obj in self._cache.values():
                self.release_for_cache(obj)
            self._cache.clear()
            self._references.clear()
            self._count = 0

    @abc.abstractmethod
    def get_for_cache(self, key: int) -> T:
        """Load the resource for ``key`` from its backing store."""

    @abc.abstractmethod
    def release_for_cache(self, obj: T) -> None:
        """Write ``obj`` back to its backing store on eviction."""
"""Thread-safe map and list wrappers.

Iteration (`range`, `to_dict`, `to_list`, `clone`) always works over a
snapshot taken under the lock, so callbacks run lock-free and may mutate
the container without affecting the pass in progress.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, Tuple, TypeVar


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T")


class ConcurrentMap(Generic[K, V]):
    def __init__(self, items: Optional[Dict[K, V]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[K, V] = dict(items or {})

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def load(self, key: K) -> Tuple[Optional[V], bool]:
        with self._lock:
            if key in self._data:
                return self._data[key], True
            return None, False

    def store(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: K) -> None:
        with self._lock:
            self._data.pop(key, None)

    def load_or_store(self, key: K, value: V) -> Tuple[V, bool]:
        """Return (existing, True) or store `value` and return (value, False)."""
        with self._lock:
            if key in self._data:
                return self._data[key], True
            self._data[key] = value
            return value, False

    def load_and_delete(self, key: K) -> Tuple[Optional[V], bool]:
        with self._lock:
            if key in self._data:
                return self._data.pop(key), True
            return None, False

    def swap(self, key: K, value: V) -> Tuple[Optional[V], bool]:
        with self._lock:
            loaded = key in self._data
            previous = self._data.get(key)
            self._data[key] = value
            return previous, loaded

    def compare_and_swap(self, key: K, old: V, new: V) -> bool:
        with self._lock:
            if key in self._data and self._data[key] == old:
                self._data[key] = new
                return True
            return False

    def compare_and_delete(self, key: K, value: V) -> bool:
        with self._lock:
            if key in self._data and self._data[key] == value:
                del self._data[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def range(self, fn: Callable[[K, V], bool]) -> None:
        for key, value in self._snapshot():
            if not fn(key, value):
                break

    def to_dict(self) -> Dict[K, V]:
        return dict(self._snapshot())

    def clone(self) -> "ConcurrentMap[K, V]":
        return ConcurrentMap(self.to_dict())

    def _snapshot(self) -> List[Tuple[K, V]]:
        with self._lock:
            return list(self._data.items())


class ConcurrentList(Generic[T]):
    def __init__(self, items: Iterable[T] = ()) -> None:
        self._lock = threading.RLock()
        self._data: List[T] = list(items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _in_range(self, i: int) -> bool:
        return 0 <= i < len(self._data)

    def append(self, *items: T) -> "ConcurrentList[T]":
        if items:
            with self._lock:
                self._data.extend(items)
        return self

    def get(self, i: int) -> Tuple[Optional[T], bool]:
        with self._lock:
            if not self._in_range(i):
                return None, False
            return self._data[i], True

    def set(self, i: int, value: T) -> bool:
        with self._lock:
            if not self._in_range(i):
                return False
            self._data[i] = value
            return True

    def remove_at(self, i: int) -> Tuple[Optional[T], bool]:
        with self._lock:
            if not self._in_range(i):
                return None, False
            return self._data.pop(i), True

    def clear(self) -> None:
        with self._lock:
            self._data = []

    def range(self, fn: Callable[[int, T], bool]) -> None:
        for i, item in enumerate(self.to_list()):
            if not fn(i, item):
                break

    def to_list(self) -> List[T]:
        with self._lock:
            return list(self._data)

    def clone(self) -> "ConcurrentList[T]":
        return ConcurrentList(self.to_list())

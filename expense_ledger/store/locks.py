"""
Keyed reader/writer locks.

Every mutation of a key is serialized against every other
mutation and read of the same key; reads of a key may overlap
each other. Keys are plain hashable tuples such as
("day", date(2024, 5, 1)) or ("currency",).
"""

import threading
from contextlib import contextmanager, ExitStack
from typing import Hashable, Iterable, Iterator


class ReadWriteLock:
    """
    Many readers or one writer.

    Waiting writers block new readers, so a steady stream of
    reads cannot starve a mutation.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class KeyedLockRegistry:
    """
    One ReadWriteLock per key, alive only while someone uses it.

    A key's lock is created by its first user (holder or waiter)
    and dropped when the last one leaves, so the registry only
    ever holds the keys currently in play.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, ReadWriteLock] = {}
        self._users: dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> ReadWriteLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = ReadWriteLock()
                self._locks[key] = lock
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def read(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            with lock.read():
                yield
        finally:
            self._checkin(key)

    @contextmanager
    def write(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            with lock.write():
                yield
        finally:
            self._checkin(key)

    @contextmanager
    def read_many(self, keys: Iterable[Hashable]) -> Iterator[None]:
        """
        Hold read locks on several keys at once.

        Keys are acquired in sorted order so two callers locking
        overlapping ranges cannot deadlock.
        """
        with ExitStack() as stack:
            for key in sorted(set(keys), key=repr):
                stack.enter_context(self.read(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import threading
from itertools import count
from typing import Generic, TypeVar

from octopod_lib.core.error import AlreadyClosedError
from octopod_lib.core.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class HandleRegistry(Generic[T]):
    """
    Table of live connection state owned by one adaptor, keyed by handle id.

    Identifiers have the form `<prefix>-<n>` where `n` comes from a counter
    that only ever increases, so an identifier is never reused within one
    registry, not even after the handle it belonged to has been closed.

    All accesses are serialized by a single lock that is held only around
    the dictionary operation itself.

    Args:
        prefix (str): Prefix of the generated identifiers, usually the adaptor name.
        adaptor_name (str | None): Name of the adaptor to report in errors.
    """

    def __init__(self, prefix: str, adaptor_name: str | None = None):
        self._prefix = prefix
        self._adaptor_name = adaptor_name if adaptor_name is not None else prefix
        self._entries: dict[str, T] = {}
        self._counter = count()
        self._lock = threading.Lock()

    def nextId(self) -> str:
        """Allocate a fresh identifier without registering anything under it."""
        with self._lock:
            return f"{self._prefix}-{next(self._counter)}"

    def add(self, value: T, identifier: str | None = None) -> str:
        """
        Register `value` and return its identifier.

        Args:
            value (T): The state to register.
            identifier (str | None): An identifier previously obtained from `nextId`.
                A fresh one is allocated if not provided.

        Raises:
            ValueError: If `identifier` is already in use.
        """
        with self._lock:
            if identifier is None:
                identifier = f"{self._prefix}-{next(self._counter)}"
            elif identifier in self._entries:
                raise ValueError(f"Identifier '{identifier}' is already registered.")
            self._entries[identifier] = value

        logger.debug(f"Registered '{identifier}'.")
        return identifier

    def get(self, identifier: str) -> T:
        """
        Return the state registered under `identifier`.

        Raises:
            AlreadyClosedError: If nothing is registered under `identifier`.
        """
        with self._lock:
            try:
                return self._entries[identifier]
            except KeyError:
                pass

        raise AlreadyClosedError(
            f"Handle '{identifier}' is not open.", self._adaptor_name
        )

    def remove(self, identifier: str) -> T:
        """
        Unregister `identifier` and return its state.

        Raises:
            AlreadyClosedError: If nothing is registered under `identifier`.
        """
        with self._lock:
            value = self._entries.pop(identifier, None)

        if value is None:
            raise AlreadyClosedError(
                f"Handle '{identifier}' is not open.", self._adaptor_name
            )

        logger.debug(f"Unregistered '{identifier}'.")
        return value

    def removeAll(self) -> list[T]:
        """Unregister everything and return the removed states."""
        with self._lock:
            values = list(self._entries.values())
            self._entries.clear()
        return values

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

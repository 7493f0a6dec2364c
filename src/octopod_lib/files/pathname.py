# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Immutable hierarchical path names.

A `Pathname` is an ordered sequence of non-empty, separator-free elements
together with the separator used to render it. It performs no I/O and is
used to address entries uniformly on every filesystem backend.
"""

from collections.abc import Iterable, Iterator
from typing import Self

DEFAULT_SEPARATOR = "/"


class Pathname:
    """
    An immutable sequence of path elements.

    Strings passed to the constructor are split on the separator; empty
    fragments and `None` values are dropped, so `Pathname("/a//b/")` has the
    elements `("a", "b")`.

    Iterating over a Pathname yields its prefixes of increasing length:
    `list(Pathname("/a/b"))` is `[Pathname("/a"), Pathname("/a/b")]`.
    """

    __slots__ = ("_elements", "_separator")

    def __init__(self, *elements: str | None, separator: str = DEFAULT_SEPARATOR):
        if len(separator) != 1:
            raise ValueError(f"Separator must be a single character, not '{separator}'.")

        self._separator = separator
        self._elements: tuple[str, ...] = tuple(
            token
            for element in elements
            if element
            for token in element.split(separator)
            if token
        )

    @classmethod
    def _fromElements(cls, elements: Iterable[str], separator: str) -> Self:
        """
        Create a Pathname from elements that are already tokenized.
        """
        path = cls.__new__(cls)
        path._separator = separator
        path._elements = tuple(elements)
        return path

    @classmethod
    def join(cls, *paths: Self) -> Self:
        """
        Concatenate several Pathnames, keeping the separator of the first one.

        Elements of the other paths are split again on that separator.

        Returns an empty Pathname with the default separator if no paths are given.
        """
        if not paths:
            return cls()

        first = paths[0]
        elements: list[str] = []
        for path in paths:
            elements.extend(first._tokensOf(path))
        return cls._fromElements(elements, first._separator)

    @property
    def separator(self) -> str:
        return self._separator

    @property
    def elements(self) -> tuple[str, ...]:
        return self._elements

    def isEmpty(self) -> bool:
        return not self._elements

    def getNameCount(self) -> int:
        return len(self._elements)

    def getName(self, index: int) -> Self:
        """
        Return the element at `index` as a single-element Pathname.

        Raises:
            IndexError: If `index` is outside the path.
        """
        if index < 0 or index >= len(self._elements):
            raise IndexError(f"Index {index} not present in path '{self}'.")

        return self._fromElements((self._elements[index],), self._separator)

    def getFileName(self) -> Self:
        """
        Return the last element as a Pathname, or an empty Pathname if this path is empty.
        """
        return self._fromElements(self._elements[-1:], self._separator)

    def getFileNameAsString(self) -> str | None:
        return self._elements[-1] if self._elements else None

    def getParent(self) -> Self:
        """
        Return all elements but the last, or an empty Pathname if this path is empty.
        """
        return self._fromElements(self._elements[:-1], self._separator)

    def subpath(self, begin: int, end: int) -> Self:
        """
        Return the elements in the range [`begin`, `end`).

        Raises:
            IndexError: If the indices do not describe a non-empty range inside the path.
        """
        count = len(self._elements)
        if begin < 0 or begin >= count:
            raise IndexError(f"Begin index {begin} not present in path '{self}'.")
        if end < 0 or end > count:
            raise IndexError(f"End index {end} not present in path '{self}'.")
        if begin >= end:
            raise IndexError(f"Begin index {begin} is not smaller than end index {end}.")

        return self._fromElements(self._elements[begin:end], self._separator)

    def startsWith(self, other: Self | str) -> bool:
        prefix = self._tokensOf(self._coerce(other))
        if len(prefix) > len(self._elements):
            return False

        return self._elements[: len(prefix)] == prefix

    def endsWith(self, other: Self | str) -> bool:
        suffix = self._tokensOf(self._coerce(other))
        if len(suffix) > len(self._elements):
            return False

        return self._elements[len(self._elements) - len(suffix) :] == suffix

    def resolve(self, other: Self | str | None) -> Self:
        """
        Append `other` to this path.

        An empty operand on either side returns the other side unchanged;
        otherwise the result keeps the separator of this path and the elements
        of `other` are split again on it.
        """
        if other is None:
            return self
        other = self._coerce(other)

        if other.isEmpty():
            return self
        if self.isEmpty():
            return other

        return self._fromElements(
            self._elements + self._tokensOf(other), self._separator
        )

    def resolveSibling(self, other: Self | str | None) -> Self:
        """
        Resolve `other` against the parent of this path.
        """
        if self.isEmpty():
            return self if other is None else self._coerce(other)

        return self.getParent().resolve(other)

    def relativize(self, other: Self | str) -> Self:
        """
        Return the path that leads from this path to `other`.

        Both paths are normalized first. The result is the part of `other`
        beyond the elements shared with this path.

        Raises:
            ValueError: If this path is longer than `other` or the two paths
                        differ within the shared prefix.
        """
        other = self._coerce(other)

        base = self.normalize()._elements
        target = self._fromElements(self._tokensOf(other), self._separator)
        target = target.normalize()._elements

        if len(base) > len(target) or target[: len(base)] != base:
            raise ValueError(
                f"Cannot relativize '{other.getAbsolutePath()}' to '{self.getAbsolutePath()}'."
            )

        return self._fromElements(target[len(base) :], self._separator)

    def normalize(self) -> Self:
        """
        Remove `.` elements and `..` elements together with their predecessor.

        A `..` whose predecessor is itself `.` or `..` (or that has no predecessor)
        is preserved. Removals are repeated until nothing changes.
        """
        stack = list(self._elements)

        changed = True
        while changed:
            changed = False
            # walk right to left so that removals do not shift pending indices
            for i in range(len(stack) - 1, -1, -1):
                if i >= len(stack):
                    continue

                element = stack[i]
                if element == ".":
                    del stack[i]
                    changed = True
                elif element == ".." and i > 0 and stack[i - 1] not in (".", ".."):
                    del stack[i - 1 : i + 1]
                    changed = True

        return self._fromElements(stack, self._separator)

    def getRelativePath(self) -> str:
        return self._separator.join(self._elements)

    def getAbsolutePath(self) -> str:
        if not self._elements:
            return self._separator

        return "".join(self._separator + element for element in self._elements)

    def _coerce(self, other: Self | str) -> Self:
        """
        Convert a string operand into a Pathname using this path's separator.
        """
        if isinstance(other, Pathname):
            return other
        return type(self)(other, separator=self._separator)

    def _tokensOf(self, other: Self) -> tuple[str, ...]:
        """
        Return the elements of `other` split on this path's separator.
        """
        if other._separator == self._separator:
            return other._elements
        return type(self)(*other._elements, separator=self._separator)._elements

    def __iter__(self) -> Iterator[Self]:
        for i in range(1, len(self._elements) + 1):
            yield self._fromElements(self._elements[:i], self._separator)

    def __len__(self) -> int:
        return len(self._elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pathname):
            return NotImplemented
        return (
            self._separator == other._separator and self._elements == other._elements
        )

    def __hash__(self) -> int:
        return hash((self._elements, self._separator))

    def __str__(self) -> str:
        return self.getAbsolutePath()

    def __repr__(self) -> str:
        return f"Pathname(elements={list(self._elements)}, separator='{self._separator}')"

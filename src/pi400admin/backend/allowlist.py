"""Immutable allow-list of identifiers that requests may target."""

from __future__ import annotations

from typing import Iterable, Iterator


class AllowedServiceSet:
    """Read-only set of permitted identifiers.

    Built once at startup and shared by reference between request
    handlers. Backed by a frozenset, so concurrent reads need no lock.
    The same type guards the NAT uplink interface names.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str]) -> None:
        frozen = frozenset(names)
        if not frozen:
            raise ValueError("allow-list must not be empty")
        if any(not isinstance(n, str) or not n for n in frozen):
            raise ValueError("allow-list entries must be non-empty strings")
        self._names = frozen

    def contains(self, name: str) -> bool:
        return name in self._names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"AllowedServiceSet({sorted(self._names)!r})"

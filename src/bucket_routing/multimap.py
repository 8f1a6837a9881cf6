# bucket_routing/multimap.py
"""Insertion-ordered multimap used for every bucket -> many mapping."""

from __future__ import annotations

from typing import Dict, Generic, Iterable, Iterator, List, Tuple, TypeVar

__all__ = ["OrderedMultimap"]

K = TypeVar("K")
V = TypeVar("V")


class OrderedMultimap(Generic[K, V]):
    """
    Mapping from key to an ordered list of values.

    Keys iterate in first-insertion order and values in insertion order, so
    two maps built from the same sequence of puts iterate identically.
    Putting an empty collection does not create a key.
    """

    def __init__(self, items: Iterable[Tuple[K, V]] = ()):
        self._data: Dict[K, List[V]] = {}
        for key, value in items:
            self.put(key, value)

    def put(self, key: K, value: V) -> None:
        self._data.setdefault(key, []).append(value)

    def put_all(self, key: K, values: Iterable[V]) -> None:
        values = list(values)
        if values:
            self._data.setdefault(key, []).extend(values)

    def get(self, key: K) -> Tuple[V, ...]:
        return tuple(self._data.get(key, ()))

    def keys(self) -> List[K]:
        return list(self._data)

    def values(self) -> List[V]:
        return [v for vals in self._data.values() for v in vals]

    def items(self) -> Iterator[Tuple[K, Tuple[V, ...]]]:
        for key, vals in self._data.items():
            yield key, tuple(vals)

    def sorted_by_key(self) -> "OrderedMultimap[K, V]":
        """Return a copy whose keys iterate in ascending order."""
        out: OrderedMultimap[K, V] = OrderedMultimap()
        for key in sorted(self._data):  # type: ignore[type-var]
            out.put_all(key, self._data[key])
        return out

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedMultimap):
            return NotImplemented
        return list(self.items()) == list(other.items())

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {list(v)!r}" for k, v in self.items())
        return f"OrderedMultimap({{{body}}})"

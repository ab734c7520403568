"""
structshare.ancestors — Cycle detection for the merge walk.

While the engine is inside a container, that container sits in an
AncestorSet.  Reaching a container that is already in the set means the
source graph loops back on itself, and the walk answers with CYCLE
instead of descending again.

Membership is by IDENTITY, not equality: two equal dicts are two
different nodes.  A set is owned by exactly one merge call.
"""

from enum import Enum, auto
from typing import Any, Iterator


class _Escape(Enum):
    CYCLE = auto()

    def __repr__(self) -> str:
        return "CYCLE"


# Returned by a crawl step that ran into one of its own ancestors.
# Not a tree value: nothing in a caller's data can be this object.
CYCLE = _Escape.CYCLE


def is_escape(value: Any) -> bool:
    return value is CYCLE


class AncestorSet:
    """Containers on the active recursion path, keyed by id()."""

    __slots__ = ("_nodes",)

    def __init__(self) -> None:
        # id -> node; holding the node keeps its id from being reused
        self._nodes: dict[int, Any] = {}

    def add(self, node: Any) -> None:
        self._nodes[id(node)] = node

    def remove(self, node: Any) -> None:
        try:
            del self._nodes[id(node)]
        except KeyError:
            raise KeyError(f"not an active ancestor: {type(node).__name__} at {id(node):#x}") from None

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._nodes.values()))

    def __repr__(self) -> str:
        return f"AncestorSet(depth={len(self._nodes)})"

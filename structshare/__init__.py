"""
Structural-Sharing Merge
========================

Merge a new version of a tree into the old one, keeping every
unchanged subtree BY REFERENCE.

    old = {"server": {"port": 443}, "db": {"host": "db.internal"}}
    new = {"server": {"port": 8080}, "db": {"host": "db.internal"}}

    out = merge(old, new)
    out == new                    → True
    out["db"] is old["db"]        → True      (untouched, shared)
    out["server"] is old["server"] → False     (changed, cloned)
    old["server"]["port"]         → 443       (source never mutated)

Works on dicts, lists, dataclass instances and SimpleNamespaces, in any
nesting.  Self-referencing source graphs terminate.  A prefilter lets
the caller pin chosen paths to their source value.
"""

from structshare.ancestors import CYCLE, AncestorSet, is_escape
from structshare.core import (
    MergeOptions,
    WalkFilter,
    WalkOptions,
    merge,
    walk_tree,
)
from structshare.nodes import (
    MISSING,
    Kind,
    Shape,
    compatible,
    is_container,
    is_sequence,
    kind_of,
    same_value,
    shallow_clone,
)

__version__ = "0.1.0"
__all__ = [
    "merge", "walk_tree", "MergeOptions", "WalkOptions", "WalkFilter",
    "AncestorSet", "CYCLE", "is_escape",
    "MISSING", "Kind", "Shape", "kind_of", "is_container", "is_sequence", "compatible",
    "same_value", "shallow_clone",
]

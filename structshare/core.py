"""
structshare.core — Structural-sharing merge
============================================

§1  THE PROBLEM
───────────────

You hold a tree (`source`) and someone hands you a new version of it
(`revision`) — typically a freshly parsed document, or the output of
a function that rebuilt the whole thing from scratch.  The two are
EQUAL almost everywhere, but share no objects at all.

Replacing `source` with `revision` throws away everything that makes
immutable data cheap: `old.config.db is new.config.db` is False even
when nothing under `db` changed, so every consumer that caches on
identity has to re-run.

merge(source, revision) returns a tree that is deeply equal to
`revision`, but in which every unchanged subtree IS the corresponding
subtree of `source`.  Only the spine of nodes leading to an actual
change is new.


§2  THE POLICY
──────────────

At each node pair (s, r):

    (1)  s is r                          → s
    (2)  s or r is a leaf, or their
         kinds differ                    → r                (wholesale)
    (3)  for every key k of s:
             m = merge(s[k], r[k] or MISSING)
             m is s[k]                   → keep
             m is MISSING                → delete k
             otherwise                   → write m into k
    (4)  keys of r absent from s         → copied in by reference
    (5)  → s, or a clone of s if (3)/(4) wrote anything

The clone in (5) is shallow and made at most once, on the first write.
Nothing reachable from `source` is ever written to.

Since an unchanged child comes back as the SAME object, a parent with
only unchanged children comes back as itself too — so cloning
propagates upward exactly along the changed paths and nowhere else.


§3  CYCLES
──────────

Source nodes below the root on the current recursion path are kept in
an AncestorSet.  Meeting one again yields CYCLE instead of a value.  A node whose key
loop receives CYCLE stops processing keys and returns the revision's
value at THAT key as its own result — the whole node, not only the
key, falls back.  That is coarse, but it always terminates and it never
mutates anything.


§4  PREFILTER
─────────────

    prefilter(path, source_value, revision_value) -> bool

is consulted at every node below the root before anything else.  True
means "leave this subtree alone": the source subtree is returned
untouched, even if the revision differs there.  `path` is a tuple of
keys from the root, so it is never empty.

A pinned list element keeps its index.  A list cannot hold a hole, so
a deleted element that sits before a pinned one stays in place too;
only the deleted run at the end of the list is truncated.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar, Union

from .ancestors import CYCLE, AncestorSet, _Escape, is_escape
from .nodes import (
    MISSING,
    compatible, delete_child, get_child, has_child, is_container,
    is_sequence, node_keys, same_value, set_child, shallow_clone,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

WalkFilter = Callable[[tuple, Any, Any], bool]


# ═══════════════════════════════════════════════════════════════════
#  OPTIONS
# ═══════════════════════════════════════════════════════════════════

@dataclass
class WalkOptions:
    """
    Mutable traversal state for one walk.

    `path` is pushed before descending into a key and popped after.
    `ancestors` holds the source containers currently being visited.
    Both must belong to a single walk; never share them between calls.
    """
    ancestors: AncestorSet = field(default_factory=AncestorSet)
    path: list = field(default_factory=list)
    prefilter: Optional[WalkFilter] = None


@dataclass(frozen=True)
class MergeOptions:
    """Caller-facing configuration for merge()."""
    prefilter: Optional[WalkFilter] = None

    def walk_options(self) -> WalkOptions:
        """Fresh traversal state: empty path, empty ancestor set."""
        return WalkOptions(prefilter=self.prefilter)


def _format_path(path) -> str:
    return "/".join(str(p) for p in path) or "(root)"


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def merge(
    source: T,
    revision: T,
    options: Optional[MergeOptions] = None,
    *,
    prefilter: Optional[WalkFilter] = None,
) -> T:
    """
    Merge `revision` into `source` with maximal structural sharing.

    Returns a value deeply equal to `revision` in which every subtree
    that did not change is the very object found in `source`.  `source`
    is never modified.

    The prefilter may be passed either inside `options` or as a keyword,
    not both.

        >>> src = {"a": {"b": 1, "c": 2}, "d": {"e": 3}}
        >>> out = merge(src, {"a": {"b": 1, "c": 5}, "d": {"e": 3}})
        >>> out["d"] is src["d"], out["a"] is src["a"]
        (True, False)
    """
    if options is None:
        options = MergeOptions(prefilter=prefilter)
    elif prefilter is not None:
        if options.prefilter is not None:
            raise ValueError("prefilter given both in options and as a keyword")
        options = dataclasses.replace(options, prefilter=prefilter)

    if options.prefilter is not None and not callable(options.prefilter):
        raise TypeError(f"prefilter must be callable, not {type(options.prefilter).__name__}")

    # The root is walked directly: no prefilter, and it only becomes an
    # ancestor when the walk reaches it again below itself.
    return walk_tree(source, revision, options.walk_options())


def walk_tree(source: T, revision: T, options: WalkOptions) -> Union[T, _Escape]:
    """
    Merge one node pair, recursing into children through the crawl step.

    This is the per-node policy (§2) without the prefilter and ancestor
    bookkeeping for the node itself; callers that drive it directly own
    `options` and are responsible for registering `source` if they want
    cycles through it detected.
    """
    if same_value(source, revision):
        return source

    if not compatible(source, revision):
        return revision

    path = options.path
    source_keys = node_keys(source)
    revision_keys = node_keys(revision)

    node = source
    cloned = False
    deleted = []

    for key in source_keys:
        source_value = get_child(source, key)
        revision_value = get_child(revision, key)

        path.append(key)
        new_value = _crawl(source_value, revision_value, options)
        path.pop()

        if is_escape(new_value):
            logger.debug(
                "cycle under %s at key %r; node replaced by revision value",
                _format_path(path), key,
            )
            return revision_value

        if new_value is source_value:
            continue

        # Clone before the first write so the source stays untouched.
        if not cloned:
            node = shallow_clone(source)
            cloned = True

        if new_value is MISSING:
            deleted.append(key)
        else:
            set_child(node, key, new_value)

    if deleted and is_sequence(node):
        deleted = _trailing_run(deleted, len(source_keys))

    # Highest first: sequence indices shift on delete.
    for key in reversed(deleted):
        delete_child(node, key)

    if len(source_keys) - len(deleted) == len(revision_keys):
        return node

    if not cloned:
        node = shallow_clone(source)

    for key in revision_keys:
        if not has_child(node, key):
            set_child(node, key, get_child(revision, key))

    return node


def _trailing_run(indices: list, length: int) -> list:
    """
    The deleted indices that end the sequence, in ascending order.

    An index followed by a surviving element would leave a hole; its
    element stays where it is.
    """
    end = length
    for index in reversed(indices):
        if index != end - 1:
            break
        end = index
    return [index for index in indices if index >= end]


# ═══════════════════════════════════════════════════════════════════
#  CRAWL STEP (prefilter + cycle tracking)
# ═══════════════════════════════════════════════════════════════════

def _crawl(source: T, revision: T, options: WalkOptions) -> Union[T, _Escape]:
    """Visit one node: prefilter, cycle check, walk, deregister."""
    prefilter = options.prefilter
    if prefilter is not None and prefilter(tuple(options.path), source, revision):
        return source

    tracked = is_container(source)
    if tracked:
        if source in options.ancestors:
            # Membership belongs to the frame that added it.
            return CYCLE
        options.ancestors.add(source)

    try:
        return walk_tree(source, revision, options)
    finally:
        if tracked:
            options.ancestors.remove(source)

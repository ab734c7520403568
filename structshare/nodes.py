"""
structshare.nodes — What the merge engine may walk, and how.

The engine itself knows nothing about Python types.  Everything it needs
to ask about a value goes through this module:

    • Is this a container, and of which KIND?
    • What are its keys, and what lives at a key?
    • How do I make a one-level copy I'm allowed to write into?

Supported containers:
    dict (and subclasses)             → Shape.MAPPING
    list (and subclasses)             → Shape.SEQUENCE
    dataclass instances,
    types.SimpleNamespace             → Shape.RECORD

Everything else — str, int, None, tuples, sets, arbitrary objects — is
a LEAF.  Leaves are never descended into; a changed leaf replaces the
old one wholesale.
"""

import copy
import dataclasses
import types
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional


class _Missing(Enum):
    MISSING = auto()

    def __repr__(self) -> str:
        return "MISSING"


# Marker for "no such key".  Distinct from None, which is a real value.
MISSING = _Missing.MISSING

# Leaf types compared by value rather than by identity.
SCALAR_TYPES = (str, bytes, int, float, complex, bool, type(None))


# ═══════════════════════════════════════════════════════════════════
#  KIND TAGS
# ═══════════════════════════════════════════════════════════════════

class Shape(Enum):
    """How a container's keys are laid out."""
    MAPPING = auto()    # arbitrary hashable keys
    SEQUENCE = auto()   # dense integer indices 0..n-1
    RECORD = auto()     # attribute names


@dataclass(frozen=True)
class Kind:
    """
    The kind tag carried by every container.

    Two containers can be merged key-by-key only when their kinds are
    equal: same shape AND same concrete class.  A dict is never merged
    into an OrderedDict, nor one dataclass type into another.
    """
    shape: Shape
    cls: type


def _is_record(value: Any) -> bool:
    if isinstance(value, types.SimpleNamespace):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def kind_of(value: Any) -> Optional[Kind]:
    """Return the kind tag of a container, or None for a leaf."""
    if isinstance(value, dict):
        return Kind(Shape.MAPPING, type(value))
    if isinstance(value, list):
        return Kind(Shape.SEQUENCE, type(value))
    if _is_record(value):
        return Kind(Shape.RECORD, type(value))
    return None


def is_container(value: Any) -> bool:
    return kind_of(value) is not None


def is_sequence(value: Any) -> bool:
    kind = kind_of(value)
    return kind is not None and kind.shape is Shape.SEQUENCE


def compatible(a: Any, b: Any) -> bool:
    """True when both values are containers of the same kind."""
    kind_a = kind_of(a)
    return kind_a is not None and kind_a == kind_of(b)


def same_value(a: Any, b: Any) -> bool:
    """
    Reference equality, as the merge understands it.

    Containers and opaque objects are the same only if they are the
    same object.  Scalars are the same if they have the exact same type
    and compare equal, so an equal string or int from the revision never
    forces a clone.  (True and 1 are NOT the same value; neither are
    1 and 1.0.)
    """
    if a is b:
        return True
    cls = type(a)
    return cls is type(b) and cls in SCALAR_TYPES and a == b


# ═══════════════════════════════════════════════════════════════════
#  CLONING
# ═══════════════════════════════════════════════════════════════════

def shallow_clone(node: Any) -> Any:
    """
    One-level copy of a container: a new object of the same class with
    the same keys bound to the SAME children.
    """
    if kind_of(node) is None:
        raise TypeError(f"Cannot clone a leaf value: {type(node).__name__}")
    return copy.copy(node)


# ═══════════════════════════════════════════════════════════════════
#  KEY ACCESS
# ═══════════════════════════════════════════════════════════════════

def _shape(node: Any) -> Shape:
    kind = kind_of(node)
    if kind is None:
        raise TypeError(f"Not a container: {type(node).__name__}")
    return kind.shape


def node_keys(node: Any) -> list:
    """Keys of a container, in enumeration order."""
    shape = _shape(node)
    if shape is Shape.MAPPING:
        return list(node.keys())
    if shape is Shape.SEQUENCE:
        return list(range(len(node)))
    if dataclasses.is_dataclass(node):
        return [f.name for f in dataclasses.fields(node)]
    return list(vars(node).keys())


def has_child(node: Any, key: Any) -> bool:
    shape = _shape(node)
    if shape is Shape.MAPPING:
        return key in node
    if shape is Shape.SEQUENCE:
        return isinstance(key, int) and 0 <= key < len(node)
    # Own attributes only; methods and class attributes are not keys.
    if dataclasses.is_dataclass(node):
        return key in {f.name for f in dataclasses.fields(node)}
    return key in vars(node)


def get_child(node: Any, key: Any, default: Any = MISSING) -> Any:
    """Value at `key`, or `default` (MISSING) when the key is absent."""
    if not has_child(node, key):
        return default
    if _shape(node) is Shape.RECORD:
        return getattr(node, key)
    return node[key]


def set_child(node: Any, key: Any, value: Any) -> None:
    """
    Bind `key` to `value` in place.

    Sequences grow by one when `key` is exactly their length.  Records
    are written through object.__setattr__ so that the clone of a frozen
    dataclass can still be updated.
    """
    shape = _shape(node)
    if shape is Shape.MAPPING:
        node[key] = value
    elif shape is Shape.SEQUENCE:
        if key == len(node):
            node.append(value)
        else:
            node[key] = value
    else:
        object.__setattr__(node, key, value)


def delete_child(node: Any, key: Any) -> None:
    """Remove `key` from the container.  The key disappears; it is not set to None."""
    if _shape(node) is Shape.RECORD:
        object.__delattr__(node, key)
    else:
        del node[key]

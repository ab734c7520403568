"""
Property tests: the merge guarantees over randomly generated JSON-like trees.
"""

import copy
import os
import sys

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from structshare.core import merge, WalkOptions, walk_tree

_KEY = st.text(alphabet="abcdefgh", min_size=1, max_size=3)

_SCALAR = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-1000, max_value=1000),
    st.text(alphabet="xyz0123456789", max_size=6),
)

_TREE = st.recursive(
    _SCALAR,
    lambda child: st.one_of(
        st.lists(child, max_size=4),
        st.dictionaries(_KEY, child, max_size=4),
    ),
    max_leaves=25,
)


@given(tree=_TREE)
@settings(max_examples=150, deadline=None)
def test_merge_with_itself_is_identity(tree):
    assert merge(tree, tree) is tree


@given(tree=_TREE)
@settings(max_examples=150, deadline=None)
def test_merge_with_deep_copy_returns_source(tree):
    assert merge(tree, copy.deepcopy(tree)) is tree


@given(source=_TREE, revision=_TREE)
@settings(max_examples=200, deadline=None)
def test_result_equals_revision(source, revision):
    assert merge(source, revision) == revision


@given(source=_TREE, revision=_TREE)
@settings(max_examples=200, deadline=None)
def test_source_is_never_mutated(source, revision):
    before = copy.deepcopy(source)
    merge(source, revision)
    assert source == before


@given(source=_TREE, revision=_TREE)
@settings(max_examples=100, deadline=None)
def test_walk_state_is_restored(source, revision):
    options = WalkOptions()
    walk_tree(source, revision, options)
    assert options.path == []
    assert len(options.ancestors) == 0


@given(source=st.dictionaries(_KEY, _TREE, min_size=1, max_size=5))
@settings(max_examples=100, deadline=None)
def test_added_key_shares_every_existing_subtree(source):
    revision = copy.deepcopy(source)
    revision["zz-new"] = {"fresh": True}

    result = merge(source, revision)

    assert result is not source
    assert result == revision
    assert all(result[key] is source[key] for key in source)
    assert "zz-new" not in source

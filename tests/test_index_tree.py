from __future__ import annotations

import random

import pytest

from voter_profile.core.index_tree import IndexTree


def _assert_bst(node, low=None, high=None):
    if node is None:
        return
    if low is not None:
        assert node.key > low
    if high is not None:
        assert node.key < high
    _assert_bst(node.left, low, node.key)
    _assert_bst(node.right, node.key, high)


def _build(keys, make_record):
    tree = IndexTree()
    for i, k in enumerate(keys):
        tree.insert(k, make_record(locality_code=k, section=i))
    return tree


class TestEmptyTree:
    def test_introspection(self):
        tree = IndexTree()
        assert tree.is_empty()
        assert tree.size == 0
        assert tree.total_records == 0
        assert tree.height() == 0
        assert tree.in_order_keys() == []

    def test_lookup_is_not_found(self):
        tree = IndexTree()
        assert tree.lookup(1000) is None
        assert not tree.contains(1000)


class TestSingleRecord:
    def test_shape_and_lookup(self, make_record):
        record = make_record(locality_code=1000)
        tree = IndexTree()
        tree.insert(1000, record)

        assert tree.height() == 1
        assert tree.size == 1
        assert tree.in_order_keys() == [1000]
        assert tree.lookup(1000) == (record,)
        assert tree.lookup(999) is None
        assert 1000 in tree
        assert 1001 not in tree


class TestInsert:
    def test_duplicate_keys_share_a_node(self, make_record):
        tree = _build([5, 3, 5, 8, 5], make_record)
        assert tree.size == 3
        assert tree.total_records == 5
        assert [r.section for r in tree.lookup(5)] == [0, 2, 4]

    def test_bucket_keeps_insertion_order_past_growth(self, make_record):
        tree = IndexTree()
        records = [make_record(locality_code=7, section=i) for i in range(23)]
        for r in records:
            tree.insert(7, r)
        assert tree.lookup(7) == tuple(records)

    def test_records_are_not_copied(self, make_record):
        record = make_record()
        tree = IndexTree()
        tree.insert(record.locality_code, record)
        assert tree.lookup(record.locality_code)[0] is record

    @pytest.mark.parametrize(
        "keys",
        [
            [50, 30, 70, 20, 40, 60, 80],
            [1, 2, 3, 4, 5, 6],
            [6, 5, 4, 3, 2, 1],
            [4, 4, 2, 2, 6, 6, 1, 3, 5, 7, 4],
        ],
    )
    def test_bst_invariant(self, make_record, keys):
        tree = _build(keys, make_record)
        _assert_bst(tree._root)

    def test_bst_invariant_random(self, make_record):
        rng = random.Random(1234)
        keys = [rng.randint(0, 200) for _ in range(500)]
        tree = _build(keys, make_record)
        _assert_bst(tree._root)
        assert tree.size == len(set(keys))
        assert tree.total_records == 500


class TestHeight:
    def test_balanced_insertion_order(self, make_record):
        tree = _build([50, 30, 70, 20, 40, 60, 80], make_record)
        assert tree.height() == 3

    def test_sorted_insertion_degenerates(self, make_record):
        tree = _build(list(range(1, 11)), make_record)
        assert tree.height() == 10

    def test_descending_insertion_degenerates(self, make_record):
        tree = _build(list(range(10, 0, -1)), make_record)
        assert tree.height() == 10

    def test_deep_tree_does_not_hit_recursion_limit(self, make_record):
        record = make_record()
        tree = IndexTree()
        n = 2000
        for k in range(n):
            tree.insert(k, record)
        assert tree.height() == n
        assert tree.in_order_keys() == list(range(n))
        assert tree.contains(n - 1)


class TestInOrderKeys:
    def test_ascending_and_distinct(self, make_record):
        keys = [40, 10, 40, 90, 10, 55, 3]
        tree = _build(keys, make_record)
        assert tree.in_order_keys() == sorted(set(keys))

    def test_recomputed_each_call(self, make_record):
        tree = _build([2, 1], make_record)
        first = tree.in_order_keys()
        tree.insert(3, make_record(locality_code=3))
        assert first == [1, 2]
        assert tree.in_order_keys() == [1, 2, 3]


class TestInOrderFirstRecords:
    def test_empty_tree(self):
        assert IndexTree().in_order_first_records() == []

    def test_first_inserted_record_per_key(self, make_record):
        tree = IndexTree()
        first_40 = make_record(locality_code=40, locality_name="A")
        first_10 = make_record(locality_code=10, locality_name="B")
        tree.insert(40, first_40)
        tree.insert(10, first_10)
        tree.insert(40, make_record(locality_code=40, locality_name="C"))
        tree.insert(90, make_record(locality_code=90, locality_name="D"))

        pairs = tree.in_order_first_records()
        assert [k for k, _ in pairs] == [10, 40, 90]
        assert pairs[0][1] is first_10
        assert pairs[1][1] is first_40
        assert pairs[2][1].locality_name == "D"


def test_clear_resets_everything(make_record):
    tree = _build([3, 1, 2], make_record)
    tree.clear()
    assert tree.is_empty()
    assert tree.size == 0
    assert tree.total_records == 0
    assert tree.height() == 0
    assert tree.lookup(1) is None

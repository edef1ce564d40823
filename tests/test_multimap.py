import random

import pytest

from nstdkit.multimap import MultiMap


def test_iteration_is_sorted_by_key():
    m = MultiMap()
    for key, value in [(5, "e"), (1, "a"), (3, "c"), (2, "b")]:
        m.insert(key, value)
    assert list(m) == [(1, "a"), (2, "b"), (3, "c"), (5, "e")]
    assert len(m) == 4


def test_equal_keys_keep_insertion_order():
    m = MultiMap()
    m.insert(1, "first")
    m.insert(0, "zero")
    m.insert(1, "second")
    m.insert(1, "third")
    assert m.values(1) == ["first", "second", "third"]
    assert m.count(1) == 3
    assert m.find(1) == "first"


def test_find_missing_raises_and_contains():
    m = MultiMap()
    m.insert(10, "x")
    assert 10 in m
    assert 11 not in m
    assert m.count(11) == 0
    with pytest.raises(KeyError):
        m.find(11)


def test_remove_by_key_removes_one():
    m = MultiMap()
    m.insert(2, "a")
    m.insert(2, "b")
    assert m.remove(2) is True
    assert m.values(2) == ["b"]
    assert m.remove(2) is True
    assert m.remove(2) is False
    assert len(m) == 0


def test_remove_item_matches_value():
    m = MultiMap()
    first, second = object(), object()
    m.insert(7, first)
    m.insert(7, second)
    assert m.remove_item(7, second) is True
    assert m.values(7) == [first]
    assert m.remove_item(7, second) is False
    assert m.remove_item(8, first) is False


def test_front_back_and_pops():
    m = MultiMap()
    m.insert(3, "c")
    m.insert(1, "a")
    m.insert(2, "b")
    assert m.front() == "a"
    assert m.back() == "c"
    assert m.pop_front() == (1, "a")
    assert m.pop_back() == (3, "c")
    assert list(m) == [(2, "b")]


@pytest.mark.parametrize("method", ["front", "back", "pop_front", "pop_back"])
def test_empty_access_raises(method):
    with pytest.raises(IndexError):
        getattr(MultiMap(), method)()


def test_clear():
    m = MultiMap()
    for i in range(20):
        m.insert(i % 4, i)
    m.clear()
    assert len(m) == 0
    assert list(m) == []


def test_random_inserts_and_removals_stay_sorted():
    rng = random.Random(1234)
    m = MultiMap()
    reference = []
    for i in range(500):
        key = rng.randrange(50)
        m.insert(key, i)
        reference.append((key, i))
    for _ in range(200):
        key = rng.randrange(50)
        removed = m.remove(key)
        matching = [entry for entry in reference if entry[0] == key]
        assert removed == bool(matching)
        if matching:
            reference.remove(matching[0])
    expected = sorted(reference, key=lambda entry: entry[0])
    assert list(m) == expected
    assert len(m) == len(reference)


def test_timer_queue_pattern():
    m = MultiMap()
    m.insert(0, None)
    m.insert(100, "t1")
    m.insert(50, "t2")
    key, value = m.pop_front()
    assert (key, value) == (0, None)
    m.insert(300, None)
    assert [entry[1] for entry in m] == ["t2", "t1", None]
# tests/test_multimap.py
from bucket_routing.multimap import OrderedMultimap


def test_keys_and_values_keep_insertion_order():
    m = OrderedMultimap()
    m.put(3, "a")
    m.put(1, "b")
    m.put(3, "c")
    assert m.keys() == [3, 1]
    assert m.get(3) == ("a", "c")
    assert m.values() == ["a", "c", "b"]
    assert list(m.items()) == [(3, ("a", "c")), (1, ("b",))]


def test_put_all_empty_does_not_create_key():
    m = OrderedMultimap()
    m.put_all(0, [])
    assert 0 not in m
    assert not m
    assert m.get(0) == ()


def test_sorted_by_key_and_equality():
    m = OrderedMultimap([(2, "x"), (0, "y"), (2, "z")])
    s = m.sorted_by_key()
    assert s.keys() == [0, 2]
    assert s == OrderedMultimap([(0, "y"), (2, "x"), (2, "z")])
    assert s != m
    assert len(s) == 2

import pytest
from fetcher import Category
from store import UniqueWindow, WindowStore, format_average


@pytest.fixture
def store():
    return WindowStore(list(Category))


def test_initial_windows_are_empty(store):
    for category in Category:
        assert store.window(category) == []
        assert store.update(category, []) == ([], [])


def test_duplicate_is_kept_once(store):
    store.update(Category.PRIME, [7])
    prev, curr = store.update(Category.PRIME, [7])
    assert prev == [7]
    assert curr == [7]


def test_duplicates_inside_one_batch(store):
    _, curr = store.update(Category.FIBONACCI, [1, 1, 2, 3, 5, 8])
    assert curr == [1, 2, 3, 5, 8]


def test_capacity_keeps_last_ten_accepted(store):
    store.update(Category.RANDOM, list(range(1, 8)))
    _, curr = store.update(Category.RANDOM, list(range(8, 16)))
    assert len(curr) == 10
    assert curr == list(range(6, 16))


def test_eviction_order(store):
    store.update(Category.EVEN, list(range(1, 11)))
    prev, curr = store.update(Category.EVEN, [11])
    assert prev == list(range(1, 11))
    assert curr == list(range(2, 12))


def test_duplicate_does_not_evict(store):
    store.update(Category.EVEN, list(range(1, 11)))
    _, curr = store.update(Category.EVEN, [1, 10, 5])
    assert curr == list(range(1, 11))


def test_scenario_b_window(store):
    store.reset(Category.EVEN, [2, 4, 6, 8, 10, 12, 14, 16, 18, 20])
    prev, curr = store.update(Category.EVEN, [10, 12, 14, 16, 18, 20, 22, 24, 26, 28, 30])
    assert prev == [2, 4, 6, 8, 10, 12, 14, 16, 18, 20]
    assert curr == [12, 14, 16, 18, 20, 22, 24, 26, 28, 30]
    assert store.average(Category.EVEN) == "21.00"


def test_previous_is_a_copy(store):
    prev, curr = store.update(Category.PRIME, [2, 3])
    prev2, _ = store.update(Category.PRIME, [5])
    assert prev == []
    assert curr == [2, 3]
    assert prev2 == [2, 3]


def test_other_categories_untouched(store):
    store.update(Category.PRIME, [2, 3, 5])
    assert store.window(Category.EVEN) == []
    assert store.window(Category.FIBONACCI) == []


def test_lookup_by_key(store):
    store.update("p", [2])
    assert store.window(Category.PRIME) == [2]
    with pytest.raises(ValueError):
        store.window("x")


def test_format_average():
    assert format_average([]) == "0.00"
    assert format_average([2, 4, 6, 8]) == "5.00"
    assert format_average(range(12, 31, 2)) == "21.00"
    assert format_average([1, 2]) == "1.50"


def test_average_rounds_ties_up():
    assert format_average([1, 2, 3, 4, 5, 6, 7, 9]) == "4.63"
    assert format_average([0, 0, 0, 0, 0, 0, 0, 1]) == "0.13"
    assert format_average([-1, 0, 0, 0, 0, 0, 0, 0]) == "-0.13"
    assert format_average([1, 1, 1, 1, 1, 1, 1, 2]) == "1.13"


def test_store_average_matches_window(store):
    assert store.average(Category.RANDOM) == "0.00"
    store.update(Category.RANDOM, [1, 2, 3, 4, 5, 6, 7, 9])
    assert store.average(Category.RANDOM) == "4.63"


def test_window_limit():
    w = UniqueWindow(size=3)
    for x in [1, 2, 3, 4, 5]:
        w.add(x)
    assert len(w) == 3
    assert w.values() == [3, 4, 5]


def test_edge_cases():
    w = UniqueWindow(10)
    assert len(w) == 0
    assert w.add(100)
    assert not w.add(100)
    assert w.values() == [100]
    with pytest.raises(ValueError):
        UniqueWindow(0)
    with pytest.raises(ValueError):
        UniqueWindow(2.5)

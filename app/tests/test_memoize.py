from util.memoize import memoize


def test_cache_and_eviction():
    calls = []

    @memoize(maxsize=2)
    def square(n):
        calls.append(n)
        return n * n

    assert square(2) == 4
    assert square(2) == 4
    square(3)
    square(4)
    square(2)
    assert calls == [2, 3, 4, 2]

    square.cache_clear()
    square(3)
    assert calls[-1] == 3


def test_unhashable_arguments_skip_the_cache():
    calls = []

    @memoize()
    def total(items):
        calls.append(1)
        return sum(items)

    assert total([1, 2]) == 3
    assert total([1, 2]) == 3
    assert len(calls) == 2

import functools
from collections import OrderedDict
from collections.abc import Hashable
from typing import Callable, Literal, Optional, TypeVar

R = TypeVar("R")


def memoize(
    maxsize: Optional[int] = None, policy: Literal["lru", "fifo"] = "lru"
) -> Callable[[Callable[..., R]], Callable[..., R]]:
    """
    Cache results of a pure function keyed on its positional arguments.

    Args:
        maxsize: Entries kept before eviction, or None for no limit.
        policy: "lru" evicts the least recently used entry, "fifo" the oldest insert.

    Unhashable arguments bypass the cache.
    """
    if policy not in {"lru", "fifo"}:
        raise ValueError("policy must be 'lru' or 'fifo'")

    def decorator(func: Callable[..., R]) -> Callable[..., R]:
        cache: "OrderedDict[tuple, R]" = OrderedDict()

        @functools.wraps(func)
        def wrapper(*args: Hashable) -> R:
            if not all(isinstance(a, Hashable) for a in args):
                return func(*args)
            if args in cache:
                if policy == "lru":
                    cache.move_to_end(args)
                return cache[args]

            result = func(*args)
            cache[args] = result
            if maxsize is not None and len(cache) > maxsize:
                cache.popitem(last=False)
            return result

        wrapper.cache_clear = cache.clear  # type: ignore[attr-defined]
        return wrapper

    return decorator

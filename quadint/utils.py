from dataclasses import dataclass, field
from functools import wraps
from math import gcd
from threading import RLock
from typing import Any, Callable, Generator, Generic, Hashable, Optional, TypeVar

from quadint.errors import ArithmeticOverflowError, ValidationError

T = TypeVar("T")

INT32_MAX = 2 ** 31 - 1
INT64_MAX = 2 ** 63 - 1


def lowest_terms(numerator: int, denominator: int) -> tuple[int, int]:
    """
    Reduce numerator/denominator to lowest terms with a positive denominator.

    Raises:
        ZeroDivisionError: If the denominator is 0.

    Returns:
        tuple: The reduced (numerator, denominator).
    """
    if denominator == 0:
        raise ZeroDivisionError("denominator must be nonzero")

    g = gcd(numerator, denominator)
    if denominator < 0:
        g = -g

    return numerator // g, denominator // g


def check_int64(value: int, what: str) -> int:
    """
    Pass value through if it fits a signed 64-bit integer.

    Raises:
        ArithmeticOverflowError: If it does not.

    Returns:
        int: value, unchanged.
    """
    if -INT64_MAX - 1 <= value <= INT64_MAX:
        return value

    raise ArithmeticOverflowError(f"Overflow computing {what}: {value} does not fit in 64 bits")


def check_denominator(denom: int) -> int:
    """The only denominators a quadratic integer can have are ±1 and ±2."""
    if denom not in (-2, -1, 1, 2):
        raise ValidationError(f"Denominator {denom} is not valid, it must be -2, -1, 1 or 2")

    return denom


@dataclass
class _Replay(Generic[T]):
    gen: Optional[Generator[T, None, None]]
    items: list[T] = field(default_factory=list)
    lock: RLock = field(default_factory=RLock)
    error: Optional[BaseException] = None


def cache_generator(
    fn: Callable[..., Generator[T, None, None]],
) -> Callable[..., Generator[T, None, None]]:
    """
    Memoize a generator function per positional arguments.

    Every call hands out a new generator that first replays what the shared
    underlying generator already produced, then keeps advancing it (one item at
    a time, under a lock) and records each new item for later callers. A
    terminal exception is recorded too and raised again on every replay.

    The wrapped function must only be called with hashable positional arguments.

    Returns:
        Callable: The wrapped generator function.
    """
    replays: dict[Hashable, _Replay[T]] = {}
    replays_lock = RLock()

    @wraps(fn)
    def wrapper(*args: Any) -> Generator[T, None, None]:
        with replays_lock:
            replay = replays.get(args)
            if replay is None:
                replay = _Replay(gen=fn(*args))
                replays[args] = replay

        return _follow(replay)

    return wrapper


def _follow(replay: _Replay[T]) -> Generator[T, None, None]:
    i = 0
    while True:
        with replay.lock:
            if i < len(replay.items):
                item = replay.items[i]
            elif replay.gen is None:
                if replay.error is not None:
                    raise replay.error
                return
            else:
                try:
                    item = next(replay.gen)
                except StopIteration:
                    replay.gen = None
                    return
                except BaseException as e:
                    replay.gen = None
                    replay.error = e
                    raise
                replay.items.append(item)

        i += 1
        yield item


def is_squarefree(n: int) -> bool:
    """
    True iff no square of a prime divides n.

    ±1 are squarefree, 0 is not.
    """
    if n in (-1, 1):
        return True
    if n == 0 or n % 4 == 0:
        return False

    m = abs(n)
    root = 3
    while root * root <= m:
        if m % (root * root) == 0:
            return False
        root += 2

    return True

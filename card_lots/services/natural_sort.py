"""Human ordering for filenames: card2.jpg before card10.jpg."""

import re
from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple[tuple, str]:
    """
    Sort key that compares digit runs by value and text case-insensitively.

    The raw name is the last element so names that tie on the natural parts
    ("IMG1.jpg" / "img1.jpg", "a01" / "a1") still have one fixed order.

    Examples:
        "img2.jpg"  -> (((1, 'img'), (0, 2), (1, '.jpg')), 'img2.jpg')
        "img10.jpg" -> (((1, 'img'), (0, 10), (1, '.jpg')), 'img10.jpg')
    """
    parts = []
    # split() with a group puts the digit runs at odd indexes
    for index, chunk in enumerate(_DIGITS.split(name)):
        if not chunk:
            continue
        if index % 2:
            parts.append((0, int(chunk)))
        else:
            parts.append((1, chunk.casefold()))
    return tuple(parts), name


def compare_filenames(a: str, b: str) -> int:
    """Three-way comparison under natural ordering: -1, 0 or 1."""
    ka, kb = natural_key(a), natural_key(b)
    return (ka > kb) - (ka < kb)


def natural_sorted(items: Iterable[T], key: Callable[[T], str] = str) -> List[T]:
    """Return items ordered by the natural key of key(item)."""
    return sorted(items, key=lambda item: natural_key(key(item)))

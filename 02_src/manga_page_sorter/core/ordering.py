"""Apply a validated page order to caller-side items."""

from typing import Callable, List, Sequence, TypeVar

from .validator import check_bijection

T = TypeVar("T")


def apply_order(items: Sequence[T], order: Sequence[str], key: Callable[[T], str]) -> List[T]:
    """Rearrange items so that their keys follow ``order``.

    Never produces a partial reorder: if ``order`` is not a bijection over
    the item keys, the check raises and nothing is returned.

    Args:
        items: Objects to reorder (e.g. uploaded file records)
        order: Validated filename order
        key: Function returning an item's filename

    Returns:
        New list of items in reading order

    Raises:
        ValueError: If two items share the same key
        OrderValidationError: If order does not match the item keys
    """
    by_name = {}
    for item in items:
        name = key(item)
        if name in by_name:
            raise ValueError(f"Duplicate item key: {name!r}")
        by_name[name] = item

    check_bijection([key(item) for item in items], order)
    return [by_name[name] for name in order]

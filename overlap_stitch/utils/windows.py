"""
Lazy sliding-window and padding adapters used by the overlap scan
"""

from collections import deque
from enum import Enum
from itertools import chain, repeat
from typing import Any, Iterable, Iterator, Tuple

import numpy as np


class PaddingSide(Enum):
    START = 'start'
    END = 'end'


def sliding_windows(iterable: Iterable[Any], size: int) -> Iterator[Tuple[Any, ...]]:
    """
    Yield every run of `size` consecutive elements, in order.
    Nothing is yielded when the input is shorter than `size`.
    """
    if size < 1:
        raise ValueError(f"Window size must be at least 1, got {size}")

    window = deque(maxlen=size)
    for item in iterable:
        window.append(item)
        if len(window) == size:
            yield tuple(window)


def pad(
    iterable: Iterable[Any],
    item: Any,
    count: int,
    side: PaddingSide
) -> Iterator[Any]:
    """Emit `count` copies of `item` before or after the input"""
    padding = repeat(item, max(count, 0))
    if side is PaddingSide.START:
        return chain(padding, iterable)
    return chain(iterable, padding)


def pad_start(iterable: Iterable[Any], item: Any, count: int) -> Iterator[Any]:
    return pad(iterable, item, count, PaddingSide.START)


def pad_end(iterable: Iterable[Any], item: Any, count: int) -> Iterator[Any]:
    return pad(iterable, item, count, PaddingSide.END)


def pad_array(array: np.ndarray, count: int, side: PaddingSide) -> np.ndarray:
    """
    Zero-pad the last axis of `array`, same semantics as `pad` on each row.

    The padded column layout is drawn from the lazy adapters, with index
    `width` standing for the zero column, and gathered in one step.
    """
    if count <= 0:
        return array

    width = array.shape[-1]
    padder = pad_start if side is PaddingSide.START else pad_end
    columns = np.fromiter(padder(range(width), width, count), dtype=np.intp)

    zero = np.zeros(array.shape[:-1] + (1,), dtype=array.dtype)
    return np.concatenate([array, zero], axis=-1)[..., columns]


def shift_padding(
    first: np.ndarray,
    second: np.ndarray,
    shift: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pad two row sets so that `second` slides `shift` pixels right of `first`.

    Negative shifts front-pad the first rows and back-pad the second ones;
    non-negative shifts do the opposite. Both results are truncated to their
    common length.
    """
    amount = abs(shift)

    if shift < 0:
        first = pad_array(first, amount, PaddingSide.START)
        second = pad_array(second, amount, PaddingSide.END)
    else:
        first = pad_array(first, amount, PaddingSide.END)
        second = pad_array(second, amount, PaddingSide.START)

    length = min(first.shape[-1], second.shape[-1])
    return first[..., :length], second[..., :length]

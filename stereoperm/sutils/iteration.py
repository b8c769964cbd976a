'''Tools for simplifying iteration over collections of items'''

__author__ = 'Timotej Bernat'
__email__ = 'timotej.bernat@colorado.edu'

from typing import (
    Generator,
    Iterable,
    Sequence,
    TypeVar,
)
T = TypeVar('T')

from collections import deque
from itertools import combinations, islice


def sliding_window(items : Iterable[T], n : int=1) -> Generator[tuple[T, ...], None, None]:
    '''Generates sliding windows of width n over an iterable collection of items
    E.g. sliding_window('CENTER', 2) yields ('C', 'E'), ('E', 'N'), ('N', 'T'), ('T', 'E'), ('E', 'R')
    '''
    if n < 1:
        raise ValueError(f'Cannot generate sliding window of width {n}')

    iterator = iter(items)
    window = deque(islice(iterator, n - 1), maxlen=n)
    for item in iterator:
        window.append(item)
        yield tuple(window)

def cyclic_pairs(items : Sequence[T]) -> Generator[tuple[T, T], None, None]:
    '''Generates consecutive pairs of items, including the pair which wraps the last item back around to the first'''
    for i, item in enumerate(items):
        yield item, items[(i + 1) % len(items)]

def unordered_pairs(items : Iterable[T]) -> Generator[tuple[T, T], None, None]:
    '''Generates every pair of distinct positions in a collection, each pair exactly once'''
    yield from combinations(items, 2)

"""
Label sources for counter mutations.

``inc`` and ``set`` accept labels in whatever shape the call site has at
hand: nothing at all, a literal tuple of pairs, a mapping, a generator,
or a custom LabelIter. Every source is consumed exactly once.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Tuple, Union

LabelPair = Tuple[str, str]


class LabelIter(abc.ABC):
    """
    Produces zero or more (key, value) label pairs, one at a time.

    Subclasses implement ``next`` and return None once exhausted.
    Keys and values may be any string-like object; they are passed
    through ``str()`` before being stored.
    """

    @abc.abstractmethod
    def next(self) -> Optional[Tuple[Any, Any]]:
        pass

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        while True:
            pair = self.next()
            if pair is None:
                return
            yield pair


class NoLabels(LabelIter):
    """Use this when no labels are present."""

    def next(self) -> None:
        return None

    def __repr__(self) -> str:
        return "NO_LABELS"


NO_LABELS = NoLabels()

LabelSource = Union[LabelIter, Mapping, Iterable, None]


def iter_labels(labels: LabelSource) -> Iterator[LabelPair]:
    """
    Normalize any label source into (str, str) pairs.

    Args:
        labels: NO_LABELS, None, a mapping, a LabelIter, a single
            (key, value) tuple of strings, or an iterable of 2-item pairs

    Yields:
        (key, value) tuples of strings

    Raises:
        TypeError: If the source is not iterable or a pair is malformed
    """
    if labels is None or isinstance(labels, NoLabels):
        return
    if isinstance(labels, Mapping):
        pairs: Iterable = labels.items()
    elif isinstance(labels, (str, bytes)):
        raise TypeError("labels must be (key, value) pairs, not a string")
    elif (
        isinstance(labels, tuple)
        and len(labels) == 2
        and all(isinstance(item, str) for item in labels)
    ):
        pairs = [labels]
    else:
        pairs = labels

    for pair in pairs:
        if isinstance(pair, (str, bytes)):
            raise TypeError(f"label must be a (key, value) pair, got {pair!r}")
        try:
            key, value = pair
        except (TypeError, ValueError) as e:
            raise TypeError(f"label must be a (key, value) pair, got {pair!r}") from e
        yield str(key), str(value)

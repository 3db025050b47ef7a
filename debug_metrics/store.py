"""
Value Store and Rule Table.

The value store holds the current counters and labels; the rule table
says which of them to snapshot whenever a given key changes.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, Iterator, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class ValueStore:
    """
    Current process-wide debug state.

    Counters and labels share one key namespace. Neither is ever removed.
    """

    def __init__(self):
        self.counts: Dict[str, int] = {}
        self.labels: Dict[str, str] = {}

    def inc(self, key: str) -> int:
        """Add one to a counter, creating it at zero first if needed."""
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def set(self, key: str, value: int) -> int:
        """Assign an absolute counter value."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Counter '{key}' must be set to an int, got {value!r}")
        if value < 0:
            raise ValueError(f"Counter '{key}' cannot be set to negative value {value}")
        self.counts[key] = value
        return value

    def set_label(self, key: str, value: str) -> None:
        self.labels[key] = value

    def sorted_counts(self) -> Iterator[Tuple[str, int]]:
        return iter(sorted(self.counts.items()))

    def sorted_labels(self) -> Iterator[Tuple[str, str]]:
        return iter(sorted(self.labels.items()))


class RuleTable:
    """
    Recording rules: key -> set of regex patterns.

    Patterns are stored as given and compiled on evaluation, so an
    invalid pattern only fails once its key is mutated.
    """

    def __init__(self):
        self._rules: Dict[str, Set[str]] = {}

    def add(self, key: str, patterns: Iterable[str]) -> None:
        """Union ``patterns`` into the rule for ``key``."""
        self._rules.setdefault(key, set()).update(patterns)
        logger.debug("Recording rule for %s: %s", key, sorted(self._rules[key]))

    def get(self, key: str) -> Optional[Set[str]]:
        return self._rules.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._rules

    def __len__(self) -> int:
        return len(self._rules)


def match_snapshot(
    patterns: Iterable[str],
    store: ValueStore,
) -> Tuple[Dict[str, int], Dict[str, str]]:
    """
    Snapshot every tracked counter and label whose key matches a pattern.

    Patterns are scanned in sorted order, candidates in sorted key order,
    counters before labels. A key is captured at most once.

    Args:
        patterns: Regex patterns searched for in each candidate key
        store: The value store to read from

    Returns:
        (dependencies, labels) dictionaries

    Raises:
        re.error: If a pattern is not a valid regular expression
    """
    dependencies: Dict[str, int] = {}
    labels: Dict[str, str] = {}

    for pattern in sorted(patterns):
        regex = re.compile(pattern)
        for key, count in store.sorted_counts():
            if key not in dependencies and regex.search(key):
                dependencies[key] = count
        for key, value in store.sorted_labels():
            if key not in labels and regex.search(key):
                labels[key] = value

    return dependencies, labels

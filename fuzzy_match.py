#!/usr/bin/env python3
"""
Fuzzy field matching for usage queries.

The usage API response has no fixed schema, so queries like "five", "5h" or
"weekly" are resolved against the flattened response instead of a model:

    {"five_hour": {"utilization": 75.5}}  ->  five_hour_utilization = 75.5

Scoring tiers (higher wins):
- 1000: exact match once underscores are ignored
- 500 + len(query) (+100 when it ends the path): query is a substring
- 10 per character (+5 at the very start): query is a subsequence
- 0: no match
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List

from usage_errors import NoMatchError

# Module-level logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatEntry:
    """One scalar leaf of a usage document."""
    path: str   # e.g. "five_hour_utilization"
    key: str    # last path segment, e.g. "utilization"
    value: Any


_NUMBER_WORDS = {
    0: "zero", 1: "one", 2: "two", 3: "three", 4: "four",
    5: "five", 6: "six", 7: "seven", 8: "eight", 9: "nine",
    10: "ten", 11: "eleven", 12: "twelve", 13: "thirteen",
    14: "fourteen", 15: "fifteen", 16: "sixteen", 17: "seventeen",
    18: "eighteen", 19: "nineteen", 20: "twenty", 24: "twentyfour",
    30: "thirty", 48: "fortyeight", 72: "seventytwo",
}

# Longest numerals first so "24" is replaced before "2" and "4"
NUMBER_WORDS = tuple(sorted(
    ((str(number), word) for number, word in _NUMBER_WORDS.items()),
    key=lambda pair: -len(pair[0]),
))

EXACT_SCORE = 1000
SUBSTRING_SCORE = 500
SUFFIX_BONUS = 100
CHAR_SCORE = 10
START_BONUS = 5


def expand_numbers(text: str) -> str:
    """Replace arabic numerals with english words ("5h" -> "fiveh")."""
    for numeral, word in NUMBER_WORDS:
        text = text.replace(numeral, word)
    return text


def score(query: str, target: str) -> int:
    """
    Score how well a lower-cased query matches a lower-cased path.

    Args:
        query: User query, already lower-cased
        target: Flattened path, already lower-cased

    Returns:
        Non-negative score, 0 meaning no match
    """
    if not query:
        return 0

    normalized_query = expand_numbers(query).replace("_", "")
    normalized_target = target.replace("_", "")

    if normalized_target == normalized_query:
        return EXACT_SCORE
    # Spelling out the full path, digits and all, is exact too
    if normalized_target == query.replace("_", ""):
        return EXACT_SCORE

    if normalized_query in normalized_target:
        result = SUBSTRING_SCORE + len(normalized_query)
        if normalized_target.endswith(normalized_query):
            result += SUFFIX_BONUS
        return result

    # Every query character must appear in order
    result = 0
    cursor = 0
    for char in normalized_query:
        while cursor < len(normalized_target):
            if normalized_target[cursor] == char:
                result += CHAR_SCORE
                if cursor == 0:
                    result += START_BONUS
                cursor += 1
                break
            cursor += 1
        else:
            return 0

    return result


def flatten_data(data: Mapping, prefix: str = "") -> List[FlatEntry]:
    """
    Flatten a nested usage document into scalar leaves.

    Nested keys are joined with "_". Mapping elements of a list get a
    1-based index segment ("limits_2_name"); other list elements and null
    values are skipped.
    """
    entries: List[FlatEntry] = []

    for key, value in data.items():
        path = f"{prefix}_{key}" if prefix else str(key)

        if isinstance(value, Mapping):
            entries.extend(flatten_data(value, path))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value, start=1):
                if isinstance(item, Mapping):
                    entries.extend(flatten_data(item, f"{path}_{index}"))
        elif value is None:
            continue
        else:
            entries.append(FlatEntry(path=path, key=str(key), value=value))

    return entries


def find_best_match(entries: List[FlatEntry], query: str) -> FlatEntry:
    """
    Find the entry whose path best matches the query.

    Ties go to the entry seen first.

    Raises:
        NoMatchError: No entry scored above zero
    """
    query_lower = query.lower()
    best_match = None
    best_score = 0

    for entry in entries:
        entry_score = score(query_lower, entry.path.lower())
        if entry_score > best_score:
            best_score = entry_score
            best_match = entry

    if best_match is None:
        raise NoMatchError(query)

    logger.debug(f"Query {query!r} matched {best_match.path} (score {best_score})")
    return best_match


def match_query(data: Mapping, query: str) -> FlatEntry:
    """Flatten a usage document and return the best match for a query."""
    return find_best_match(flatten_data(data), query)

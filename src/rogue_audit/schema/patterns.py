"""
Table name patterns for clean selection.

A pattern is a glob where ``*`` matches any run of characters (including
none) and every other character is literal. Matching is case-insensitive
and anchored to the whole table name. Patterns are split on ``*`` and the
literal segments located in order; no regular expressions are involved,
so characters such as ``.``, ``?`` or ``[`` are never special.
"""

from typing import Iterable, List, Optional

WILDCARD = "*"


def parse_csv(value: Optional[str]) -> List[str]:
    """Split a comma separated option value into trimmed, non-empty items."""
    if value is None:
        return []
    value = value.strip()
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def match_pattern(table: str, pattern: str) -> bool:
    """Check whether a single pattern matches the whole table name."""
    text = table.lower()
    segments = pattern.lower().split(WILDCARD)

    if len(segments) == 1:
        return text == segments[0]

    head, tail = segments[0], segments[-1]
    if len(text) < len(head) + len(tail):
        return False
    if not text.startswith(head) or not text.endswith(tail):
        return False

    # Leftmost placement of each middle segment leaves the most room for the rest
    pos = len(head)
    end = len(text) - len(tail)
    for segment in segments[1:-1]:
        if not segment:
            continue
        index = text.find(segment, pos, end)
        if index < 0:
            return False
        pos = index + len(segment)

    return True


def matches(table: str, patterns: Iterable[str]) -> bool:
    """Check whether any of the patterns matches the table name."""
    return any(match_pattern(table, pattern) for pattern in patterns)

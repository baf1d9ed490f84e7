"""Edit distance and "did you mean" helpers for validation messages."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

__all__ = ["distance", "suggest", "format_candidate_list", "format_known", "MAX_LISTED"]

# Candidate lists longer than this are omitted from messages.
MAX_LISTED = 20


def _to_str(x: Any) -> str:
    return x if isinstance(x, str) else str(x)


def distance(a: str, b: str) -> int:
    """Levenshtein distance (insert, delete, substitute each cost 1).

    Memoized over index pairs: ``table[i][j]`` holds the distance between the
    suffixes ``a[i:]`` and ``b[j:]``, filled from the ends of both strings.
    """
    la, lb = len(a), len(b)
    if la == 0:
        return lb
    if lb == 0:
        return la
    table: List[List[int]] = [[0] * (lb + 1) for _ in range(la + 1)]
    for i in range(la + 1):
        table[i][lb] = la - i
    for j in range(lb + 1):
        table[la][j] = lb - j
    for i in range(la - 1, -1, -1):
        row, below = table[i], table[i + 1]
        ca = a[i]
        for j in range(lb - 1, -1, -1):
            if ca == b[j]:
                row[j] = below[j + 1]
            else:
                row[j] = 1 + min(row[j + 1], below[j], below[j + 1])
    return table[0][0]


def suggest(candidate: Any, pool: Iterable[Any]) -> Any:
    """Return the member of `pool` closest to `candidate`.

    Ties go to the lexicographically smallest member. An empty pool returns
    `candidate` unchanged; callers must word that case themselves.
    """
    members = list(pool)
    if not members:
        return candidate
    target = _to_str(candidate)
    cache: Dict[str, int] = {}
    best: Optional[Any] = None
    best_key = None
    for member in sorted(members, key=_to_str):
        s = _to_str(member)
        if s not in cache:
            cache[s] = distance(target, s)
        key = (cache[s], s)
        if best_key is None or key < best_key:
            best, best_key = member, key
    return best


def format_candidate_list(pool: Iterable[Any]) -> str:
    """Sorted, de-duplicated, comma-joined candidates.

    Returns "(empty)" for an empty pool and "" when there are more than
    MAX_LISTED candidates.
    """
    members = list(pool)
    if len(members) > MAX_LISTED:
        return ""
    if not members:
        return "(empty)"
    return ", ".join(sorted({_to_str(m) for m in members}))


def format_known(prefix: str, pool: Iterable[Any]) -> str:
    listed = format_candidate_list(pool)
    if not listed:
        return ""
    return f"{prefix} are: {listed}"

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def fuzzy_score(query: str, candidate: str) -> int | None:
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def substring_index(query: str, candidate: str) -> int | None:
    if not query:
        return 0
    idx = candidate.casefold().find(query.casefold())
    if idx < 0:
        return None
    return idx


def rank(query: str, items: Sequence[T], label: Callable[[T], str], limit: int | None = None) -> list[T]:
    """Return matching ``items`` best-first.

    Substring matches come first, ordered by match position then label length.
    Remaining subsequence matches follow by descending score. Ties keep input
    order, and an empty query returns every item unchanged.
    """
    if not query.strip():
        out = list(items)
        return out if limit is None else out[:limit]

    substring_hits: list[tuple[int, int, int, int, T]] = []
    fuzzy_hits: list[tuple[int, int, T]] = []
    for position, item in enumerate(items):
        text = label(item)
        score = fuzzy_score(query, text)
        if score is None:
            continue
        match_idx = substring_index(query, text)
        if match_idx is not None:
            substring_hits.append((match_idx, len(text), -score, position, item))
        else:
            fuzzy_hits.append((-score, position, item))

    substring_hits.sort(key=lambda hit: hit[:4])
    fuzzy_hits.sort(key=lambda hit: hit[:2])
    out = [hit[-1] for hit in substring_hits] + [hit[-1] for hit in fuzzy_hits]
    return out if limit is None else out[:limit]

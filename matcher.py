from __future__ import annotations
from typing import Any, Iterable, List

RAW_MATCH_LIMIT = 20

def search_titles(query: Any, titles: Iterable[Any], limit: int = RAW_MATCH_LIMIT) -> List[str]:
    """
    Case-insensitive literal substring search over titles.

    The first `limit` raw matches (in corpus order) are collected, then
    duplicates are dropped keeping first-seen order. The query is plain text,
    so characters like "(" or "+" only ever match themselves.
    """
    if not isinstance(query, str):
        return []
    needle = query.strip().casefold()
    if not needle:
        return []

    raw: List[str] = []
    for title in titles:
        if len(raw) >= limit:
            break
        if isinstance(title, str) and needle in title.casefold():
            raw.append(title)

    # dict keeps insertion order
    return list(dict.fromkeys(raw))

from __future__ import annotations
from typing import Any, Iterable, Mapping

def rank_leaderboard(entries: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """
    Order per-member totals by ``total_points`` descending and number them 1..n.

    Ranking is sequential: tied members keep their input order (stable sort)
    and still get distinct consecutive ranks, so two members tied for first
    are ranked 1 and 2. Any ``rank`` already on the records is overwritten,
    which makes re-ranking a ranked list a no-op. Input records are copied,
    never mutated.
    """
    rows = sorted(entries, key=lambda e: -int(e["total_points"]))
    return [{**r, "rank": idx} for idx, r in enumerate(rows, start=1)]

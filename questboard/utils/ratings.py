"""
Game rating aggregation.

A game's combined rating blends two populations: published reviews and
quest-log quick ratings (both 1–5). The blend is weighted by the size of
each population and rounded once, to one decimal, at the very end.
"""
import math
from typing import Optional

from sqlalchemy import func

from questboard.extensions import db


def round_half_up(value: float, digits: int = 1) -> float:
    """Round to ``digits`` places with halves going up (2.25 -> 2.3), unlike ``round``."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def blend(review_sum: float, review_count: int, quick_sum: float, quick_count: int) -> Optional[float]:
    total = review_count + quick_count
    if total == 0:
        return None
    review_avg = review_sum / review_count if review_count else 0
    quick_avg = quick_sum / quick_count if quick_count else 0
    blended = (review_avg * review_count + quick_avg * quick_count) / total
    return round_half_up(blended, 1)


def _review_totals(game_ids=None) -> dict:
    from questboard.models import Review

    q = (db.session.query(Review.game_id, func.sum(Review.rating), func.count(Review.id))
         .filter(Review.published.is_(True)))
    if game_ids is not None:
        q = q.filter(Review.game_id.in_(list(game_ids)))
    return {gid: (total or 0, n) for gid, total, n in q.group_by(Review.game_id).all()}


def _quick_totals(game_ids=None) -> dict:
    from questboard.models import QuestLog

    q = (db.session.query(QuestLog.game_id, func.sum(QuestLog.quick_rating), func.count(QuestLog.id))
         .filter(QuestLog.quick_rating.isnot(None)))
    if game_ids is not None:
        q = q.filter(QuestLog.game_id.in_(list(game_ids)))
    return {gid: (total or 0, n) for gid, total, n in q.group_by(QuestLog.game_id).all()}


def combined_rating(game_id: str) -> dict:
    review_sum, review_count = _review_totals([game_id]).get(game_id, (0, 0))
    quick_sum, quick_count = _quick_totals([game_id]).get(game_id, (0, 0))
    total = review_count + quick_count
    if total == 0:
        return {"average_rating": None, "total_ratings": 0,
                "review_count": 0, "quick_rating_count": 0}
    return {
        "average_rating":     blend(review_sum, review_count, quick_sum, quick_count),
        "total_ratings":      total,
        "review_count":       review_count,
        "quick_rating_count": quick_count,
    }


def review_average(game_id: str) -> dict:
    """Plain, unrounded average of published reviews only."""
    review_sum, review_count = _review_totals([game_id]).get(game_id, (0, 0))
    if not review_count:
        return {"average_rating": 0, "review_count": 0}
    return {"average_rating": review_sum / review_count, "review_count": review_count}


def games_with_ratings(cursor: Optional[str] = None, limit: int = 20, order: str = "recent") -> dict:
    """Games with at least one rating of either kind, cursor-paginated by game id.

    ``order="recent"`` sorts by the game record's last update, ``"top"`` by
    combined rating.
    """
    from questboard.models import Game
    from questboard.utils.feed_service import paginate

    reviews = _review_totals()
    quick = _quick_totals()
    game_ids = set(reviews) | set(quick)
    if not game_ids:
        return {"games": [], "next_cursor": None}

    rows = []
    for game in Game.query.filter(Game.id.in_(list(game_ids))).all():
        r_sum, r_n = reviews.get(game.id, (0, 0))
        q_sum, q_n = quick.get(game.id, (0, 0))
        data = game.to_dict()
        data["average_rating"] = blend(r_sum, r_n, q_sum, q_n)
        data["rating_count"] = r_n + q_n
        data["_sort"] = game.updated_at or game.created_at
        rows.append(data)

    if order == "top":
        rows.sort(key=lambda g: (g["average_rating"], g["rating_count"]), reverse=True)
    else:
        rows.sort(key=lambda g: g["_sort"], reverse=True)

    page, next_cursor = paginate(rows, cursor, limit, key=lambda g: g["id"])
    for g in page:
        g.pop("_sort")
    return {"games": page, "next_cursor": next_cursor}

# search_history.py
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from jobboard.models.searches import RecentSearch
from jobboard.utils.clock import utc_now


RECENT_SEARCHES_KEPT = 20
RECENT_SEARCHES_SHOWN = 10
RECENT_SEARCH_DAYS = 30


def record_recent_search(
    db: Session,
    user_id: int,
    *,
    query: str,
    location: str,
    filters: Optional[dict[str, Any]] = None,
) -> RecentSearch:
    """Store a search at the top of the user's history.

    An earlier entry with the same query and location is replaced, and only the
    newest RECENT_SEARCHES_KEPT entries survive.
    """
    query = (query or "").strip()
    location = (location or "").strip()
    db.query(RecentSearch).filter(
        RecentSearch.user_id == user_id,
        RecentSearch.query == query,
        RecentSearch.location == location,
    ).delete(synchronize_session=False)

    entry = RecentSearch(user_id=user_id, query=query, location=location, filters=filters or None)
    db.add(entry)
    db.flush()

    stale_ids = [
        row.id
        for row in db.query(RecentSearch.id)
        .filter(RecentSearch.user_id == user_id)
        .order_by(RecentSearch.created_at.desc(), RecentSearch.id.desc())
        .offset(RECENT_SEARCHES_KEPT)
        .all()
    ]
    if stale_ids:
        db.query(RecentSearch).filter(RecentSearch.id.in_(stale_ids)).delete(synchronize_session=False)
    return entry


def recent_searches(db: Session, user_id: int, *, now: Optional[datetime] = None) -> list[RecentSearch]:
    since = (now or utc_now()) - timedelta(days=RECENT_SEARCH_DAYS)
    return (
        db.query(RecentSearch)
        .filter(RecentSearch.user_id == user_id, RecentSearch.created_at >= since)
        .order_by(RecentSearch.created_at.desc(), RecentSearch.id.desc())
        .limit(RECENT_SEARCHES_SHOWN)
        .all()
    )

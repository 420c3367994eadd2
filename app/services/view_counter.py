"""Memorial view counting and scan statistics."""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)


def log_view(memorial_id, repository=None, now=None) -> None:
    """Count one view of a memorial page.

    Every call counts. Failures are logged and swallowed: a broken counter must
    never stop the page from rendering.
    """
    from app.services.memorial_repository import MemorialRepository

    repository = repository or MemorialRepository()
    try:
        repository.increment_view(memorial_id, now=now)
    except Exception as e:
        logger.warning(f"Failed to log view for memorial {memorial_id}: {e}")
        try:
            repository.session.rollback()
        except Exception:
            logger.exception("Rollback after failed view logging also failed")


def _week_start(value: datetime) -> str:
    day = value.date()
    return (day - timedelta(days=day.weekday())).isoformat()


def weekly_view_counts(timestamps: Iterable[datetime]) -> List[Tuple[str, int]]:
    """Group view timestamps by week (weeks start on Monday).

    Returns ``[(week_start_iso, count), ...]`` sorted by week.
    """
    counts = Counter(_week_start(ts) for ts in timestamps if ts is not None)
    return sorted(counts.items())

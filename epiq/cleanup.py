"""
Cleanup module for removing expired product cache entries.

Open Beauty Facts data is only trusted for a limited number of days
(default: 30). Reads already ignore older rows; this removes them.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError

from .database import ProductCache, get_session
from .logger import get_logger

logger = get_logger()


def purge_stale_product_cache(db_path: Path, days: int = 30) -> Tuple[int, int]:
    """
    Remove product cache entries older than the specified number of days.

    Args:
        db_path: Path to the SQLite database
        days: Number of days to keep cached products (default: 30)

    Returns:
        Tuple of (entries_before, entries_after)
    """
    if not db_path.exists():
        logger.warning("Cleanup skipped, database not found", path=str(db_path))
        return (0, 0)

    cutoff = datetime.now() - timedelta(days=days)
    session = get_session(db_path)
    try:
        before = session.query(ProductCache).count()
        session.query(ProductCache).filter(ProductCache.cached_at < cutoff).delete()
        session.commit()
        after = session.query(ProductCache).count()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Cleanup failed: {e}", days=days)
        return (0, 0)
    finally:
        session.close()

    logger.info(
        f"Cleanup complete: {before - after} removed, {after} remaining",
        entries_before=before,
        entries_after=after,
        days_threshold=days,
    )
    return (before, after)

import logging

from marketplace.tasks.celery_app import celery_app
from marketplace.database import SessionLocal
from marketplace.services.stats_service import StatsService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="refresh_catalog_stats", max_retries=3)
def refresh_catalog_stats(self) -> dict:
    """
    Background task to recompute the catalog reports and warm the cache.

    Runs periodically from celery beat and on demand from
    ``POST /api/v1/stats/refresh``.

    Returns:
        Dictionary with the number of rows per report
    """
    logger.info("Refreshing catalog statistics")

    db = SessionLocal()

    try:
        counts = StatsService(db).refresh_cache()
        return {"status": "success", "reports": counts}

    except Exception as e:
        logger.error(f"Error refreshing catalog statistics: {e}")
        raise self.retry(exc=e, countdown=60)

    finally:
        db.close()

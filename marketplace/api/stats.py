from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import datetime

from marketplace.database import get_db
from marketplace.services.stats_service import StatsService
from marketplace.schemas.stats import (
    CategoryAveragePrice,
    CategoryStats,
    ConditionStats,
    SalesReport,
)
from marketplace.tasks.stats_tasks import refresh_catalog_stats

router = APIRouter(prefix="/stats", tags=["Statistics"])


@router.get(
    "/categories",
    response_model=list[CategoryStats],
    summary="Catalog statistics by category",
    description="Count and average price of available products per category."
)
def stats_by_category(db: Session = Depends(get_db)):
    return StatsService(db).stats_by_category()


@router.get(
    "/conditions",
    response_model=list[ConditionStats],
    summary="Catalog statistics by condition"
)
def stats_by_condition(db: Session = Depends(get_db)):
    return StatsService(db).stats_by_condition()


@router.get(
    "/average-price",
    response_model=list[CategoryAveragePrice],
    summary="Average price per category name"
)
def avg_price_by_category(db: Session = Depends(get_db)):
    return StatsService(db).avg_price_by_category()


@router.get(
    "/sales",
    response_model=SalesReport,
    summary="Sales total",
    description="Sum of delivered order totals created between `start` and `end` (inclusive)."
)
def sales_between(
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: Session = Depends(get_db)
):
    total = StatsService(db).sales_between(start, end)
    return SalesReport(start=start, end=end, total_sales=total)


@router.post(
    "/refresh",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Refresh cached statistics",
    description="Queue a background recomputation of the catalog reports."
)
def refresh_stats():
    task = refresh_catalog_stats.delay()
    return {"task_id": task.id, "status": "queued"}

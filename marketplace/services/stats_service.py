from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from decimal import Decimal
from typing import Callable, List
import logging

from marketplace.models.category import Category
from marketplace.models.order import Order, OrderStatus
from marketplace.models.product import Product, ProductCondition
from marketplace.utils.cache import cache_service
from marketplace.utils.money import to_money

logger = logging.getLogger(__name__)


def _restore_row(row: dict) -> dict:
    """Undo the JSON flattening of a cached report row (prices come back as strings)."""
    if "average_price" in row:
        row = {**row, "average_price": to_money(row["average_price"])}
    return row


class StatsService:
    """
    Read-only grouped statistics over the catalog and orders.

    Each report is one GROUP BY query, so a report is computed from a single
    consistent scan rather than one query per group. Catalog reports only
    count available, unsold products and are cached in Redis under the
    ``stats`` prefix; product writes drop that prefix.
    """

    CACHE_PREFIX = "stats"

    def __init__(self, db: Session):
        self.db = db

    def stats_by_category(self) -> List[dict]:
        return self._read_through("by_category", self._compute_stats_by_category)

    def stats_by_condition(self) -> List[dict]:
        return self._read_through("by_condition", self._compute_stats_by_condition)

    def avg_price_by_category(self) -> List[dict]:
        return self._read_through("avg_price", self._compute_avg_price_by_category)

    def sales_between(self, start: datetime, end: datetime) -> Decimal:
        """
        Total of delivered orders created within [start, end].

        Not cached: the window is caller-supplied and orders keep arriving.
        """
        total = (
            self.db.query(func.sum(Order.total_amount))
            .filter(
                Order.order_status == OrderStatus.DELIVERED,
                Order.created_at >= start,
                Order.created_at <= end,
            )
            .scalar()
        )
        return to_money(total)

    def refresh_cache(self) -> dict:
        """
        Recompute every catalog report and store it in the cache.

        Returns:
            Number of rows per report
        """
        reports = {
            "by_category": self._compute_stats_by_category(),
            "by_condition": self._compute_stats_by_condition(),
            "avg_price": self._compute_avg_price_by_category(),
        }
        for key, rows in reports.items():
            cache_service.set(self.CACHE_PREFIX, key, rows)

        logger.info("Catalog statistics cache refreshed")
        return {key: len(rows) for key, rows in reports.items()}

    def _read_through(self, key: str, compute: Callable[[], List[dict]]) -> List[dict]:
        cached = cache_service.get(self.CACHE_PREFIX, key)
        if cached is not None:
            return [_restore_row(row) for row in cached]
        rows = compute()
        cache_service.set(self.CACHE_PREFIX, key, rows)
        return rows

    def _available_filter(self):
        return (Product.is_available.is_(True), Product.is_sold.is_(False))

    def _compute_stats_by_category(self) -> List[dict]:
        rows = (
            self.db.query(
                Category.id,
                Category.name,
                func.count(Product.id),
                func.avg(Product.price),
            )
            .select_from(Product)
            .join(Category, Product.category_id == Category.id)
            .filter(*self._available_filter())
            .group_by(Category.id, Category.name)
            .order_by(Category.name)
            .all()
        )
        return [
            {
                "category_id": category_id,
                "category_name": name,
                "product_count": count,
                "average_price": to_money(avg),
            }
            for category_id, name, count, avg in rows
        ]

    def _compute_stats_by_condition(self) -> List[dict]:
        rows = (
            self.db.query(Product.condition, func.count(Product.id))
            .filter(*self._available_filter())
            .group_by(Product.condition)
            .all()
        )
        counts = {ProductCondition(condition): count for condition, count in rows}
        # Report in declaration order (best condition first)
        return [
            {"condition": condition.value, "label": condition.label, "product_count": counts[condition]}
            for condition in ProductCondition
            if condition in counts
        ]

    def _compute_avg_price_by_category(self) -> List[dict]:
        rows = (
            self.db.query(Category.name, func.avg(Product.price))
            .select_from(Product)
            .join(Category, Product.category_id == Category.id)
            .filter(*self._available_filter())
            .group_by(Category.name)
            .order_by(Category.name)
            .all()
        )
        return [
            {"category_name": name, "average_price": to_money(avg)}
            for name, avg in rows
        ]

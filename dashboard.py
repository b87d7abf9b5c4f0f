"""
Dashboard aggregates computed by MongoDB pipelines over the transaction ledger.
"""
from datetime import datetime
from typing import List, Optional

from bson import ObjectId

from database import Database, utcnow
from schemas import CATEGORY_COLORS
from transactions import month_range

CASH_FLOW_MONTHS = 6


def shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def trailing_months(now: datetime, count: int = CASH_FLOW_MONTHS) -> List[tuple]:
    """(year, month) pairs for the last ``count`` months, oldest first, ending at ``now``."""
    return [shift_month(now.year, now.month, -offset) for offset in range(count - 1, -1, -1)]


class DashboardAggregator:
    def __init__(self, db: Database):
        self.transactions = db.transactions

    def stats(self, user_id: ObjectId) -> dict:
        pipeline = [
            {"$match": {"user_id": user_id}},
            {"$group": {"_id": "$type", "total": {"$sum": "$amount"}}},
        ]
        totals = {"income": 0, "expense": 0}
        for row in self.transactions.aggregate(pipeline):
            totals[row["_id"]] = row["total"]
        return {
            "totalIncome": totals["income"],
            "totalExpenses": totals["expense"],
            "currentBalance": totals["income"] - totals["expense"],
        }

    def cash_flow(self, user_id: ObjectId, now: Optional[datetime] = None) -> List[dict]:
        months = trailing_months(now or utcnow())
        first_year, first_month = months[0]
        last_year, last_month = months[-1]
        start, _ = month_range(f"{first_year:04d}-{first_month:02d}")
        _, end = month_range(f"{last_year:04d}-{last_month:02d}")
        pipeline = [
            {"$match": {"user_id": user_id, "date": {"$gte": start, "$lte": end}}},
            {"$group": {
                "_id": {"year": {"$year": "$date"}, "month": {"$month": "$date"}, "type": "$type"},
                "total": {"$sum": "$amount"},
            }},
        ]
        buckets = {}
        for row in self.transactions.aggregate(pipeline):
            key = (row["_id"]["year"], row["_id"]["month"])
            buckets.setdefault(key, {"income": 0, "expense": 0})[row["_id"]["type"]] = row["total"]

        series = []
        for year, month in months:
            bucket = buckets.get((year, month), {"income": 0, "expense": 0})
            series.append({
                "month": f"{year:04d}-{month:02d}",
                "label": datetime(year, month, 1).strftime("%b %Y"),
                "income": bucket["income"],
                "expenses": bucket["expense"],
            })
        return series

    def category_spending(self, user_id: ObjectId, now: Optional[datetime] = None) -> List[dict]:
        now = now or utcnow()
        start, end = month_range(f"{now.year:04d}-{now.month:02d}")
        pipeline = [
            {"$match": {"user_id": user_id, "type": "expense", "date": {"$gte": start, "$lte": end}}},
            {"$group": {"_id": "$category", "total": {"$sum": "$amount"}}},
        ]
        rows = list(self.transactions.aggregate(pipeline))
        total = sum(row["total"] for row in rows)
        spending = [
            {
                "category": row["_id"],
                "amount": row["total"],
                "percentage": (row["total"] / total) * 100 if total > 0 else 0,
                "color": CATEGORY_COLORS.get(row["_id"], CATEGORY_COLORS["Inne"]),
            }
            for row in rows
        ]
        spending.sort(key=lambda s: s["amount"], reverse=True)
        return spending

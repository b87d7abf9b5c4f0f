"""
Budget registry: one spending ceiling per (user, category, month).
"""
import logging
from typing import List, Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument

from database import Database, as_utc, utcnow
from schemas import CATEGORIES, CATEGORY_COLORS, BudgetIn
from transactions import month_range

logger = logging.getLogger(__name__)


def serialize_budget(doc: dict) -> dict:
    return {
        "_id": str(doc["_id"]),
        "userId": str(doc["user_id"]),
        "category": doc["category"],
        "amount": doc["amount"],
        "month": doc["month"],
        "createdAt": as_utc(doc.get("created_at")),
        "updatedAt": as_utc(doc.get("updated_at")),
    }


class BudgetRegistry:
    def __init__(self, db: Database):
        self.collection = db.budgets
        self.transactions = db.transactions

    def list(self, user_id: ObjectId, month: Optional[str] = None) -> List[dict]:
        query: dict = {"user_id": user_id}
        if month:
            query["month"] = month
        return list(self.collection.find(query).sort("category", ASCENDING))

    def upsert(self, user_id: ObjectId, budget: BudgetIn) -> dict:
        now = utcnow()
        return self.collection.find_one_and_update(
            {"user_id": user_id, "category": budget.category, "month": budget.month},
            {"$set": {"amount": budget.amount, "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    def upsert_many(self, user_id: ObjectId, budgets: List[BudgetIn]) -> List[dict]:
        saved = [self.upsert(user_id, b) for b in budgets]
        logger.info("Upserted %d budgets for user %s", len(saved), user_id)
        return saved

    def spending_by_category(self, user_id: ObjectId, month: str) -> dict:
        start, end = month_range(month)
        pipeline = [
            {"$match": {"user_id": user_id, "type": "expense", "date": {"$gte": start, "$lte": end}}},
            {"$group": {"_id": "$category", "total": {"$sum": "$amount"}}},
        ]
        return {row["_id"]: row["total"] for row in self.transactions.aggregate(pipeline)}

    def overview(self, user_id: ObjectId, month: str) -> List[dict]:
        """Every category's budget for the month next to what was spent."""
        budgets = {b["category"]: b for b in self.list(user_id, month)}
        spent_by_category = self.spending_by_category(user_id, month)
        rows = []
        for category in CATEGORIES:
            budget = budgets.get(category)
            amount = budget["amount"] if budget else 0
            spent = spent_by_category.get(category, 0)
            rows.append({
                "_id": str(budget["_id"]) if budget else None,
                "category": category,
                "color": CATEGORY_COLORS[category],
                "month": month,
                "amount": amount,
                "spent": spent,
                "percentage": (spent / amount) * 100 if amount > 0 else 0,
            })
        return rows

"""
Transaction ledger: income and expense entries owned by a single user.
"""
import calendar
import logging
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from database import Database, as_utc, utcnow
from errors import NotFound, ValidationError
from schemas import TransactionIn

logger = logging.getLogger(__name__)

INVALID_ID = "Nieprawidłowe ID transakcji"
NOT_FOUND = "Transakcja nie została znaleziona"
DELETED = "Transakcja została usunięta"

DEFAULT_LIMIT = 50


def month_range(month: str):
    """First and last instant of a YYYY-MM month."""
    year, month_num = map(int, month.split("-"))
    last_day = calendar.monthrange(year, month_num)[1]
    start = datetime(year, month_num, 1)
    end = datetime(year, month_num, last_day, 23, 59, 59, 999000)
    return start, end


def to_object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise ValidationError(INVALID_ID)
    return ObjectId(value)


def serialize_transaction(doc: dict) -> dict:
    return {
        "_id": str(doc["_id"]),
        "userId": str(doc["user_id"]),
        "type": doc["type"],
        "amount": doc["amount"],
        "category": doc["category"],
        "description": doc["description"],
        "date": as_utc(doc["date"]),
        "createdAt": as_utc(doc.get("created_at")),
        "updatedAt": as_utc(doc.get("updated_at")),
    }


class TransactionLedger:
    def __init__(self, db: Database):
        self.collection = db.transactions

    def list(
        self,
        user_id: ObjectId,
        month: Optional[str] = None,
        category: Optional[str] = None,
        type: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
        skip: int = 0,
    ) -> List[dict]:
        query: dict = {"user_id": user_id}
        if month:
            start, end = month_range(month)
            query["date"] = {"$gte": start, "$lte": end}
        if category:
            query["category"] = category
        if type:
            query["type"] = type
        cursor = self.collection.find(query).sort("date", DESCENDING).skip(skip).limit(limit)
        return list(cursor)

    def create(self, user_id: ObjectId, tx: TransactionIn) -> dict:
        now = utcnow()
        doc = tx.model_dump()
        doc.update({"user_id": user_id, "created_at": now, "updated_at": now})
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return doc

    def update(self, tx_id: str, user_id: ObjectId, tx: TransactionIn) -> dict:
        fields = tx.model_dump()
        fields["updated_at"] = utcnow()
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(tx_id), "user_id": user_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFound(NOT_FOUND)
        return doc

    def delete(self, tx_id: str, user_id: ObjectId) -> dict:
        result = self.collection.delete_one({"_id": to_object_id(tx_id), "user_id": user_id})
        if result.deleted_count == 0:
            raise NotFound(NOT_FOUND)
        logger.info("Deleted transaction %s", tx_id)
        return {"message": DELETED}

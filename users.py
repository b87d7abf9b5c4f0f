"""
Credential store: user accounts with bcrypt password hashes.
"""
import logging
from typing import Optional

from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from database import Database, as_utc, utcnow
from errors import Conflict
from schemas import SignupRequest

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

EMAIL_TAKEN = "Email jest już zarejestrowany"
USERNAME_TAKEN = "Nazwa użytkownika jest już zajęta"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def serialize_user(doc: dict) -> dict:
    return {
        "_id": str(doc["_id"]),
        "email": doc["email"],
        "username": doc["username"],
        "createdAt": as_utc(doc.get("created_at")),
        "updatedAt": as_utc(doc.get("updated_at")),
    }


class UserStore:
    def __init__(self, db: Database):
        self.collection = db.users

    def find_by_id(self, user_id) -> Optional[dict]:
        return self.collection.find_one({"_id": user_id})

    def find_by_username(self, username: str) -> Optional[dict]:
        return self.collection.find_one({"username": username})

    def find_by_email_or_username(self, email: str, username: str) -> Optional[dict]:
        return self.collection.find_one({"$or": [{"email": email}, {"username": username}]})

    def create(self, signup: SignupRequest) -> dict:
        existing = self.find_by_email_or_username(signup.email, signup.username)
        if existing:
            raise Conflict(EMAIL_TAKEN if existing["email"] == signup.email else USERNAME_TAKEN)

        now = utcnow()
        doc = {
            "email": signup.email,
            "username": signup.username,
            "password_hash": get_password_hash(signup.password),
            "created_at": now,
            "updated_at": now,
        }
        try:
            doc["_id"] = self.collection.insert_one(doc).inserted_id
        except DuplicateKeyError:
            # lost a race with a concurrent signup
            existing = self.find_by_email_or_username(signup.email, signup.username)
            if existing is not None and existing["email"] != signup.email:
                raise Conflict(USERNAME_TAKEN)
            raise Conflict(EMAIL_TAKEN)
        logger.info("Registered user %s", signup.username)
        return doc

    @staticmethod
    def verify_password(user: dict, password: str) -> bool:
        return pwd_context.verify(password, user.get("password_hash", ""))

    def authenticate(self, username: str, password: str) -> Optional[dict]:
        user = self.find_by_username(username)
        if not user or not self.verify_password(user, password):
            return None
        return user

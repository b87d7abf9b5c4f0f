"""
Schemas for the personal finance API

Each collection document is built from one of the request models below:
- SignupRequest -> "user"
- TransactionIn -> "transaction"
- BudgetIn -> "budget"

Validators raise localized messages that are returned to the client as-is.
"""
import math
import re
from datetime import date, datetime, timezone
from typing import Annotated, List

from pydantic import AfterValidator, BaseModel, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from errors import LOCALIZED_ERROR_TYPE

CATEGORIES = [
    "Jedzenie i napoje",
    "Rozrywka",
    "Transport",
    "Materiały naukowe",
    "Rachunki",
    "Inne",
]

CATEGORY_COLORS = {
    "Jedzenie i napoje": "#ef4444",
    "Rozrywka": "#f59e0b",
    "Transport": "#3b82f6",
    "Materiały naukowe": "#8b5cf6",
    "Rachunki": "#10b981",
    "Inne": "#6b7280",
}

TRANSACTION_TYPES = ("income", "expense")

MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


def localized_error(message: str) -> PydanticCustomError:
    return PydanticCustomError(LOCALIZED_ERROR_TYPE, message)


def check_category(value: str) -> str:
    if value not in CATEGORY_COLORS:
        raise localized_error("Nieprawidłowa kategoria")
    return value


def check_month(value: str) -> str:
    if not MONTH_RE.match(value) or not 1 <= int(value[5:]) <= 12:
        raise localized_error("Format miesiąca musi być YYYY-MM")
    return value


def parse_date(value) -> datetime:
    """Accept a date, a datetime or an ISO-8601 string; return naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise localized_error("Nieprawidłowa data")
    else:
        raise localized_error("Nieprawidłowa data")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


CategoryName = Annotated[str, AfterValidator(check_category)]
Month = Annotated[str, AfterValidator(check_month)]


class Category(BaseModel):
    name: str
    color: str


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def username_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise localized_error("Nazwa użytkownika jest wymagana")
        return v

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise localized_error("Hasło jest wymagane")
        return v


class SignupRequest(BaseModel):
    email: str
    username: str
    password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        try:
            _, email = validate_email(v.strip())
        except PydanticCustomError:
            raise localized_error("Nieprawidłowy adres email")
        return email.lower()

    @field_validator("username")
    @classmethod
    def username_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise localized_error("Nazwa użytkownika musi mieć co najmniej 3 znaki")
        return v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < 6:
            raise localized_error("Hasło musi mieć co najmniej 6 znaków")
        return v


class TransactionIn(BaseModel):
    type: str
    amount: float
    category: CategoryName
    description: str
    date: datetime

    @field_validator("type")
    @classmethod
    def type_known(cls, v: str) -> str:
        if v not in TRANSACTION_TYPES:
            raise localized_error("Nieprawidłowy typ transakcji")
        return v

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise localized_error("Kwota musi być większa od 0")
        return v

    @field_validator("description")
    @classmethod
    def description_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise localized_error("Opis jest wymagany")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def date_parseable(cls, v):
        return parse_date(v)


class BudgetIn(BaseModel):
    category: CategoryName
    amount: float
    month: Month

    @field_validator("amount")
    @classmethod
    def amount_not_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise localized_error("Kwota nie może być ujemna")
        return v


class TokenPayload(BaseModel):
    user_id: str
    username: str
    email: str


BudgetBatch = List[BudgetIn]

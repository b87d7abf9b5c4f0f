import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, FastAPI, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError
from pydantic_core import PydanticCustomError

import config
from auth import create_access_token, get_current_user
from budgets import BudgetRegistry, serialize_budget
from dashboard import DashboardAggregator
from database import Database, get_db, utcnow
from errors import NotFound, Unauthenticated, ValidationError, error_response, first_error_message, register_exception_handlers
from schemas import CATEGORIES, CATEGORY_COLORS, BudgetBatch, BudgetIn, Category, LoginRequest, SignupRequest, TokenPayload, TransactionIn, check_month
from transactions import DEFAULT_LIMIT, TransactionLedger, serialize_transaction
from users import UserStore, serialize_user

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("finance-api")

INVALID_CREDENTIALS = "Nieprawidłowa nazwa użytkownika lub hasło"
USER_NOT_FOUND = "Nie znaleziono użytkownika"

budget_batch_adapter = TypeAdapter(BudgetBatch)

router = APIRouter()


# Helpers
def ok(data: Any) -> dict:
    return {"success": True, "data": data}


def get_owner_id(current_user: TokenPayload = Depends(get_current_user)) -> ObjectId:
    if not ObjectId.is_valid(current_user.user_id):
        raise Unauthenticated()
    return ObjectId(current_user.user_id)


def month_query(month: Optional[str] = Query(default=None, description="YYYY-MM")) -> Optional[str]:
    if month:
        try:
            check_month(month)
        except PydanticCustomError as e:
            raise ValidationError(e.message())
    return month


def get_users(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_ledger(db: Database = Depends(get_db)) -> TransactionLedger:
    return TransactionLedger(db)


def get_budgets(db: Database = Depends(get_db)) -> BudgetRegistry:
    return BudgetRegistry(db)


def get_dashboard(db: Database = Depends(get_db)) -> DashboardAggregator:
    return DashboardAggregator(db)


def auth_payload(user: dict) -> dict:
    return {"token": create_access_token(user), "user": serialize_user(user)}


# Public endpoints
@router.get("/")
def root():
    return {"message": "Personal Finance API is running"}


@router.get("/api/health")
def health(db: Database = Depends(get_db)):
    if not db.ping():
        return error_response("Baza danych jest niedostępna", status.HTTP_503_SERVICE_UNAVAILABLE)
    return ok({"database": db.name, "status": "connected"})


@router.get("/api/categories")
def list_categories():
    return ok([Category(name=name, color=CATEGORY_COLORS[name]) for name in CATEGORIES])


# Auth endpoints
@router.post("/api/auth/login")
def login(credentials: LoginRequest, users: UserStore = Depends(get_users)):
    user = users.authenticate(credentials.username, credentials.password)
    if user is None:
        logger.warning("Failed login for %s", credentials.username)
        raise Unauthenticated(INVALID_CREDENTIALS)
    return ok(auth_payload(user))


@router.post("/api/auth/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, users: UserStore = Depends(get_users)):
    user = users.create(payload)
    return ok(auth_payload(user))


@router.get("/api/auth/me")
def me(owner_id: ObjectId = Depends(get_owner_id), users: UserStore = Depends(get_users)):
    user = users.find_by_id(owner_id)
    if user is None:
        raise NotFound(USER_NOT_FOUND)
    return ok(serialize_user(user))


# Transaction endpoints
@router.get("/api/transactions")
def list_transactions(
    owner_id: ObjectId = Depends(get_owner_id),
    month: Optional[str] = Depends(month_query),
    category: Optional[str] = None,
    type: Optional[str] = None,
    limit: int = Query(default=DEFAULT_LIMIT, ge=1),
    skip: int = Query(default=0, ge=0),
    ledger: TransactionLedger = Depends(get_ledger),
):
    docs = ledger.list(owner_id, month=month, category=category, type=type, limit=limit, skip=skip)
    return ok([serialize_transaction(d) for d in docs])


@router.post("/api/transactions", status_code=status.HTTP_201_CREATED)
def create_transaction(
    tx: TransactionIn,
    owner_id: ObjectId = Depends(get_owner_id),
    ledger: TransactionLedger = Depends(get_ledger),
):
    return ok(serialize_transaction(ledger.create(owner_id, tx)))


@router.put("/api/transactions/{tx_id}")
def update_transaction(
    tx_id: str,
    tx: TransactionIn,
    owner_id: ObjectId = Depends(get_owner_id),
    ledger: TransactionLedger = Depends(get_ledger),
):
    return ok(serialize_transaction(ledger.update(tx_id, owner_id, tx)))


@router.delete("/api/transactions/{tx_id}")
def delete_transaction(
    tx_id: str,
    owner_id: ObjectId = Depends(get_owner_id),
    ledger: TransactionLedger = Depends(get_ledger),
):
    return ok(ledger.delete(tx_id, owner_id))


# Budgets
@router.get("/api/budgets")
def list_budgets(
    owner_id: ObjectId = Depends(get_owner_id),
    month: Optional[str] = Depends(month_query),
    registry: BudgetRegistry = Depends(get_budgets),
):
    return ok([serialize_budget(b) for b in registry.list(owner_id, month)])


@router.post("/api/budgets", status_code=status.HTTP_201_CREATED)
def save_budgets(
    response: Response,
    payload: Any = Body(...),
    owner_id: ObjectId = Depends(get_owner_id),
    registry: BudgetRegistry = Depends(get_budgets),
):
    # the whole batch is validated before anything is written
    try:
        if isinstance(payload, list):
            budgets = budget_batch_adapter.validate_python(payload)
        else:
            budget = BudgetIn.model_validate(payload)
    except SchemaError as e:
        raise ValidationError(first_error_message(e.errors()))

    if isinstance(payload, list):
        response.status_code = status.HTTP_200_OK
        return ok([serialize_budget(b) for b in registry.upsert_many(owner_id, budgets)])
    return ok(serialize_budget(registry.upsert(owner_id, budget)))


@router.get("/api/budgets/overview")
def budget_overview(
    owner_id: ObjectId = Depends(get_owner_id),
    month: Optional[str] = Depends(month_query),
    registry: BudgetRegistry = Depends(get_budgets),
):
    if not month:
        month = utcnow().strftime("%Y-%m")
    return ok(registry.overview(owner_id, month))


# Dashboard
@router.get("/api/dashboard/stats")
def dashboard_stats(owner_id: ObjectId = Depends(get_owner_id), dashboard: DashboardAggregator = Depends(get_dashboard)):
    return ok(dashboard.stats(owner_id))


@router.get("/api/dashboard/cashflow")
def dashboard_cash_flow(owner_id: ObjectId = Depends(get_owner_id), dashboard: DashboardAggregator = Depends(get_dashboard)):
    return ok(dashboard.cash_flow(owner_id))


@router.get("/api/dashboard/categories")
def dashboard_categories(owner_id: ObjectId = Depends(get_owner_id), dashboard: DashboardAggregator = Depends(get_dashboard)):
    return ok(dashboard.category_spending(owner_id))


def create_app(database: Optional[Database] = None) -> FastAPI:
    database = database or Database.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.connect()
        database.ensure_indexes()
        app.state.db = database
        yield
        database.close()

    app = FastAPI(title="Personal Finance API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

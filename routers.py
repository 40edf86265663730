import logging
import uuid
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

import config
import store
from auth import get_current_user
from database import get_db
from models import Transaction, User
from schemas import (
    AccountCreate, AccountResponse,
    BudgetCopy, BudgetCopyResult, BudgetCreate, BudgetResponse,
    CreditCardCreate, CreditCardResponse,
    GoldAssetCreate, GoldAssetResponse, GoldPriceResponse, GoldPriceUpdate,
    GoldSummary,
    InvestmentCreate, InvestmentResponse, InvestmentUpdate,
    Message,
    PocketCreate, PocketResponse,
    TransactionCreate, TransactionResponse, TransactionSummary,
)

logger = logging.getLogger("finance-api.routers")


# ----------------------------
# OWNERSHIP HELPERS
# ----------------------------

def get_owned(resource: store.OwnedStore, db: Session, row_id, user: User):
    """Load a row for ``user``: 400 bad id, 404 missing, 403 someone else's."""
    if not isinstance(row_id, uuid.UUID):
        try:
            row_id = uuid.UUID(str(row_id))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid {resource.label} ID")

    row = resource.get(db, row_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"{resource.label.capitalize()} not found")
    if row.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return row


def add_item_routes(router: APIRouter, resource: store.OwnedStore, response_model):
    """GET and DELETE on ``/{item_id}``; register after any static sub-paths."""

    @router.get("/{item_id}", response_model=response_model)
    def get_item(
        item_id: str,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        return get_owned(resource, db, item_id, current_user)

    @router.delete("/{item_id}", response_model=Message)
    def delete_item(
        item_id: str,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        row = get_owned(resource, db, item_id, current_user)
        resource.delete(db, row)
        return {"message": f"{resource.label.capitalize()} deleted successfully"}


# ----------------------------
# ACCOUNTS
# ----------------------------

accounts_router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@accounts_router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    data: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.accounts.create(db, current_user.id, **data.model_dump())


@accounts_router.get("", response_model=List[AccountResponse])
def list_accounts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.accounts.list_by_owner(db, current_user.id)


# deleting an account also deletes its pockets and transactions (ORM cascade)
add_item_routes(accounts_router, store.accounts, AccountResponse)


# ----------------------------
# POCKETS
# ----------------------------

pockets_router = APIRouter(prefix="/api/pockets", tags=["pockets"])


@pockets_router.post("", response_model=PocketResponse, status_code=201)
def create_pocket(
    data: PocketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    account = get_owned(store.accounts, db, data.account_id, current_user)

    if config.POCKET_ALLOCATION_POLICY == "cap":
        allocated = store.pockets.allocated(db, account.id)
        if allocated + data.percentage_allocation > 100:
            raise HTTPException(
                status_code=400,
                detail=f"Pocket allocation exceeds 100% ({allocated:g}% already allocated)"
            )

    return store.pockets.create(db, current_user.id, **data.model_dump())


@pockets_router.get("", response_model=List[PocketResponse])
def list_pockets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.pockets.list_by_owner(db, current_user.id)


add_item_routes(pockets_router, store.pockets, PocketResponse)


# ----------------------------
# TRANSACTIONS
# ----------------------------

transactions_router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@transactions_router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    get_owned(store.accounts, db, data.account_id, current_user)
    return store.transactions.create(db, current_user.id, **data.model_dump())


@transactions_router.get("", response_model=List[TransactionResponse])
def list_transactions(
    type: Optional[Literal["income", "expense"]] = Query(None),
    account_id: Optional[uuid.UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    criteria = []
    if type:
        criteria.append(Transaction.type == type)
    if account_id:
        criteria.append(Transaction.account_id == account_id)

    return store.transactions.list_by_owner(db, current_user.id, *criteria, limit=limit)


@transactions_router.get("/summary", response_model=TransactionSummary)
def transaction_summary(
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=400,
            detail="start_date cannot be after end_date"
        )

    return store.transactions.summary(db, current_user.id, start_date, end_date)


add_item_routes(transactions_router, store.transactions, TransactionResponse)


# ----------------------------
# BUDGETS
# ----------------------------

budgets_router = APIRouter(prefix="/api/budgets", tags=["budgets"])


@budgets_router.post("", response_model=BudgetResponse, status_code=201)
def create_budget(
    data: BudgetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.budgets.create(db, current_user.id, **data.model_dump())


@budgets_router.get("", response_model=List[BudgetResponse])
def list_budgets(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if (month is None) != (year is None):
        raise HTTPException(
            status_code=400,
            detail="month and year must be given together"
        )

    if month:
        return store.budgets.in_month(db, current_user.id, year, month)
    return store.budgets.list_by_owner(db, current_user.id)


@budgets_router.post("/copy", response_model=BudgetCopyResult, status_code=201)
def copy_budgets(
    data: BudgetCopy,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if (data.from_year, data.from_month) == (data.to_year, data.to_month):
        raise HTTPException(
            status_code=400,
            detail="Source and target month must differ"
        )

    created, skipped = store.budgets.copy_month(
        db, current_user.id,
        data.from_year, data.from_month,
        data.to_year, data.to_month,
    )
    logger.info(
        "copied %d budgets %d-%02d -> %d-%02d for %s (%d skipped)",
        len(created), data.from_year, data.from_month,
        data.to_year, data.to_month, current_user.id, skipped,
    )
    return {"copied": len(created), "skipped": skipped, "budgets": created}


add_item_routes(budgets_router, store.budgets, BudgetResponse)


# ----------------------------
# CREDIT CARDS
# ----------------------------

credit_cards_router = APIRouter(prefix="/api/credit-cards", tags=["credit-cards"])


@credit_cards_router.post("", response_model=CreditCardResponse, status_code=201)
def create_credit_card(
    data: CreditCardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.credit_cards.create(db, current_user.id, **data.model_dump())


@credit_cards_router.get("", response_model=List[CreditCardResponse])
def list_credit_cards(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.credit_cards.list_by_owner(db, current_user.id)


add_item_routes(credit_cards_router, store.credit_cards, CreditCardResponse)


# ----------------------------
# INVESTMENTS
# ----------------------------

investments_router = APIRouter(prefix="/api/investments", tags=["investments"])


@investments_router.post("", response_model=InvestmentResponse, status_code=201)
def create_investment(
    data: InvestmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.investments.create(db, current_user.id, **data.model_dump())


@investments_router.get("", response_model=List[InvestmentResponse])
def list_investments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return store.investments.list_by_owner(db, current_user.id)


@investments_router.patch("/{item_id}", response_model=InvestmentResponse)
def update_investment(
    item_id: str,
    data: InvestmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    investment = get_owned(store.investments, db, item_id, current_user)

    fields = data.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    return store.investments.update(db, investment, **fields)


add_item_routes(investments_router, store.investments, InvestmentResponse)


# ----------------------------
# GOLD
# ----------------------------

gold_router = APIRouter(prefix="/api/gold", tags=["gold"])
gold_assets_router = APIRouter(prefix="/api/gold/assets", tags=["gold"])


def gold_view(asset, price):
    """Asset fields plus values at ``price`` (or at cost when no price is known)."""
    current_price = price.price_per_gram if price else asset.purchase_price_per_gram
    purchase_value = asset.weight_gram * asset.purchase_price_per_gram
    current_value = asset.weight_gram * current_price
    profit_loss = current_value - purchase_value

    view = {c.name: getattr(asset, c.name) for c in asset.__table__.columns}
    view.update(
        purchase_value=purchase_value,
        current_price_per_gram=current_price,
        current_value=current_value,
        profit_loss=profit_loss,
        profit_loss_percent=round(profit_loss / purchase_value * 100, 2),
    )
    return view


@gold_router.get("/price", response_model=GoldPriceResponse)
def latest_gold_price(db: Session = Depends(get_db)):
    price = store.gold_prices.latest(db)
    if not price:
        raise HTTPException(status_code=404, detail="No gold price recorded")
    return price


@gold_router.get("/price/history", response_model=List[GoldPriceResponse])
def gold_price_history(
    days: int = Query(30, ge=1, le=3650),
    db: Session = Depends(get_db)
):
    return store.gold_prices.history(db, days)


@gold_router.post("/price", response_model=GoldPriceResponse, status_code=201)
def update_today_gold_price(
    data: GoldPriceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    price = store.gold_prices.upsert_today(db, data.price_per_gram)
    logger.info("gold price for %s set to %s by %s", price.price_date, price.price_per_gram, current_user.id)
    return price


@gold_router.get("/summary", response_model=GoldSummary)
def gold_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    price = store.gold_prices.latest(db)
    assets = [gold_view(a, price) for a in store.gold_assets.list_by_owner(db, current_user.id)]

    total_purchase = sum(a["purchase_value"] for a in assets)
    total_current = sum(a["current_value"] for a in assets)
    total_profit = total_current - total_purchase

    return {
        "asset_count": len(assets),
        "total_weight_gram": sum(a["weight_gram"] for a in assets),
        "total_purchase_value": total_purchase,
        "total_current_value": total_current,
        "total_profit_loss": total_profit,
        "profit_loss_percent": round(total_profit / total_purchase * 100, 2) if total_purchase else 0,
        "current_price_per_gram": price.price_per_gram if price else None,
        "price_date": price.price_date if price else None,
    }


@gold_assets_router.post("", response_model=GoldAssetResponse, status_code=201)
def create_gold_asset(
    data: GoldAssetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    asset = store.gold_assets.create(db, current_user.id, **data.model_dump())
    return gold_view(asset, store.gold_prices.latest(db))


@gold_assets_router.get("", response_model=List[GoldAssetResponse])
def list_gold_assets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    price = store.gold_prices.latest(db)
    return [gold_view(a, price) for a in store.gold_assets.list_by_owner(db, current_user.id)]


@gold_assets_router.get("/{item_id}", response_model=GoldAssetResponse)
def get_gold_asset(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    asset = get_owned(store.gold_assets, db, item_id, current_user)
    return gold_view(asset, store.gold_prices.latest(db))


@gold_assets_router.delete("/{item_id}", response_model=Message)
def delete_gold_asset(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    asset = get_owned(store.gold_assets, db, item_id, current_user)
    store.gold_assets.delete(db, asset)
    return {"message": "Gold asset deleted successfully"}


all_routers = [
    accounts_router,
    pockets_router,
    transactions_router,
    budgets_router,
    credit_cards_router,
    investments_router,
    gold_router,
    gold_assets_router,
]

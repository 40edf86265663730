from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator


class OrmModel(BaseModel):
    class Config:
        from_attributes = True


class Record(OrmModel):
    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    message: str


# ----------------------------
# AUTH SCHEMAS
# ----------------------------

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserPublic(OrmModel):
    """What the API may show of a user; the password hash never leaves the store."""

    id: UUID
    name: str
    email: str
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserPublic


# ----------------------------
# ACCOUNT & POCKET SCHEMAS
# ----------------------------

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: Literal["bank", "wallet", "investment", "credit_card"]
    balance: float = 0
    currency: str = Field("IDR", pattern=r"^[A-Z]{3}$")


class AccountResponse(AccountCreate, Record):
    pass


class PocketCreate(BaseModel):
    account_id: UUID
    name: str = Field(..., min_length=1)
    balance: float = Field(0, ge=0)
    percentage_allocation: float = Field(0, ge=0, le=100)


class PocketResponse(PocketCreate, Record):
    pass


# ----------------------------
# TRANSACTION SCHEMAS
# ----------------------------

class TransactionCreate(BaseModel):
    account_id: UUID
    type: Literal["income", "expense"]
    category: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    transaction_date: date


class TransactionResponse(TransactionCreate, Record):
    pass


class CategoryTotal(BaseModel):
    category: str
    type: str
    total: float


class TransactionSummary(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_income: float
    total_expense: float
    balance: float
    transaction_count: int
    by_category: List[CategoryTotal]


# ----------------------------
# BUDGET SCHEMAS
# ----------------------------

class BudgetCreate(BaseModel):
    category: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    period: str = "monthly"
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetResponse(Record):
    category: str
    amount: float
    period: str
    start_date: date
    end_date: date


class BudgetCopy(BaseModel):
    from_month: int = Field(..., ge=1, le=12)
    from_year: int = Field(..., ge=1970, le=9999)
    to_month: int = Field(..., ge=1, le=12)
    to_year: int = Field(..., ge=1970, le=9999)


class BudgetCopyResult(BaseModel):
    copied: int
    skipped: int
    budgets: List[BudgetResponse]


# ----------------------------
# CREDIT CARD SCHEMAS
# ----------------------------

class CreditCardCreate(BaseModel):
    card_name: str = Field(..., min_length=1)
    last_four_digits: str = Field(..., pattern=r"^\d{4}$")
    credit_limit: float = Field(..., gt=0)
    current_balance: float = Field(0, ge=0)
    billing_date: int = Field(..., ge=1, le=31)
    payment_due_date: int = Field(..., ge=1, le=31)


class CreditCardResponse(CreditCardCreate, Record):
    pass


# ----------------------------
# INVESTMENT SCHEMAS
# ----------------------------

class InvestmentCreate(BaseModel):
    investment_type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    purchase_value: float = Field(..., gt=0)
    current_value: float = Field(..., gt=0)
    quantity: float = Field(..., gt=0)
    purchase_date: date


class InvestmentUpdate(BaseModel):
    investment_type: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    current_value: Optional[float] = Field(None, gt=0)
    quantity: Optional[float] = Field(None, gt=0)


class InvestmentResponse(InvestmentCreate, Record):
    pass


# ----------------------------
# GOLD SCHEMAS
# ----------------------------

class GoldAssetCreate(BaseModel):
    name: str = Field(..., min_length=1)
    gold_type: str = "antam"
    weight_gram: float = Field(..., gt=0)
    purchase_price_per_gram: float = Field(..., gt=0)
    purchase_date: date
    storage_location: Optional[str] = None
    notes: Optional[str] = None


class GoldAssetResponse(GoldAssetCreate, Record):
    purchase_value: float
    current_price_per_gram: float
    current_value: float
    profit_loss: float
    profit_loss_percent: float


class GoldSummary(BaseModel):
    asset_count: int
    total_weight_gram: float
    total_purchase_value: float
    total_current_value: float
    total_profit_loss: float
    profit_loss_percent: float
    current_price_per_gram: Optional[float] = None
    price_date: Optional[date] = None


class GoldPriceUpdate(BaseModel):
    price_per_gram: float = Field(..., gt=0)


class GoldPriceResponse(OrmModel):
    id: UUID
    price_date: date
    price_per_gram: float
    updated_at: datetime

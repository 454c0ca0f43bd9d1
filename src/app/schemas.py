"""
WealthDesk — Request Schemas

Input validation at the API edge. Growth rates are accepted as percentages
(5 == 5%) and converted to fractions exactly once, here.
"""

import uuid
from datetime import date
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from config.settings import GROWTH_RATE_PERCENT_BOUNDS
from src.models.domain import Asset, Client, Expense, Goal, IncomeSource

RiskTolerance = Literal["conservative", "moderate", "aggressive"]
AssetCategory = Literal["residence", "rrsp", "tfsa", "investment", "savings"]
Frequency = Literal["monthly", "annual"]
Priority = Literal["low", "medium", "high"]

_RATE_MIN, _RATE_MAX = GROWTH_RATE_PERCENT_BOUNDS
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _new_id() -> str:
    return str(uuid.uuid4())


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    risk_tolerance: RiskTolerance = "moderate"
    annual_income: Optional[float] = Field(None, ge=0)
    net_worth: Optional[float] = None
    date_of_birth: Optional[date] = None
    occupation: Optional[str] = None
    marital_status: Optional[str] = None
    dependents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    def to_client(self, advisor_id: str) -> Client:
        return Client(id=_new_id(), advisor_id=advisor_id, **self.model_dump())


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    risk_tolerance: Optional[RiskTolerance] = None
    annual_income: Optional[float] = Field(None, ge=0)
    net_worth: Optional[float] = None
    date_of_birth: Optional[date] = None
    occupation: Optional[str] = None
    marital_status: Optional[str] = None
    dependents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("name", "email", "risk_tolerance")
    @classmethod
    def _not_null(cls, value):
        # Omit the key to leave it unchanged; these columns cannot be cleared.
        if value is None:
            raise ValueError("may not be null")
        return value

    def to_changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class AssetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    asset_type: AssetCategory
    current_value: float = Field(..., gt=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    growth_rate: float = Field(..., ge=_RATE_MIN, le=_RATE_MAX, description="Annual growth, percent")
    projection_years: int = Field(10, ge=1, le=100)

    def to_asset(self, client_id: str) -> Asset:
        return Asset(
            id=_new_id(),
            client_id=client_id,
            name=self.name,
            asset_type=self.asset_type,
            current_value=self.current_value,
            purchase_price=self.purchase_price,
            growth_rate=self.growth_rate / 100.0,
            projection_years=self.projection_years,
        )


class AssetUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    asset_type: Optional[AssetCategory] = None
    current_value: Optional[float] = Field(None, gt=0)
    purchase_price: Optional[float] = Field(None, ge=0)
    growth_rate: Optional[float] = Field(None, ge=_RATE_MIN, le=_RATE_MAX)
    projection_years: Optional[int] = Field(None, ge=1, le=100)

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True, exclude_none=True)
        if "growth_rate" in changes:
            changes["growth_rate"] = changes["growth_rate"] / 100.0
        return changes


class CashFlowCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(..., ge=0)
    frequency: Frequency = "monthly"
    is_active: bool = True


class IncomeCreate(CashFlowCreate):

    def to_income(self, client_id: str) -> IncomeSource:
        return IncomeSource(id=_new_id(), client_id=client_id, **self.model_dump())


class ExpenseCreate(CashFlowCreate):
    category: Optional[str] = None

    def to_expense(self, client_id: str) -> Expense:
        return Expense(id=_new_id(), client_id=client_id, **self.model_dump())


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0)
    target_date: Optional[date] = None
    priority: Priority = "medium"

    def to_goal(self, client_id: str) -> Goal:
        return Goal(id=_new_id(), client_id=client_id, **self.model_dump())


class ChatRequest(BaseModel):
    client_id: str
    question: str = Field(..., min_length=1, max_length=4000)
    session_id: Optional[str] = None

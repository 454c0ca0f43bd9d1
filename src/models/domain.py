"""
WealthDesk — Domain Records

Plain dataclasses for the rows an advisor manages. Growth rates are always
fractional here (0.05 == 5%); percentage input is converted at the API edge.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Principal:
    """The authenticated advisor making a request."""
    advisor_id: str
    display_name: Optional[str] = None


@dataclass
class Asset:
    id: str
    client_id: str
    name: str
    asset_type: str                   # residence / rrsp / tfsa / investment / savings
    current_value: float
    growth_rate: float                # fractional, >= -1
    projection_years: int = 10
    purchase_price: Optional[float] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class IncomeSource:
    id: str
    client_id: str
    name: str
    amount: float
    frequency: str = "monthly"        # monthly / annual
    is_active: bool = True


@dataclass
class Expense:
    id: str
    client_id: str
    name: str
    amount: float
    frequency: str = "monthly"
    is_active: bool = True
    category: Optional[str] = None


@dataclass
class Goal:
    id: str
    client_id: str
    name: str
    target_amount: float
    target_date: Optional[date] = None
    priority: str = "medium"


@dataclass
class Client:
    id: str
    advisor_id: str
    name: str
    email: str
    risk_tolerance: str = "moderate"
    annual_income: Optional[float] = None
    net_worth: Optional[float] = None
    date_of_birth: Optional[date] = None
    occupation: Optional[str] = None
    marital_status: Optional[str] = None
    dependents: Optional[int] = None
    notes: Optional[str] = None
    assets: List[Asset] = field(default_factory=list)
    income_sources: List[IncomeSource] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def profile_dict(self) -> Dict[str, Any]:
        """Client attributes without the nested collections."""
        data = asdict(self)
        for key in ("assets", "income_sources", "expenses", "goals"):
            data.pop(key)
        return data


@dataclass
class ChatMessage:
    id: str
    client_id: str
    advisor_id: str
    session_id: str
    role: str                         # user / assistant
    content: str
    created_at: datetime = field(default_factory=_utcnow)

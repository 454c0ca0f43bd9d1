"""
WealthDesk — Monthly Cash Flow
"""

from dataclasses import dataclass
from typing import Iterable, Union

from src.models.domain import Expense, IncomeSource

CashFlowItem = Union[IncomeSource, Expense]


@dataclass
class CashFlowSummary:
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    net_monthly_cash_flow: float = 0.0
    savings_rate: float = 0.0        # net / income, fractional

    def to_dict(self) -> dict:
        return {
            "monthly_income": self.monthly_income,
            "monthly_expenses": self.monthly_expenses,
            "net_monthly_cash_flow": self.net_monthly_cash_flow,
            "savings_rate": self.savings_rate,
        }


def monthly_amount(item: CashFlowItem) -> float:
    if item.frequency == "annual":
        return item.amount / 12.0
    return float(item.amount)


def net_monthly_cash_flow(
    income_sources: Iterable[IncomeSource],
    expenses: Iterable[Expense],
) -> CashFlowSummary:
    """Active income minus active expenses, per month. Inactive rows are ignored."""
    income = sum(monthly_amount(i) for i in income_sources if i.is_active)
    spend = sum(monthly_amount(e) for e in expenses if e.is_active)
    net = income - spend
    return CashFlowSummary(
        monthly_income=income,
        monthly_expenses=spend,
        net_monthly_cash_flow=net,
        savings_rate=net / income if income > 0 else 0.0,
    )

"""
WealthDesk — Demo Client Book
Seed data for the in-memory store so the API is usable out of the box.
Growth rates are fractional.
"""
from datetime import date
from typing import List

from src.models.domain import Asset, Client, Expense, Goal, IncomeSource

DEMO_ADVISOR_ID = "advisor-demo"


def _sarah() -> Client:
    cid = "sarah"
    return Client(
        id=cid,
        advisor_id=DEMO_ADVISOR_ID,
        name="Sarah Johnson",
        email="sarah.johnson@email.com",
        risk_tolerance="moderate",
        annual_income=95000,
        date_of_birth=date(1984, 6, 12),
        occupation="Product manager",
        marital_status="married",
        dependents=2,
        assets=[
            Asset("sarah-residence", cid, "Primary Residence", "residence", 750000, 0.03, 5, purchase_price=610000),
            Asset("sarah-rrsp", cid, "RRSP Portfolio", "rrsp", 125000, 0.07, 5),
            Asset("sarah-tfsa", cid, "TFSA Investments", "tfsa", 45000, 0.06, 5),
            Asset("sarah-savings", cid, "Emergency Fund", "savings", 25000, 0.025, 5),
        ],
        income_sources=[
            IncomeSource("sarah-salary", cid, "Salary", 95000, "annual"),
            IncomeSource("sarah-rental", cid, "Basement rental", 1200, "monthly"),
        ],
        expenses=[
            Expense("sarah-mortgage", cid, "Mortgage", 2800, "monthly", category="housing"),
            Expense("sarah-living", cid, "Living costs", 2600, "monthly", category="living"),
            Expense("sarah-insurance", cid, "Insurance", 2400, "annual", category="insurance"),
        ],
        goals=[
            Goal("sarah-retire", cid, "Retire at 60", 1500000, date(2044, 6, 12), "high"),
            Goal("sarah-education", cid, "Children's education", 120000, date(2034, 9, 1), "medium"),
        ],
    )


def _michael() -> Client:
    cid = "michael"
    return Client(
        id=cid,
        advisor_id=DEMO_ADVISOR_ID,
        name="Michael Chen",
        email="michael.chen@email.com",
        risk_tolerance="aggressive",
        annual_income=180000,
        date_of_birth=date(1990, 11, 3),
        occupation="Software engineer",
        assets=[
            Asset("michael-condo", cid, "Downtown Condo", "residence", 620000, 0.035, 10),
            Asset("michael-brokerage", cid, "Brokerage Account", "investment", 410000, 0.08, 15),
            Asset("michael-rrsp", cid, "RRSP", "rrsp", 160000, 0.07, 20),
            Asset("michael-tfsa", cid, "TFSA", "tfsa", 60000, 0.075, 20),
        ],
        income_sources=[IncomeSource("michael-salary", cid, "Salary", 180000, "annual")],
        expenses=[Expense("michael-living", cid, "Living costs", 6200, "monthly")],
        goals=[Goal("michael-fi", cid, "Financial independence", 3000000, date(2040, 1, 1), "high")],
    )


def _emma() -> Client:
    cid = "emma"
    return Client(
        id=cid,
        advisor_id=DEMO_ADVISOR_ID,
        name="Emma Rodriguez",
        email="emma.rodriguez@email.com",
        risk_tolerance="conservative",
        annual_income=72000,
        date_of_birth=date(1962, 2, 20),
        occupation="Teacher",
        assets=[
            Asset("emma-home", cid, "Family Home", "residence", 540000, 0.025, 5),
            Asset("emma-rrsp", cid, "RRSP", "rrsp", 110000, 0.045, 5),
            Asset("emma-savings", cid, "High-interest Savings", "savings", 30000, 0.03, 3),
        ],
        income_sources=[
            IncomeSource("emma-salary", cid, "Salary", 72000, "annual"),
            IncomeSource("emma-tutoring", cid, "Tutoring", 400, "monthly", is_active=False),
        ],
        expenses=[Expense("emma-living", cid, "Living costs", 4100, "monthly")],
        goals=[Goal("emma-retire", cid, "Retire in 3 years", 900000, date(2029, 6, 30), "high")],
    )


def _david() -> Client:
    cid = "david"
    return Client(
        id=cid,
        advisor_id=DEMO_ADVISOR_ID,
        name="David Thompson",
        email="david.thompson@email.com",
        risk_tolerance="moderate",
        annual_income=240000,
        date_of_birth=date(1975, 8, 30),
        occupation="Business owner",
        assets=[
            Asset("david-home", cid, "Primary Residence", "residence", 1250000, 0.03, 10),
            Asset("david-cottage", cid, "Cottage", "residence", 420000, 0.02, 10),
            Asset("david-brokerage", cid, "Corporate Investments", "investment", 280000, 0.065, 10),
            Asset("david-rrsp", cid, "RRSP", "rrsp", 95000, 0.06, 10),
            Asset("david-tfsa", cid, "TFSA", "tfsa", 35000, 0.06, 10),
            Asset("david-cash", cid, "Operating Cash", "savings", 20000, 0.02, 2),
        ],
        income_sources=[IncomeSource("david-draw", cid, "Owner draw", 240000, "annual")],
        expenses=[
            Expense("david-living", cid, "Living costs", 9500, "monthly"),
            Expense("david-property-tax", cid, "Property taxes", 14000, "annual"),
        ],
    )


def demo_clients() -> List[Client]:
    """Fresh copies each call; stores mutate what they are given."""
    return [_sarah(), _michael(), _emma(), _david()]



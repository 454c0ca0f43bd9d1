"""
WealthDesk — Asset Allocation Classifier

Buckets assets by category, computes each bucket's share of the portfolio and
tags it with the static risk tier for that category.
"""

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from config.settings import ASSET_RISK_LEVELS, DEFAULT_RISK_LEVEL, RISK_LEVEL_SCORES
from src.models.domain import Asset


@dataclass
class AllocationSlice:
    category: str
    value: float
    percentage: float        # 0-100
    risk_level: str          # low / medium / high
    asset_count: int

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "value": self.value,
            "percentage": self.percentage,
            "risk_level": self.risk_level,
            "asset_count": self.asset_count,
        }


def risk_level_for(category: str) -> str:
    return ASSET_RISK_LEVELS.get(category, DEFAULT_RISK_LEVEL)


def classify_allocation(assets: Iterable[Asset]) -> List[AllocationSlice]:
    """Category breakdown, largest bucket first."""
    rows = [{"category": a.asset_type, "value": float(a.current_value)} for a in assets]
    if not rows:
        return []

    df = pd.DataFrame(rows)
    grouped = df.groupby("category", sort=False)["value"].agg(["sum", "count"])
    total = float(grouped["sum"].sum())
    grouped = grouped.sort_values("sum", ascending=False, kind="stable")

    slices = []
    for category, row in grouped.iterrows():
        value = float(row["sum"])
        slices.append(AllocationSlice(
            category=str(category),
            value=value,
            percentage=value / total * 100 if total > 0 else 0.0,
            risk_level=risk_level_for(str(category)),
            asset_count=int(row["count"]),
        ))
    return slices


def weighted_risk_score(slices: Iterable[AllocationSlice]) -> float:
    """
    Value-weighted risk score on a 1 (low) to 3 (high) scale.
    Zero when the portfolio has no value.
    """
    slices = list(slices)
    total_pct = sum(s.percentage for s in slices)
    if total_pct <= 0:
        return 0.0
    score = sum(RISK_LEVEL_SCORES.get(s.risk_level, 2) * s.percentage for s in slices)
    return round(score / total_pct, 3)

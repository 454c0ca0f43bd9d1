"""
WealthDesk — Portfolio Aggregator

Rolls a client's assets up into current / future / growth totals.

Each asset compounds on its own projection horizon. The overall growth rate
is the CAGR of the rolled-up totals over a single normalisation horizon:
by default the value-weighted mean of the asset horizons, or a fixed number
of years when one is supplied (10 reproduces the legacy dashboard figure).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from src.finance.compounding import annualised_growth_rate, future_value, growth_schedule
from src.models.domain import Asset

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSummary:
    total_current_value: float = 0.0
    total_future_value: float = 0.0
    total_projected_growth: float = 0.0
    overall_growth_rate: float = 0.0
    normalisation_years: float = 0.0
    asset_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_current_value": self.total_current_value,
            "total_future_value": self.total_future_value,
            "total_projected_growth": self.total_projected_growth,
            "overall_growth_rate": self.overall_growth_rate,
            "normalisation_years": self.normalisation_years,
            "asset_count": self.asset_count,
        }


@dataclass
class AssetProjection:
    asset_id: str
    name: str
    asset_type: str
    current_value: float
    growth_rate: float
    projection_years: int
    future_value: float
    projected_growth: float


@dataclass
class PortfolioSnapshot:
    """Point-in-time rollup, regenerated from assets on demand."""
    client_id: str
    summary: PortfolioSummary
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "generated_at": self.generated_at.isoformat(),
            **self.summary.to_dict(),
        }


def weighted_horizon(assets: Sequence[Asset]) -> float:
    """Value-weighted mean projection horizon; plain mean if nothing has value."""
    if not assets:
        return 0.0
    values = np.array([a.current_value for a in assets], dtype=np.float64)
    years = np.array([a.projection_years for a in assets], dtype=np.float64)
    total = values.sum()
    if total <= 0:
        return float(years.mean())
    return float((values * years).sum() / total)


def summarise_portfolio(
    assets: Iterable[Asset],
    normalisation_years: Optional[float] = None,
) -> PortfolioSummary:
    """
    Aggregate assets into a PortfolioSummary.

    Parameters
    ----------
    assets              : the client's assets, any order
    normalisation_years : fixed horizon for the overall rate; None uses the
                          value-weighted mean of the asset horizons
    """
    assets = list(assets)
    if not assets:
        return PortfolioSummary()

    total_current = float(sum(a.current_value for a in assets))
    total_future = float(sum(
        future_value(a.current_value, a.growth_rate, a.projection_years) for a in assets
    ))

    horizon = float(normalisation_years) if normalisation_years else weighted_horizon(assets)
    overall_rate = annualised_growth_rate(total_current, total_future, horizon)

    return PortfolioSummary(
        total_current_value=total_current,
        total_future_value=total_future,
        total_projected_growth=total_future - total_current,
        overall_growth_rate=overall_rate,
        normalisation_years=horizon,
        asset_count=len(assets),
    )


def project_assets(assets: Iterable[Asset]) -> List[AssetProjection]:
    """Per-asset future value on each asset's own horizon."""
    projections = []
    for a in assets:
        fv = future_value(a.current_value, a.growth_rate, a.projection_years)
        projections.append(AssetProjection(
            asset_id=a.id,
            name=a.name,
            asset_type=a.asset_type,
            current_value=a.current_value,
            growth_rate=a.growth_rate,
            projection_years=a.projection_years,
            future_value=fv,
            projected_growth=fv - a.current_value,
        ))
    return projections


def projection_timeline(assets: Iterable[Asset], years: Optional[int] = None) -> pd.DataFrame:
    """
    Year-by-year portfolio value.

    Each asset compounds up to its own horizon and is held flat afterwards, so
    the value at the longest horizon equals the summary's total future value.
    """
    assets = list(assets)
    if years is None:
        years = max((a.projection_years for a in assets), default=0)

    index = pd.RangeIndex(0, years + 1, name="year")
    projected = np.zeros(years + 1, dtype=np.float64)
    for a in assets:
        schedule = growth_schedule(a.current_value, a.growth_rate, min(a.projection_years, years))
        padded = np.full(years + 1, schedule[-1], dtype=np.float64)
        padded[: len(schedule)] = schedule
        projected += padded

    current = float(sum(a.current_value for a in assets))
    return pd.DataFrame(
        {"current_value": np.full(years + 1, current), "projected_value": projected},
        index=index,
    ).reset_index()


def build_snapshot(
    client_id: str,
    assets: Iterable[Asset],
    normalisation_years: Optional[float] = None,
) -> PortfolioSnapshot:
    summary = summarise_portfolio(assets, normalisation_years)
    logger.info("Snapshot for %s: %d assets, current=%.2f future=%.2f",
                client_id, summary.asset_count,
                summary.total_current_value, summary.total_future_value)
    return PortfolioSnapshot(client_id=client_id, summary=summary)

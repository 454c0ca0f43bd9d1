"""
WealthDesk — Client Context Builder

Turns one client's raw rows into the structured snapshot the assistant is
prompted with: profile, portfolio aggregates, allocation, cash flow, goals.

The builder never talks to the model. If the client cannot be fetched for the
requesting advisor it raises NotFound and nothing downstream runs.
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from src.data.store import ClientStore
from src.errors import NotFound
from src.finance.allocation import AllocationSlice, classify_allocation, weighted_risk_score
from src.finance.cashflow import CashFlowSummary, net_monthly_cash_flow
from src.finance.portfolio import AssetProjection, PortfolioSummary, project_assets, summarise_portfolio
from src.models.domain import Client, Goal, Principal

logger = logging.getLogger(__name__)


def compute_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole years since birth; one less if this year's birthday is still ahead."""
    if date_of_birth is None:
        return None
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def content_hash(client: Client, as_of: date) -> str:
    """Digest of everything the context is derived from (timestamps excluded)."""
    payload = {
        "as_of": as_of.isoformat(),
        "profile": {k: v for k, v in client.profile_dict().items()
                    if k not in ("created_at", "updated_at")},
        "assets": sorted(
            ({k: v for k, v in asdict(a).items() if k not in ("created_at", "updated_at")}
             for a in client.assets),
            key=lambda a: a["id"],
        ),
        "income": sorted((asdict(i) for i in client.income_sources), key=lambda i: i["id"]),
        "expenses": sorted((asdict(e) for e in client.expenses), key=lambda e: e["id"]),
        "goals": sorted((asdict(g) for g in client.goals), key=lambda g: g["id"]),
    }
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.md5(raw.encode()).hexdigest()[:16]


@dataclass
class ClientContext:
    client_id: str
    as_of: date
    profile: Dict
    portfolio: PortfolioSummary
    assets: List[AssetProjection]
    allocation: List[AllocationSlice]
    risk_score: float
    cash_flow: CashFlowSummary
    goals: List[Goal] = field(default_factory=list)
    content_hash: str = ""

    def to_prompt_dict(self) -> dict:
        """JSON-serialisable view embedded in the assistant prompt."""
        return {
            "client_id": self.client_id,
            "as_of": self.as_of.isoformat(),
            "profile": self.profile,
            "portfolio": self.portfolio.to_dict(),
            "assets": [asdict(a) for a in self.assets],
            "allocation": [s.to_dict() for s in self.allocation],
            "risk_score": self.risk_score,
            "cash_flow": self.cash_flow.to_dict(),
            "goals": [
                {
                    "name": g.name,
                    "target_amount": g.target_amount,
                    "target_date": g.target_date.isoformat() if g.target_date else None,
                    "priority": g.priority,
                }
                for g in self.goals
            ],
        }


class ContextCache:
    """
    Time-based cache holding at most one context per client.
    Writes are not tracked; a changed portfolio hashes to a new digest, which
    replaces the client's previous entry on the next put.
    """

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, float, ClientContext]] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.ttl_seconds

    def get(self, client_id: str, digest: str) -> Optional[ClientContext]:
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                return None
            stored_digest, stored_at, context = entry
            if self._expired(stored_at, self._clock()):
                self._entries.pop(client_id, None)
                return None
            if stored_digest != digest:
                return None
            return context

    def put(self, context: ClientContext) -> None:
        with self._lock:
            now = self._clock()
            for client_id in [k for k, (_, stored_at, _) in self._entries.items() if self._expired(stored_at, now)]:
                self._entries.pop(client_id, None)
            self._entries[context.client_id] = (context.content_hash, now, context)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ContextBuilder:

    def __init__(
        self,
        store: ClientStore,
        cache: Optional[ContextCache] = None,
        normalisation_years: Optional[float] = None,
    ):
        self.store = store
        self.cache = cache
        self.normalisation_years = normalisation_years

    def build(self, principal: Principal, client_id: str, today: Optional[date] = None) -> ClientContext:
        client = self.store.get_client(principal.advisor_id, client_id)
        if client is None:
            raise NotFound(f"Client '{client_id}' not found")

        as_of = today or date.today()
        digest = content_hash(client, as_of)
        if self.cache is not None:
            cached = self.cache.get(client.id, digest)
            if cached is not None:
                logger.debug("Context cache hit for %s", client.id)
                return cached

        context = self.from_client(client, as_of, digest)
        if self.cache is not None:
            self.cache.put(context)
        return context

    def from_client(self, client: Client, as_of: date, digest: str = "") -> ClientContext:
        """Assemble a context from an already-fetched client."""
        allocation = classify_allocation(client.assets)
        profile = {
            "name": client.name,
            "email": client.email,
            "risk_tolerance": client.risk_tolerance,
            "age": compute_age(client.date_of_birth, as_of),
            "annual_income": client.annual_income,
            "net_worth": client.net_worth,
            "occupation": client.occupation,
            "marital_status": client.marital_status,
            "dependents": client.dependents,
            "notes": client.notes,
        }
        context = ClientContext(
            client_id=client.id,
            as_of=as_of,
            profile=profile,
            portfolio=summarise_portfolio(client.assets, self.normalisation_years),
            assets=project_assets(client.assets),
            allocation=allocation,
            risk_score=weighted_risk_score(allocation),
            cash_flow=net_monthly_cash_flow(client.income_sources, client.expenses),
            goals=list(client.goals),
            content_hash=digest or content_hash(client, as_of),
        )
        logger.info("Built context for %s (%d assets, hash=%s)",
                    client.id, len(context.assets), context.content_hash)
        return context

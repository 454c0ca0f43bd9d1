"""
WealthDesk — Central Configuration
Static lookup tables live here as module constants. Runtime knobs (API keys,
model name, storage URL) are read once into a Settings object and passed
explicitly to whatever needs them.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import os
from dotenv import load_dotenv

load_dotenv()

# ─────────────────────────────────────────────────────────────────────
# Domain vocabulary
# ─────────────────────────────────────────────────────────────────────
ASSET_CATEGORIES: Tuple[str, ...] = ("residence", "rrsp", "tfsa", "investment", "savings")

RISK_TOLERANCES: Tuple[str, ...] = ("conservative", "moderate", "aggressive")

CASH_FLOW_FREQUENCIES: Tuple[str, ...] = ("monthly", "annual")

# ─────────────────────────────────────────────────────────────────────
# Allocation risk tiers (static, per category)
# ─────────────────────────────────────────────────────────────────────
ASSET_RISK_LEVELS: Dict[str, str] = {
    "residence":  "low",
    "savings":    "low",
    "rrsp":       "medium",
    "tfsa":       "medium",
    "investment": "high",
}

DEFAULT_RISK_LEVEL = "medium"

RISK_LEVEL_SCORES: Dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
}

# ─────────────────────────────────────────────────────────────────────
# Presentation
# ─────────────────────────────────────────────────────────────────────
DEFAULT_CURRENCY = "CAD"

CURRENCY_SYMBOLS: Dict[str, str] = {
    "CAD": "$",
    "USD": "US$",
    "EUR": "€",
    "GBP": "£",
}

# Growth rates arrive from the API as percentages in this range
GROWTH_RATE_PERCENT_BOUNDS: Tuple[float, float] = (-100.0, 100.0)

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


def parse_api_tokens(raw: str) -> Dict[str, str]:
    """Parse ``token:advisor_id,token2:advisor_id2`` into a lookup dict."""
    tokens: Dict[str, str] = {}
    for pair in (raw or "").split(","):
        pair = pair.strip()
        if not pair:
            continue
        token, sep, advisor_id = pair.partition(":")
        if not sep or not token.strip() or not advisor_id.strip():
            raise ValueError(f"Malformed API_TOKENS entry: {pair!r}")
        tokens[token.strip()] = advisor_id.strip()
    return tokens


# ─────────────────────────────────────────────────────────────────────
# Runtime settings
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    assistant_max_tokens: int = 600
    assistant_timeout_seconds: float = 60.0
    database_url: str = ""                        # empty -> in-memory store
    seed_demo_data: bool = True
    context_cache_ttl_seconds: int = 300
    growth_normalisation_years: Optional[int] = None   # None -> value-weighted horizon
    api_tokens: Dict[str, str] = field(default_factory=dict)
    currency: str = DEFAULT_CURRENCY
    log_level: str = "INFO"

    @property
    def assistant_enabled(self) -> bool:
        return bool(self.anthropic_api_key)


def load_settings() -> Settings:
    """Build Settings from the process environment (and .env, if present)."""
    return Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        anthropic_model=os.getenv("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
        assistant_max_tokens=int(os.getenv("ASSISTANT_MAX_TOKENS", "600")),
        assistant_timeout_seconds=float(os.getenv("ASSISTANT_TIMEOUT_SECONDS", "60")),
        database_url=os.getenv("DATABASE_URL", ""),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        context_cache_ttl_seconds=int(os.getenv("CONTEXT_CACHE_TTL_SECONDS", "300")),
        growth_normalisation_years=_env_optional_int("GROWTH_NORMALISATION_YEARS"),
        api_tokens=parse_api_tokens(os.getenv("API_TOKENS", "demo-token:advisor-demo")),
        currency=os.getenv("CURRENCY", DEFAULT_CURRENCY),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )

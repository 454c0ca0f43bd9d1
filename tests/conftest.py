from datetime import date

import pytest

from config.clients import DEMO_ADVISOR_ID, demo_clients
from config.settings import Settings
from src.data.store import InMemoryStore
from src.models.domain import Principal

OTHER_ADVISOR_ID = "advisor-other"


@pytest.fixture
def settings():
    return Settings(
        anthropic_api_key="",
        api_tokens={"token-demo": DEMO_ADVISOR_ID, "token-other": OTHER_ADVISOR_ID},
        context_cache_ttl_seconds=0,
    )


@pytest.fixture
def store():
    return InMemoryStore(demo_clients())


@pytest.fixture
def principal():
    return Principal(advisor_id=DEMO_ADVISOR_ID)


@pytest.fixture
def other_principal():
    return Principal(advisor_id=OTHER_ADVISOR_ID)


@pytest.fixture
def today():
    return date(2026, 3, 1)

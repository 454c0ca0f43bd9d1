from datetime import date

import pytest

from config.clients import DEMO_ADVISOR_ID, demo_clients
from src.data.store import InMemoryStore, SqlStore, create_store, metadata
from src.errors import UpstreamFailure
from src.models.domain import ChatMessage, Client, Expense, Goal, IncomeSource
from tests.helpers import make_asset

OTHER = "advisor-other"


@pytest.fixture(params=["memory", "sql"])
def backend(request):
    if request.param == "memory":
        return InMemoryStore(demo_clients())
    return SqlStore("sqlite://", seed=demo_clients())


def test_list_is_scoped_to_advisor(backend):
    names = [c.name for c in backend.list_clients(DEMO_ADVISOR_ID)]
    assert names == sorted(names)
    assert "Sarah Johnson" in names
    assert backend.list_clients(OTHER) == []


def test_get_client_is_nested(backend):
    client = backend.get_client(DEMO_ADVISOR_ID, "sarah")
    assert client.date_of_birth == date(1984, 6, 12)
    assert len(client.assets) == 4
    assert len(client.income_sources) == 2
    assert len(client.expenses) == 3
    assert len(client.goals) == 2
    rrsp = next(a for a in client.assets if a.id == "sarah-rrsp")
    assert rrsp.growth_rate == pytest.approx(0.07)


def test_foreign_rows_are_invisible(backend):
    assert backend.get_client(OTHER, "sarah") is None
    assert backend.update_client(OTHER, "sarah", {"name": "Hijacked"}) is None
    assert backend.delete_client(OTHER, "sarah") is False
    assert backend.add_asset(OTHER, make_asset(1, 0.0, 1, client_id="sarah")) is None
    assert backend.add_income_source(OTHER, IncomeSource("x", "sarah", "Gift", 10)) is None
    assert backend.get_client(DEMO_ADVISOR_ID, "sarah").name == "Sarah Johnson"


def test_create_and_update_client(backend):
    backend.create_client(Client(id="new", advisor_id=OTHER, name="Nora Blake", email="nora@example.com"))
    updated = backend.update_client(OTHER, "new", {"risk_tolerance": "aggressive", "advisor_id": "sneaky"})
    assert updated.risk_tolerance == "aggressive"
    assert updated.advisor_id == OTHER
    assert [c.id for c in backend.list_clients(OTHER)] == ["new"]


def test_asset_lifecycle(backend):
    added = backend.add_asset(DEMO_ADVISOR_ID, make_asset(5000, 0.04, 3, asset_id="extra", client_id="emma"))
    assert added.id == "extra"

    updated = backend.update_asset(DEMO_ADVISOR_ID, "emma", "extra", {"current_value": 6000, "client_id": "sarah"})
    assert updated.current_value == 6000
    assert updated.client_id == "emma"

    assert backend.update_asset(DEMO_ADVISOR_ID, "emma", "missing", {"current_value": 1}) is None
    assert backend.delete_asset(DEMO_ADVISOR_ID, "emma", "extra") is True
    assert backend.delete_asset(DEMO_ADVISOR_ID, "emma", "extra") is False
    assert len(backend.get_client(DEMO_ADVISOR_ID, "emma").assets) == 3


def test_owned_rows(backend):
    backend.add_expense(DEMO_ADVISOR_ID, Expense("gym", "david", "Gym", 80))
    backend.add_goal(DEMO_ADVISOR_ID, Goal("boat", "david", "Boat", 90000, date(2030, 5, 1)))
    client = backend.get_client(DEMO_ADVISOR_ID, "david")
    assert "gym" in {e.id for e in client.expenses}
    assert next(g for g in client.goals if g.id == "boat").target_date == date(2030, 5, 1)


def test_delete_cascades(backend):
    backend.save_chat_messages([ChatMessage("m1", "michael", DEMO_ADVISOR_ID, "s1", "user", "hi")])
    assert backend.delete_client(DEMO_ADVISOR_ID, "michael") is True
    assert backend.get_client(DEMO_ADVISOR_ID, "michael") is None
    assert backend.list_chat_messages(DEMO_ADVISOR_ID, "michael") == []
    assert backend.add_asset(DEMO_ADVISOR_ID, make_asset(1, 0.0, 1, client_id="michael")) is None


def test_chat_messages_filtered_by_session(backend):
    backend.save_chat_messages([
        ChatMessage("m1", "sarah", DEMO_ADVISOR_ID, "s1", "user", "one"),
        ChatMessage("m2", "sarah", DEMO_ADVISOR_ID, "s2", "user", "two"),
    ])
    assert [m.content for m in backend.list_chat_messages(DEMO_ADVISOR_ID, "sarah", "s1")] == ["one"]
    assert len(backend.list_chat_messages(DEMO_ADVISOR_ID, "sarah")) == 2
    assert backend.list_chat_messages(OTHER, "sarah") == []


def test_sql_store_seeds_only_once(tmp_path):
    url = f"sqlite:///{tmp_path / 'wealthdesk.db'}"
    SqlStore(url, seed=demo_clients())
    reopened = SqlStore(url, seed=demo_clients())
    assert len(reopened.list_clients(DEMO_ADVISOR_ID)) == 4


def test_create_store_picks_backend():
    assert isinstance(create_store(""), InMemoryStore)
    assert isinstance(create_store("sqlite://"), SqlStore)


def test_failed_create_rolls_back_the_whole_client():
    store = SqlStore("sqlite://")
    client = Client(id="nora", advisor_id=OTHER, name="Nora Blake", email="nora@example.com")
    client.assets = [
        make_asset(1000, 0.05, 5, asset_id="dup", client_id="nora"),
        make_asset(2000, 0.05, 5, asset_id="dup", client_id="nora"),
    ]

    with pytest.raises(UpstreamFailure) as exc:
        store.create_client(client)
    assert exc.value.message == "Storage is unavailable."
    assert store.get_client(OTHER, "nora") is None
    assert store.list_clients(OTHER) == []


def test_database_errors_surface_as_upstream_failure():
    store = SqlStore("sqlite://", seed=demo_clients())
    metadata.drop_all(store.engine)

    with pytest.raises(UpstreamFailure):
        store.list_clients(DEMO_ADVISOR_ID)
    with pytest.raises(UpstreamFailure):
        store.update_client(DEMO_ADVISOR_ID, "sarah", {"name": "Sally"})

"""
WealthDesk — Client Store

Owner-scoped persistence for clients and everything they own. Every read and
write is filtered by the advisor id; a row that exists under another advisor
is indistinguishable from a row that does not exist.

Two backends:
    - InMemoryStore : dicts, optionally seeded with the demo book
    - SqlStore      : SQLAlchemy Core on any database URL
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, Integer, MetaData, String, Table, Text,
    and_, create_engine, delete, insert, select, update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from src.errors import UpstreamFailure
from src.models.domain import Asset, ChatMessage, Client, Expense, Goal, IncomeSource

logger = logging.getLogger(__name__)

CLIENT_PROFILE_FIELDS = {
    f.name for f in fields(Client)
} - {"id", "advisor_id", "assets", "income_sources", "expenses", "goals", "created_at", "updated_at"}

ASSET_MUTABLE_FIELDS = {"name", "asset_type", "current_value", "purchase_price", "growth_rate", "projection_years"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ClientStore(ABC):
    """Row-level CRUD scoped to the owning advisor."""

    @abstractmethod
    def list_clients(self, advisor_id: str) -> List[Client]: ...

    @abstractmethod
    def get_client(self, advisor_id: str, client_id: str) -> Optional[Client]:
        """Client with nested assets / income / expenses / goals, or None."""

    @abstractmethod
    def create_client(self, client: Client) -> Client: ...

    @abstractmethod
    def update_client(self, advisor_id: str, client_id: str, changes: Dict[str, Any]) -> Optional[Client]: ...

    @abstractmethod
    def delete_client(self, advisor_id: str, client_id: str) -> bool:
        """Removes the client and everything it owns."""

    @abstractmethod
    def add_asset(self, advisor_id: str, asset: Asset) -> Optional[Asset]: ...

    @abstractmethod
    def update_asset(self, advisor_id: str, client_id: str, asset_id: str,
                     changes: Dict[str, Any]) -> Optional[Asset]: ...

    @abstractmethod
    def delete_asset(self, advisor_id: str, client_id: str, asset_id: str) -> bool: ...

    @abstractmethod
    def add_income_source(self, advisor_id: str, item: IncomeSource) -> Optional[IncomeSource]: ...

    @abstractmethod
    def add_expense(self, advisor_id: str, item: Expense) -> Optional[Expense]: ...

    @abstractmethod
    def add_goal(self, advisor_id: str, item: Goal) -> Optional[Goal]: ...

    @abstractmethod
    def save_chat_messages(self, messages: Iterable[ChatMessage]) -> None: ...

    @abstractmethod
    def list_chat_messages(self, advisor_id: str, client_id: str,
                           session_id: Optional[str] = None) -> List[ChatMessage]: ...


# ─────────────────────────────────────────────────────────────────────
# In-memory backend
# ─────────────────────────────────────────────────────────────────────

class InMemoryStore(ClientStore):

    def __init__(self, clients: Optional[Iterable[Client]] = None):
        self._clients: Dict[str, Client] = {}
        self._chat: List[ChatMessage] = []
        for client in clients or []:
            self._clients[client.id] = copy.deepcopy(client)

    def _owned(self, advisor_id: str, client_id: str) -> Optional[Client]:
        client = self._clients.get(client_id)
        if client is None or client.advisor_id != advisor_id:
            return None
        return client

    def list_clients(self, advisor_id):
        owned = [c for c in self._clients.values() if c.advisor_id == advisor_id]
        return [copy.deepcopy(c) for c in sorted(owned, key=lambda c: c.name)]

    def get_client(self, advisor_id, client_id):
        client = self._owned(advisor_id, client_id)
        return copy.deepcopy(client) if client else None

    def create_client(self, client):
        self._clients[client.id] = copy.deepcopy(client)
        return copy.deepcopy(client)

    def update_client(self, advisor_id, client_id, changes):
        client = self._owned(advisor_id, client_id)
        if client is None:
            return None
        for key, value in changes.items():
            if key in CLIENT_PROFILE_FIELDS:
                setattr(client, key, value)
        client.updated_at = _now()
        return copy.deepcopy(client)

    def delete_client(self, advisor_id, client_id):
        if self._owned(advisor_id, client_id) is None:
            return False
        del self._clients[client_id]
        self._chat = [m for m in self._chat if m.client_id != client_id]
        return True

    def add_asset(self, advisor_id, asset):
        client = self._owned(advisor_id, asset.client_id)
        if client is None:
            return None
        client.assets.append(copy.deepcopy(asset))
        return copy.deepcopy(asset)

    def update_asset(self, advisor_id, client_id, asset_id, changes):
        client = self._owned(advisor_id, client_id)
        if client is None:
            return None
        for i, asset in enumerate(client.assets):
            if asset.id == asset_id:
                allowed = {k: v for k, v in changes.items() if k in ASSET_MUTABLE_FIELDS}
                client.assets[i] = replace(asset, updated_at=_now(), **allowed)
                return copy.deepcopy(client.assets[i])
        return None

    def delete_asset(self, advisor_id, client_id, asset_id):
        client = self._owned(advisor_id, client_id)
        if client is None:
            return False
        before = len(client.assets)
        client.assets = [a for a in client.assets if a.id != asset_id]
        return len(client.assets) < before

    def _append(self, advisor_id, item, attr):
        client = self._owned(advisor_id, item.client_id)
        if client is None:
            return None
        getattr(client, attr).append(copy.deepcopy(item))
        return copy.deepcopy(item)

    def add_income_source(self, advisor_id, item):
        return self._append(advisor_id, item, "income_sources")

    def add_expense(self, advisor_id, item):
        return self._append(advisor_id, item, "expenses")

    def add_goal(self, advisor_id, item):
        return self._append(advisor_id, item, "goals")

    def save_chat_messages(self, messages):
        self._chat.extend(copy.deepcopy(m) for m in messages)

    def list_chat_messages(self, advisor_id, client_id, session_id=None):
        return [
            copy.deepcopy(m) for m in self._chat
            if m.advisor_id == advisor_id and m.client_id == client_id
            and (session_id is None or m.session_id == session_id)
        ]


# ─────────────────────────────────────────────────────────────────────
# SQL backend
# ─────────────────────────────────────────────────────────────────────

metadata = MetaData()

clients_table = Table(
    "clients", metadata,
    Column("id", String(64), primary_key=True),
    Column("advisor_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("email", String(200), nullable=False),
    Column("risk_tolerance", String(32), nullable=False),
    Column("annual_income", Float),
    Column("net_worth", Float),
    Column("date_of_birth", Date),
    Column("occupation", String(200)),
    Column("marital_status", String(32)),
    Column("dependents", Integer),
    Column("notes", Text),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

assets_table = Table(
    "assets", metadata,
    Column("id", String(64), primary_key=True),
    Column("client_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("asset_type", String(32), nullable=False),
    Column("current_value", Float, nullable=False),
    Column("purchase_price", Float),
    Column("growth_rate", Float, nullable=False),
    Column("projection_years", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

income_table = Table(
    "income_sources", metadata,
    Column("id", String(64), primary_key=True),
    Column("client_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("amount", Float, nullable=False),
    Column("frequency", String(16), nullable=False),
    Column("is_active", Boolean, nullable=False),
)

expenses_table = Table(
    "expenses", metadata,
    Column("id", String(64), primary_key=True),
    Column("client_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("amount", Float, nullable=False),
    Column("frequency", String(16), nullable=False),
    Column("is_active", Boolean, nullable=False),
    Column("category", String(64)),
)

goals_table = Table(
    "goals", metadata,
    Column("id", String(64), primary_key=True),
    Column("client_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("target_amount", Float, nullable=False),
    Column("target_date", Date),
    Column("priority", String(16), nullable=False),
)

chat_table = Table(
    "chat_messages", metadata,
    Column("id", String(64), primary_key=True),
    Column("client_id", String(64), nullable=False, index=True),
    Column("advisor_id", String(64), nullable=False),
    Column("session_id", String(64), nullable=False, index=True),
    Column("role", String(16), nullable=False),
    Column("content", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

CHILD_TABLES = (
    (assets_table, Asset, "assets"),
    (income_table, IncomeSource, "income_sources"),
    (expenses_table, Expense, "expenses"),
    (goals_table, Goal, "goals"),
)


def _row_values(record) -> Dict[str, Any]:
    return {f.name: getattr(record, f.name) for f in fields(record)}


class SqlStore(ClientStore):
    """SQLAlchemy Core implementation. Each write runs in one transaction."""

    def __init__(self, url: str = "sqlite://", engine: Optional[Engine] = None,
                 seed: Optional[Iterable[Client]] = None):
        if engine is None:
            kwargs: Dict[str, Any] = {"future": True}
            if url.startswith("sqlite"):
                kwargs["connect_args"] = {"check_same_thread": False}
                if url in ("sqlite://", "sqlite:///:memory:"):
                    kwargs["poolclass"] = StaticPool
            else:
                kwargs["pool_pre_ping"] = True
            engine = create_engine(url, **kwargs)
        self.engine = engine
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error("Could not initialise tables: %s", e, exc_info=True)
            raise UpstreamFailure("Storage is unavailable.") from e
        if seed and self._is_empty():
            for client in seed:
                self.create_client(client)

    # -- helpers ------------------------------------------------------

    def _run(self, fn):
        try:
            return fn()
        except SQLAlchemyError as e:
            logger.error("Store operation failed: %s", e, exc_info=True)
            raise UpstreamFailure("Storage is unavailable.") from e

    def _is_empty(self) -> bool:
        def op():
            with self.engine.connect() as conn:
                return conn.execute(select(clients_table.c.id).limit(1)).first() is None
        return self._run(op)

    @staticmethod
    def _owned_clause(advisor_id: str, client_id: str):
        return and_(clients_table.c.id == client_id, clients_table.c.advisor_id == advisor_id)

    def _is_owned(self, conn, advisor_id: str, client_id: str) -> bool:
        row = conn.execute(
            select(clients_table.c.id).where(self._owned_clause(advisor_id, client_id))
        ).first()
        return row is not None

    def _load_children(self, conn, client: Client) -> Client:
        for table, cls, attr in CHILD_TABLES:
            rows = conn.execute(select(table).where(table.c.client_id == client.id)).mappings().all()
            setattr(client, attr, [cls(**dict(r)) for r in rows])
        return client

    def _load_client(self, conn, advisor_id: str, client_id: str) -> Optional[Client]:
        row = conn.execute(
            select(clients_table).where(self._owned_clause(advisor_id, client_id))
        ).mappings().first()
        if row is None:
            return None
        return self._load_children(conn, Client(**dict(row)))

    # -- clients ------------------------------------------------------

    def list_clients(self, advisor_id):
        def op():
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(clients_table)
                    .where(clients_table.c.advisor_id == advisor_id)
                    .order_by(clients_table.c.name)
                ).mappings().all()
                return [self._load_children(conn, Client(**dict(r))) for r in rows]
        return self._run(op)

    def get_client(self, advisor_id, client_id):
        def op():
            with self.engine.connect() as conn:
                return self._load_client(conn, advisor_id, client_id)
        return self._run(op)

    def create_client(self, client):
        def op():
            values = client.profile_dict()
            with self.engine.begin() as conn:
                conn.execute(insert(clients_table).values(**values))
                for table, _, attr in CHILD_TABLES:
                    children = getattr(client, attr)
                    if children:
                        conn.execute(insert(table), [_row_values(c) for c in children])
                return self._load_client(conn, client.advisor_id, client.id)
        return self._run(op)

    def update_client(self, advisor_id, client_id, changes):
        def op():
            values = {k: v for k, v in changes.items() if k in CLIENT_PROFILE_FIELDS}
            values["updated_at"] = _now()
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(clients_table).where(self._owned_clause(advisor_id, client_id)).values(**values)
                )
                if result.rowcount == 0:
                    return None
                return self._load_client(conn, advisor_id, client_id)
        return self._run(op)

    def delete_client(self, advisor_id, client_id):
        def op():
            with self.engine.begin() as conn:
                if not self._is_owned(conn, advisor_id, client_id):
                    return False
                for table, _, _ in CHILD_TABLES:
                    conn.execute(delete(table).where(table.c.client_id == client_id))
                conn.execute(delete(chat_table).where(chat_table.c.client_id == client_id))
                conn.execute(delete(clients_table).where(clients_table.c.id == client_id))
                return True
        return self._run(op)

    # -- owned rows ---------------------------------------------------

    def _insert_child(self, advisor_id, table, item):
        def op():
            with self.engine.begin() as conn:
                if not self._is_owned(conn, advisor_id, item.client_id):
                    return None
                conn.execute(insert(table).values(**_row_values(item)))
                return item
        return self._run(op)

    def add_asset(self, advisor_id, asset):
        return self._insert_child(advisor_id, assets_table, asset)

    def update_asset(self, advisor_id, client_id, asset_id, changes):
        def op():
            values = {k: v for k, v in changes.items() if k in ASSET_MUTABLE_FIELDS}
            values["updated_at"] = _now()
            with self.engine.begin() as conn:
                if not self._is_owned(conn, advisor_id, client_id):
                    return None
                where = and_(assets_table.c.id == asset_id, assets_table.c.client_id == client_id)
                result = conn.execute(update(assets_table).where(where).values(**values))
                if result.rowcount == 0:
                    return None
                row = conn.execute(select(assets_table).where(where)).mappings().first()
                return Asset(**dict(row))
        return self._run(op)

    def delete_asset(self, advisor_id, client_id, asset_id):
        def op():
            with self.engine.begin() as conn:
                if not self._is_owned(conn, advisor_id, client_id):
                    return False
                result = conn.execute(delete(assets_table).where(and_(
                    assets_table.c.id == asset_id, assets_table.c.client_id == client_id,
                )))
                return result.rowcount > 0
        return self._run(op)

    def add_income_source(self, advisor_id, item):
        return self._insert_child(advisor_id, income_table, item)

    def add_expense(self, advisor_id, item):
        return self._insert_child(advisor_id, expenses_table, item)

    def add_goal(self, advisor_id, item):
        return self._insert_child(advisor_id, goals_table, item)

    # -- chat history -------------------------------------------------

    def save_chat_messages(self, messages):
        rows = [_row_values(m) for m in messages]
        if not rows:
            return

        def op():
            with self.engine.begin() as conn:
                conn.execute(insert(chat_table), rows)
        self._run(op)

    def list_chat_messages(self, advisor_id, client_id, session_id=None):
        def op():
            query = select(chat_table).where(and_(
                chat_table.c.advisor_id == advisor_id, chat_table.c.client_id == client_id,
            ))
            if session_id is not None:
                query = query.where(chat_table.c.session_id == session_id)
            with self.engine.connect() as conn:
                rows = conn.execute(query.order_by(chat_table.c.created_at)).mappings().all()
                return [ChatMessage(**dict(r)) for r in rows]
        return self._run(op)


def create_store(database_url: str = "", seed: Optional[Iterable[Client]] = None) -> ClientStore:
    """In-memory when no URL is configured, SQL otherwise."""
    if not database_url:
        logger.info("Using in-memory client store")
        return InMemoryStore(seed)
    logger.info("Using SQL client store")
    return SqlStore(database_url, seed=seed)

"""Shared pytest fixtures: in-memory collaborators and a throwaway database."""

import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_JSON", "false")

import random
from typing import Dict, List
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pos_edge.core.errors import DuplicateCodeError, RepositoryUnavailableError
from pos_edge.db.base import Base
from pos_edge.db.models.categories import Category  # noqa: F401
from pos_edge.db.models.line_items import LineItem  # noqa: F401
from pos_edge.db.models.payments import Payment  # noqa: F401
from pos_edge.db.models.products import Product  # noqa: F401
from pos_edge.db.models.stock_items import StockItem  # noqa: F401
from pos_edge.db.models.transactions import Transaction  # noqa: F401
from pos_edge.domain.checkout.records import PersistedTransaction, TransactionRecord
from pos_edge.domain.codes.generator import CodeNamespace


class FakeCodeRepository:
    """In-memory ``CodeRepository`` with switchable failures."""

    def __init__(self, codes: Dict[str, List[str]] = None):
        self.codes = {CodeNamespace(k): list(v) for k, v in (codes or {}).items()}
        self.fail_lookups = False
        self.fail_exists = False
        # number of upcoming exists_code calls forced to report a collision
        self.forced_collisions = 0
        self.exists_calls: List[str] = []
        self.lookup_calls: List[str] = []

    def add(self, namespace, code: str) -> None:
        self.codes.setdefault(CodeNamespace(namespace), []).append(code)

    async def find_codes_by_prefix(self, namespace, prefix: str) -> List[str]:
        self.lookup_calls.append(prefix)
        if self.fail_lookups:
            raise RepositoryUnavailableError("lookup down")
        existing = self.codes.get(CodeNamespace(namespace), [])
        return sorted(
            (c for c in existing if c.upper().startswith(prefix.upper())),
            reverse=True,
        )

    async def exists_code(self, namespace, candidate: str) -> bool:
        self.exists_calls.append(candidate)
        if self.fail_exists:
            raise RepositoryUnavailableError("exists down")
        if self.forced_collisions > 0:
            self.forced_collisions -= 1
            return True
        return candidate in self.codes.get(CodeNamespace(namespace), [])


class FakeTransactionStore:
    """Records persisted transactions; can refuse order numbers or fail outright."""

    def __init__(self, codes: FakeCodeRepository = None):
        self.codes = codes
        self.records: List[TransactionRecord] = []
        self.duplicates_to_raise = 0
        self.unavailable = False

    async def persist_transaction(self, record: TransactionRecord) -> PersistedTransaction:
        if self.unavailable:
            raise RepositoryUnavailableError("store down")
        if self.duplicates_to_raise > 0:
            self.duplicates_to_raise -= 1
            raise DuplicateCodeError(f"{record.order_number} taken")
        self.records.append(record)
        if self.codes is not None:
            self.codes.add(CodeNamespace.ORDER, record.order_number)
        return PersistedTransaction(order_id=uuid4(), order_number=record.order_number, record=record)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def code_repo():
    return FakeCodeRepository()


@pytest.fixture
def transaction_store(code_repo):
    return FakeTransactionStore(code_repo)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session

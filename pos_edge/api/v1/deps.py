# pos_edge/api/v1/deps.py
from typing import Dict
from uuid import UUID, uuid4

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pos_edge.core.config import settings
from pos_edge.core.errors import NotFoundError
from pos_edge.db.base import get_db
from pos_edge.db.repositories.codes import SqlCodeRepository
from pos_edge.db.repositories.transactions import SqlTransactionStore
from pos_edge.domain.codes.generator import CodeGenerator
from pos_edge.domain.checkout.service import CheckoutSession


class CheckoutRegistry:
    """Open checkout sessions of this terminal, by id."""

    def __init__(self):
        self._sessions: Dict[UUID, CheckoutSession] = {}

    def open(self, session: CheckoutSession) -> UUID:
        session_id = uuid4()
        self._sessions[session_id] = session
        return session_id

    def get(self, session_id: UUID) -> CheckoutSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Checkout session {session_id} not found")
        return session

    def replace(self, session_id: UUID, session: CheckoutSession) -> None:
        self._sessions[session_id] = session

    def close(self, session_id: UUID) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


def get_registry(request: Request) -> CheckoutRegistry:
    return request.app.state.checkouts


def get_code_generator(db: AsyncSession = Depends(get_db)) -> CodeGenerator:
    return CodeGenerator(
        SqlCodeRepository(db),
        max_attempts=settings.CODE_MAX_ATTEMPTS,
        strict=settings.CODE_LOOKUP_STRICT,
    )


def get_transaction_store(db: AsyncSession = Depends(get_db)) -> SqlTransactionStore:
    return SqlTransactionStore(db)

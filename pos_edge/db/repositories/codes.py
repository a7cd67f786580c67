# pos_edge/db/repositories/codes.py
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_edge.core.errors import RepositoryUnavailableError
from pos_edge.db.models.categories import Category
from pos_edge.db.models.products import Product
from pos_edge.db.models.transactions import Transaction
from pos_edge.domain.codes.generator import CodeNamespace

CODE_COLUMNS = {
    CodeNamespace.CATEGORY: Category.code,
    CodeNamespace.SKU: Product.sku,
    CodeNamespace.ORDER: Transaction.order_number,
}


async def find_codes_by_prefix(
    db: AsyncSession,
    namespace: CodeNamespace,
    prefix: str,
) -> List[str]:
    column = CODE_COLUMNS[CodeNamespace(namespace)]
    try:
        result = await db.execute(
            select(column)
            .where(column.istartswith(prefix, autoescape=True))
            .order_by(column.desc())
        )
    except SQLAlchemyError as exc:
        raise RepositoryUnavailableError(f"Code lookup failed for {prefix!r}") from exc
    return list(result.scalars().all())


async def exists_code(
    db: AsyncSession,
    namespace: CodeNamespace,
    candidate: str,
) -> bool:
    column = CODE_COLUMNS[CodeNamespace(namespace)]
    try:
        result = await db.execute(select(column).where(column == candidate).limit(1))
    except SQLAlchemyError as exc:
        raise RepositoryUnavailableError(f"Existence check failed for {candidate!r}") from exc
    return result.scalar_one_or_none() is not None


class SqlCodeRepository:
    """``CodeRepository`` backed by the catalog and transaction tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_codes_by_prefix(self, namespace: CodeNamespace, prefix: str) -> List[str]:
        return await find_codes_by_prefix(self.db, namespace, prefix)

    async def exists_code(self, namespace: CodeNamespace, candidate: str) -> bool:
        return await exists_code(self.db, namespace, candidate)

"""
Generic typed repository
========================

One instance per entity replaces ad-hoc collection/field string lookups.
Capabilities: get-by-id, query-by-equality, create, update, delete,
batch delete and a conditional ``claim`` (compare-and-swap UPDATE).

Writes only flush; callers own the transaction and commit.
Reads use ``populate_existing`` so objects already in the identity map are
refreshed after bulk/conditional UPDATEs issued through this class.
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from farmportal.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)

OrderBy = Union[str, Sequence[str], None]


class Repository(Generic[ModelType]):
    """Typed accessor for one table"""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    # ==================== READS ====================

    def _column(self, name: str):
        try:
            return getattr(self.model, name)
        except AttributeError:
            raise ValueError(f"{self.model.__name__} has no field '{name}'")

    def _conditions(self, equals: Dict[str, Any]) -> List[Any]:
        conditions = []
        for field, value in equals.items():
            column = self._column(field)
            if isinstance(value, (list, tuple, set)):
                conditions.append(column.in_(list(value)))
            elif value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == value)
        return conditions

    def _order(self, order_by: OrderBy) -> List[Any]:
        if not order_by:
            return []
        names = [order_by] if isinstance(order_by, str) else list(order_by)
        clauses = []
        for name in names:
            descending = name.startswith("-")
            column = self._column(name.lstrip("-"))
            clauses.append(column.desc() if descending else column.asc())
        return clauses

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        if id is None:
            return None
        return await db.get(self.model, id, populate_existing=True)

    async def find_by(
        self,
        db: AsyncSession,
        order_by: OrderBy = None,
        limit: Optional[int] = None,
        **equals: Any,
    ) -> List[ModelType]:
        """Query by field equality; a list/tuple value means IN, None means IS NULL"""
        query = (
            select(self.model)
            .where(*self._conditions(equals))
            .order_by(*self._order(order_by))
            .execution_options(populate_existing=True)
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_all(self, db: AsyncSession, order_by: OrderBy = None) -> List[ModelType]:
        return await self.find_by(db, order_by=order_by)

    async def first_by(self, db: AsyncSession, order_by: OrderBy = None, **equals: Any) -> Optional[ModelType]:
        rows = await self.find_by(db, order_by=order_by, limit=1, **equals)
        return rows[0] if rows else None

    async def exists(self, db: AsyncSession, **equals: Any) -> bool:
        return await self.first_by(db, **equals) is not None

    async def count(self, db: AsyncSession, **equals: Any) -> int:
        query = select(func.count()).select_from(self.model).where(*self._conditions(equals))
        result = await db.execute(query)
        return int(result.scalar() or 0)

    # ==================== WRITES ====================

    async def create(self, db: AsyncSession, **values: Any) -> ModelType:
        obj = self.model(**values)
        db.add(obj)
        await db.flush()
        return obj

    async def update(self, db: AsyncSession, id: Any, **values: Any) -> bool:
        """Unconditional update by primary key; returns whether a row matched"""
        return await self.claim(db, id, expected={}, **values)

    async def claim(self, db: AsyncSession, id: Any, expected: Dict[str, Any], **values: Any) -> bool:
        """
        Compare-and-swap: apply ``values`` only if every ``expected`` field still
        holds its value. Returns True when this call won the row.
        """
        if "updated_at" not in values and hasattr(self.model, "updated_at"):
            values["updated_at"] = datetime.utcnow()
        pk = self.model.__mapper__.primary_key[0]
        stmt = (
            update(self.model)
            .where(pk == id, *self._conditions(expected))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def update_where(self, db: AsyncSession, where: Dict[str, Any], **values: Any) -> int:
        stmt = (
            update(self.model)
            .where(*self._conditions(where))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount

    async def delete(self, db: AsyncSession, id: Any) -> bool:
        pk = self.model.__mapper__.primary_key[0]
        result = await db.execute(
            delete(self.model).where(pk == id).execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete_where(self, db: AsyncSession, **equals: Any) -> int:
        """Batch delete by equality"""
        result = await db.execute(
            delete(self.model).where(*self._conditions(equals)).execution_options(synchronize_session=False)
        )
        return result.rowcount

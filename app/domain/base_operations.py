import uuid as uuid_pkg
from datetime import UTC, datetime
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


def _touch(db_obj: SQLModel) -> None:
    if hasattr(db_obj, "updated_at"):
        db_obj.updated_at = datetime.now(UTC)


class BaseOperations(Generic[ModelType]):
    """Base CRUD operations for all models."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: uuid_pkg.UUID) -> ModelType | None:
        """Get a single record by ID."""
        statement = select(self.model).where(self.model.id == id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_merchant(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        id: uuid_pkg.UUID,
    ) -> ModelType | None:
        """Get a record by ID, scoped to the owning merchant."""
        statement = select(self.model).where(
            self.model.id == id,
            self.model.merchant_id == merchant_id,
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_multi_by_merchant(
        self,
        db: AsyncSession,
        merchant_id: uuid_pkg.UUID,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ModelType]:
        """Get multiple records for a merchant with pagination."""
        statement = (
            select(self.model)
            .where(self.model.merchant_id == merchant_id)
            .offset(skip)
            .limit(limit)
            .order_by(self.model.created_at.desc())
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def update(
        self,
        db: AsyncSession,
        db_obj: ModelType,
        obj_in: dict,
    ) -> ModelType:
        """Update an existing record.

        All keys in obj_in are applied, including None values.
        Callers should use model_dump(exclude_unset=True) to omit
        fields that were not explicitly provided.
        """
        for field, value in obj_in.items():
            setattr(db_obj, field, value)
        _touch(db_obj)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def save(self, db: AsyncSession, db_obj: ModelType) -> ModelType:
        """Flush in-memory changes made to a record by the rules engine."""
        _touch(db_obj)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

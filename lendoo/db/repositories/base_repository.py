"""
Base repository - generic CRUD interface over one model.
All statements go through ``execute`` so storage outages surface as TransientError.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lendoo.core.exceptions import translate_storage_error
from lendoo.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


def _reraise(exc: Exception):
    translated = translate_storage_error(exc)
    if translated is exc:
        raise exc
    raise translated from exc


class BaseRepository(Generic[ModelType]):
    """Generic async repository. Subclasses define model-specific methods."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        self.session = session
        self.model = model

    async def execute(self, statement, **kwargs: Any):
        """Run a statement, translating connection failures into TransientError."""
        try:
            return await self.session.execute(statement, **kwargs)
        except SQLAlchemyError as exc:
            _reraise(exc)

    async def flush(self) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            _reraise(exc)

    async def get_by_id(self, id: int, *, fresh: bool = False) -> ModelType | None:
        """Fetch single entity by primary key. ``fresh`` overwrites any stale identity-map copy."""
        stmt = select(self.model).where(self.model.id == id)
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(
        self,
        *,
        skip: int = 0,
        limit: int = 20,
    ) -> list[ModelType]:
        """Paginated list. Avoids loading full table."""
        result = await self.execute(
            select(self.model).offset(skip).limit(limit).order_by(self.model.id)
        )
        return list(result.scalars().all())

    async def add(self, entity: ModelType) -> ModelType:
        """Persist new entity. Caller commits session."""
        self.session.add(entity)
        await self.flush()  # Get ID without committing
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: ModelType) -> None:
        """Remove entity from DB."""
        await self.session.delete(entity)
        await self.flush()

"""Generic repository bound to one SQLModel table and one session."""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    Shared persistence helpers.

    Nothing here commits; the owner of the session decides when the unit of
    work ends.
    """

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def add(self, obj: ModelType) -> ModelType:
        """Insert ``obj`` and reload it so generated keys and defaults are set."""
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Row with primary key ``id``, read from the database."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    async def count(self, *conditions: ColumnElement[bool]) -> int:
        """Number of rows matching every condition."""
        query = select(func.count()).select_from(self.model)
        if conditions:
            query = query.where(*conditions)
        return await self.session.scalar(query) or 0

    async def delete(self, obj: ModelType) -> None:
        """Delete ``obj``; dependent rows go through ON DELETE CASCADE."""
        await self.session.delete(obj)
        await self.session.flush()

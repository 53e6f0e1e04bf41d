import uuid
from typing import Sequence
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.bhajans.models import Bhajan

# Never written through update().
_IMMUTABLE = frozenset({"id", "created_at"})

class BhajanRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Bhajan:
        obj = Bhajan(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, bhajan_id: uuid.UUID) -> Bhajan | None:
        q = select(Bhajan).where(Bhajan.id == bhajan_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(self, limit: int | None = None, offset: int = 0) -> Sequence[Bhajan]:
        q = select(Bhajan).order_by(Bhajan.created_at.desc(), Bhajan.id).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def update(self, bhajan_id: uuid.UUID, **changes) -> Bhajan | None:
        obj = await self.get(bhajan_id)
        if not obj:
            return None
        for k, v in changes.items():
            if k in _IMMUTABLE:
                continue
            setattr(obj, k, v)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, bhajan_id: uuid.UUID) -> bool:
        res = await self.session.execute(delete(Bhajan).where(Bhajan.id == bhajan_id))
        await self.session.flush()
        return res.rowcount > 0

from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import delete, or_, select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.features.favicons.models.favicon import Favicon
from app.features.favicons.schemas.favicon import CachedFavicon, FaviconSummary
from app.platform.db.session import utcnow

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class FaviconRepository:
    """
    Persistent favicon cache keyed by canonical host.

    With ``ttl`` set, rows carry an expiry: reads skip stale rows and
    ``cleanup_expired`` deletes them. With ``ttl=None`` rows never expire.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.ttl = ttl
        self.clock = clock

    @property
    def expires(self) -> bool:
        return self.ttl is not None

    async def get(self, domain: str) -> Optional[CachedFavicon]:
        query = select(Favicon.data, Favicon.content_type).where(Favicon.domain == domain)
        if self.expires:
            query = query.where(or_(Favicon.expires_at.is_(None), Favicon.expires_at > self.clock()))

        async with self.session_factory() as session:
            result = await session.execute(query)
            row = result.first()

        if row is None:
            return None
        return CachedFavicon(data=row.data, content_type=row.content_type)

    async def save(self, domain: str, data: bytes, content_type: str) -> None:
        now = self.clock()
        values = {
            "domain": domain,
            "data": data,
            "content_type": content_type,
            "created_at": now,
            "updated_at": now,
            "expires_at": now + self.ttl if self.expires else None,
        }

        async with self.session_factory() as session:
            stmt = self._upsert(session, values)
            await session.execute(stmt)
            await session.commit()

    async def list(self) -> List[FaviconSummary]:
        query = (
            select(Favicon.domain, Favicon.content_type, Favicon.created_at)
            .order_by(Favicon.created_at.desc(), Favicon.id.desc())
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [FaviconSummary.model_validate(row) for row in result.all()]

    async def cleanup_expired(self) -> int:
        if not self.expires:
            return 0

        stmt = delete(Favicon).where(
            Favicon.expires_at.is_not(None),
            Favicon.expires_at <= self.clock(),
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount or 0

    async def ping(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    @staticmethod
    def _upsert(session: AsyncSession, values: dict):
        dialect = session.bind.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")

        stmt = insert(Favicon).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[Favicon.domain],
            set_={key: stmt.excluded[key] for key in values if key != "domain"},
        )

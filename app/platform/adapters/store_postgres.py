import logging
import uuid
from typing import Any, Sequence
from sqlalchemy import String, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Mapped, mapped_column
from app.core.base import Base, TimestampedMixin
from app.core.db import make_engine, make_sessionmaker, init_models
from app.platform.ports.document_store import DocumentStorePort, Direction, OrderingUnavailable

log = logging.getLogger("store.postgres")

class Document(Base, TimestampedMixin):
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    collection: Mapped[str] = mapped_column(String(64), index=True)
    data: Mapped[dict] = mapped_column(JSONB, default=dict)

class PostgresDocumentStore(DocumentStorePort):
    """Collections of JSONB documents in a single table."""

    def __init__(self, dsn: str):
        self.engine = make_engine(dsn)
        self.sessions = make_sessionmaker(self.engine)

    async def init(self):
        await init_models(self.engine)

    async def close(self):
        await self.engine.dispose()

    async def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        body = {k: v for k, v in data.items() if k != "id"}
        async with self.sessions() as s:
            s.add(Document(id=doc_id, collection=collection, data=body))
            await s.commit()
        return doc_id

    async def _row(self, s, collection: str, doc_id: str) -> Document | None:
        res = await s.execute(select(Document).where(
            Document.collection == collection, Document.id == doc_id
        ))
        return res.scalar_one_or_none()

    async def get(self, collection: str, doc_id: str) -> dict | None:
        async with self.sessions() as s:
            row = await self._row(s, collection, doc_id)
            if row is None:
                return None
            return {"id": row.id, **row.data}

    async def update(self, collection: str, doc_id: str, data: dict) -> bool:
        async with self.sessions() as s:
            row = await self._row(s, collection, doc_id)
            if row is None:
                return False
            # reassign so the JSONB column is flagged dirty
            row.data = {**row.data, **{k: v for k, v in data.items() if k != "id"}}
            await s.commit()
            return True

    async def query(
        self,
        collection: str,
        where: Sequence[tuple[str, Any]] = (),
        order_by: tuple[str, Direction] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        q = select(Document).where(Document.collection == collection)
        for field, value in where:
            q = q.where(Document.data.contains({field: value}))
        if order_by is not None:
            field, direction = order_by
            col = Document.data[field].astext
            q = q.order_by(col.desc().nulls_last() if direction == "desc" else col.asc().nulls_first())
        if limit is not None:
            q = q.limit(limit)
        async with self.sessions() as s:
            try:
                res = await s.execute(q)
            except DBAPIError as e:
                if order_by is None:
                    raise
                log.warning(f"ordered query on {collection} failed: {e}")
                raise OrderingUnavailable(str(e)) from e
            return [{"id": row.id, **row.data} for row in res.scalars().all()]

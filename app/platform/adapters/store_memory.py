import copy
import logging
import uuid
from typing import Any, Sequence
from app.platform.ports.document_store import DocumentStorePort, Direction, OrderingUnavailable

log = logging.getLogger("store.memory")

class InMemoryDocumentStore(DocumentStorePort):
    """
    Process-local document store for local runs and tests.
    With supports_ordering=False every ordered query raises OrderingUnavailable,
    which mimics a hosted store whose composite index has not been built.
    """
    def __init__(self, supports_ordering: bool = True):
        self.supports_ordering = supports_ordering
        self._collections: dict[str, dict[str, dict]] = {}

    def _bucket(self, collection: str) -> dict[str, dict]:
        return self._collections.setdefault(collection, {})

    async def add(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        body = copy.deepcopy(data)
        body.pop("id", None)
        self._bucket(collection)[doc_id] = body
        log.debug(f"add collection={collection} id={doc_id}")
        return doc_id

    async def get(self, collection: str, doc_id: str) -> dict | None:
        body = self._bucket(collection).get(doc_id)
        if body is None:
            return None
        return {"id": doc_id, **copy.deepcopy(body)}

    async def update(self, collection: str, doc_id: str, data: dict) -> bool:
        bucket = self._bucket(collection)
        if doc_id not in bucket:
            return False
        changes = copy.deepcopy(data)
        changes.pop("id", None)
        bucket[doc_id].update(changes)
        return True

    async def query(
        self,
        collection: str,
        where: Sequence[tuple[str, Any]] = (),
        order_by: tuple[str, Direction] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        if order_by is not None and not self.supports_ordering:
            raise OrderingUnavailable(f"ordering on {collection}.{order_by[0]} requires an index")
        rows = [
            {"id": doc_id, **copy.deepcopy(body)}
            for doc_id, body in self._bucket(collection).items()
            if all(body.get(field) == value for field, value in where)
        ]
        if order_by is not None:
            field, direction = order_by
            # documents missing the field trail in descending order
            rows.sort(
                key=lambda r: (r.get(field) is not None, str(r.get(field) or "")),
                reverse=direction == "desc",
            )
        if limit is not None:
            rows = rows[:limit]
        return rows

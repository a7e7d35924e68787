from typing import Any, Literal, Protocol, Sequence, runtime_checkable

Direction = Literal["asc", "desc"]


class OrderingUnavailable(Exception):
    """The backend cannot order this query (e.g. the index it needs is missing)."""


@runtime_checkable
class DocumentStorePort(Protocol):
    """
    Minimal document-store contract: schemaless JSON documents grouped into
    named collections. Returned documents always carry their ``id``.
    """

    async def add(self, collection: str, data: dict) -> str: ...

    async def get(self, collection: str, doc_id: str) -> dict | None: ...

    # merge-update; returns False when the document does not exist
    async def update(self, collection: str, doc_id: str, data: dict) -> bool: ...

    async def query(
        self,
        collection: str,
        where: Sequence[tuple[str, Any]] = (),
        order_by: tuple[str, Direction] | None = None,
        limit: int | None = None,
    ) -> list[dict]: ...

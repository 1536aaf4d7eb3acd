"""Gateway protocol for the remote document store."""

from typing import Any, Protocol


class RemoteGateway(Protocol):
    """Asynchronous access to the remote document store.

    Documents are plain dicts of field values. Documents returned by ``get`` and
    ``query`` carry their identifier under the ``id`` key. Implementations are
    pass-through: no retry, batching or caching.

    Every operation may raise ``RemoteUnavailable``; ``get`` and ``update`` raise
    ``NotFound`` for a missing identifier.
    """

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        """Create a document and return its server-assigned identifier.

        The store stamps ``createdAt`` with its own clock, replacing any
        client-supplied value.
        """
        ...

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        """Read a single document."""
        ...

    async def query(self, collection: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Return all documents whose fields equal every value in ``filters``."""
        ...

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite the given fields of an existing document.

        Returns:
            True once the write is acknowledged.
        """
        ...

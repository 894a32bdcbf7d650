from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

Document = dict[str, Any]
Listener = Callable[[Sequence[Document]], None]
Unsubscribe = Callable[[], None]


class DocumentStore(Protocol):
    """Interface of the hosted document/auth backend.

    Note (DIP): services depend on this interface, never on a concrete client.
    Every returned document carries its id under the "id" key.
    """

    def list_documents(self, collection: str) -> Sequence[Document]:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def create(self, collection: str, data: Document, *, doc_id: Optional[str] = None) -> str:
        """Create a document and return its id."""

        raise NotImplementedError

    def update(self, collection: str, doc_id: str, data: Document) -> bool:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError

    def query(self, collection: str, **equals: Any) -> Sequence[Document]:
        """Documents whose fields equal every keyword argument."""

        raise NotImplementedError

    def subscribe(self, collection: str, listener: Listener) -> Unsubscribe:
        """Push the full collection to listener now and after every change."""

        raise NotImplementedError

    def create_user(self, *, email: str, password_hash: str, profile: Document) -> str:
        raise NotImplementedError

    def send_password_reset(self, *, email: str) -> str:
        """Issue a password-reset token for email and return it."""

        raise NotImplementedError

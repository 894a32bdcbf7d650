from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Sequence

from .repository import Document, Listener, Unsubscribe

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """In-process fan-out of collection snapshots to subscribers.

    A failing listener is logged and skipped so the remaining listeners still
    receive the snapshot.
    """

    def __init__(self, loader: Callable[[str], Sequence[Document]]):
        self._loader = loader
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, collection: str, listener: Listener) -> Unsubscribe:
        self._listeners[collection].append(listener)
        self._deliver(collection, listener, list(self._loader(collection)))

        def unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, collection: str) -> None:
        listeners = list(self._listeners.get(collection, []))
        if not listeners:
            return
        snapshot = list(self._loader(collection))
        for listener in listeners:
            self._deliver(collection, listener, snapshot)

    def count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))

    @staticmethod
    def _deliver(collection: str, listener: Listener, snapshot: list[Document]) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("Listener for %s failed", collection)

"""Ordered fan-out of orchestrator events to websocket observers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

KICKED_CLOSE_CODE = 4000
SLOW_CONSUMER_CLOSE_CODE = 1013
MAX_PENDING_MESSAGES = 256

_CLOSE = object()
_SOCKET_ERRORS = (RuntimeError, OSError, WebSocketDisconnect)


@dataclass
class Observer:
    identity: str
    websocket: WebSocket
    admin: bool = False
    queue: asyncio.Queue[Any] = field(default_factory=lambda: asyncio.Queue(maxsize=MAX_PENDING_MESSAGES))
    close_code: int = KICKED_CLOSE_CODE


class BroadcastHub:
    """Every observer owns one bounded FIFO queue, so each sees events in publish order.

    An observer whose queue fills up is not reading; it is detached and its
    connection closed instead of buffering without limit.
    """

    def __init__(self, max_pending: int = MAX_PENDING_MESSAGES) -> None:
        self.max_pending = max_pending
        self._observers: dict[str, Observer] = {}

    def __len__(self) -> int:
        return len(self._observers)

    def attach(
        self,
        identity: str,
        websocket: WebSocket,
        admin: bool = False,
        initial: Iterable[dict[str, Any]] = (),
    ) -> Observer:
        """Register an observer whose queue starts with the given snapshot messages."""
        observer = Observer(
            identity=identity,
            websocket=websocket,
            admin=admin,
            queue=asyncio.Queue(maxsize=self.max_pending),
        )
        self._observers[identity] = observer
        for message in initial:
            self._deliver(observer, message)
        return observer

    def detach(self, identity: str) -> None:
        self._observers.pop(identity, None)

    def publish(self, event: dict[str, Any]) -> None:
        for observer in list(self._observers.values()):
            self._deliver(observer, event)

    def player_identities(self) -> list[str]:
        return [identity for identity, observer in self._observers.items() if not observer.admin]

    def send_to(self, identity: str, event: dict[str, Any]) -> None:
        observer = self._observers.get(identity)
        if observer is not None:
            self._deliver(observer, event)

    def kick(self, identities: Iterable[str]) -> int:
        """Close the given player connections after their pending messages."""
        kicked = 0
        for identity in identities:
            observer = self._observers.get(identity)
            if observer is None or observer.admin:
                continue
            self._close(observer, KICKED_CLOSE_CODE)
            kicked += 1
        return kicked

    async def pump(self, observer: Observer) -> None:
        """Drain one observer's queue onto its socket until closed or broken."""
        while True:
            message = await observer.queue.get()
            if message is _CLOSE:
                try:
                    await observer.websocket.close(code=observer.close_code)
                except _SOCKET_ERRORS:
                    logger.debug("Connection %s already closed", observer.identity)
                return
            try:
                await observer.websocket.send_json(message)
            except _SOCKET_ERRORS:
                logger.info("Dropping stale connection %s", observer.identity)
                if self._observers.get(observer.identity) is observer:
                    self.detach(observer.identity)
                return

    def _deliver(self, observer: Observer, message: dict[str, Any]) -> None:
        try:
            observer.queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Connection %s is not reading, closing it", observer.identity)
            self._close(observer, SLOW_CONSUMER_CLOSE_CODE)

    def _close(self, observer: Observer, code: int) -> None:
        if self._observers.get(observer.identity) is observer:
            self.detach(observer.identity)
        observer.close_code = code
        try:
            observer.queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # a full queue is dropped so the close still gets through
            while not observer.queue.empty():
                observer.queue.get_nowait()
            observer.queue.put_nowait(_CLOSE)

# app/notifications/change_feed.py
"""Push invalidations to connected clients after every committed write.

Clients keep a websocket open and re-run their queries when told that a table
they read from has changed. Events for user-owned rows (purchases,
subscriptions, enrollments…) only reach that user's sockets; catalog changes
reach everybody.

Rows touched during a flush are collected on ``session.info`` and published in
``after_commit``, so a rolled-back transaction never announces anything.
"""

import asyncio
import json
import logging
from typing import Dict, Optional, Set, Tuple

import anyio
from fastapi import WebSocket
from sqlalchemy import event
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

log = logging.getLogger("ws")

_PENDING_KEY = "fightmeta_pending_changes"

Change = Tuple[str, Optional[int]]


class ChangeFeed:
    def __init__(self) -> None:
        self.user_connections: Dict[int, Set[WebSocket]] = {}
        self.anonymous_connections: Set[WebSocket] = set()

    @property
    def has_listeners(self) -> bool:
        return bool(self.user_connections or self.anonymous_connections)

    async def connect(self, websocket: WebSocket, user_id: Optional[int]) -> None:
        await websocket.accept()
        if user_id is None:
            self.anonymous_connections.add(websocket)
        else:
            self.user_connections.setdefault(user_id, set()).add(websocket)
        log.info("[WS CONNECT] user=%s", user_id)

    def disconnect(self, websocket: WebSocket, user_id: Optional[int]) -> None:
        if user_id is None:
            self.anonymous_connections.discard(websocket)
        else:
            conns = self.user_connections.get(user_id)
            if conns is not None:
                conns.discard(websocket)
                if not conns:
                    self.user_connections.pop(user_id, None)
        log.info("[WS DISCONNECT] user=%s", user_id)

    def _targets(self, user_id: Optional[int]) -> list[tuple[WebSocket, Optional[int]]]:
        if user_id is not None:
            return [(ws, user_id) for ws in self.user_connections.get(user_id, set())]

        targets: list[tuple[WebSocket, Optional[int]]] = [(ws, None) for ws in self.anonymous_connections]
        for owner, sockets in self.user_connections.items():
            targets.extend((ws, owner) for ws in sockets)
        return targets

    async def _send(self, table: str, user_id: Optional[int]) -> None:
        targets = self._targets(user_id)
        if not targets:
            return

        text = json.dumps({"type": "invalidate", "table": table, "user_id": user_id}, separators=(",", ":"))
        dead = []
        for ws, owner in targets:
            try:
                if ws.application_state != WebSocketState.CONNECTED:
                    dead.append((ws, owner))
                    continue
                await ws.send_text(text)
            except Exception as e:
                log.warning("[WS SEND ERROR] user=%s: %s", owner, e)
                dead.append((ws, owner))

        for ws, owner in dead:
            self.disconnect(ws, owner)

    async def publish_async(self, table: str, user_id: Optional[int] = None) -> None:
        await self._send(table, user_id)

    def publish(self, table: str, user_id: Optional[int] = None) -> None:
        """Fire-and-forget publication usable from worker threads and the event loop."""
        if not self.has_listeners:
            return
        try:
            anyio.from_thread.run(self._send, table, user_id)
            return
        except RuntimeError:
            pass
        try:
            loop = asyncio.get_running_loop()
            loop.create_task(self._send(table, user_id))
            return
        except RuntimeError:
            asyncio.run(self._send(table, user_id))


change_feed = ChangeFeed()


def _change_for(instance: object) -> Optional[Change]:
    table = getattr(instance, "__tablename__", None)
    if table is None:
        return None
    if table == "users":
        return table, getattr(instance, "id", None)
    # Catalog rows have no owner and are broadcast.
    return table, getattr(instance, "user_id", None)


def _collect_changes(session: Session, flush_context, instances=None) -> None:
    pending: Set[Change] = session.info.setdefault(_PENDING_KEY, set())
    for instance in (*session.new, *session.dirty, *session.deleted):
        change = _change_for(instance)
        if change is not None:
            pending.add(change)


def _publish_changes(session: Session) -> None:
    pending: Set[Change] = session.info.pop(_PENDING_KEY, set())
    for table, user_id in sorted(pending, key=lambda item: (item[0], item[1] or 0)):
        try:
            change_feed.publish(table, user_id)
        except Exception:
            log.exception("Change feed publication failed for %s", table)


def _discard_changes(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_session_hooks() -> None:
    """Attach the collection/publication listeners to every ORM session."""
    if event.contains(Session, "after_flush", _collect_changes):
        return
    event.listen(Session, "after_flush", _collect_changes)
    event.listen(Session, "after_commit", _publish_changes)
    event.listen(Session, "after_soft_rollback", _discard_changes)

import uuid
import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

from mcp_gateway.core.clock import Clock, isoformat_z, utc_now
from mcp_gateway.core.errors import InvalidSessionError, SessionClosedError

logger = logging.getLogger(__name__)

# Events waiting for a slow client. A full queue counts as a failed write.
MAX_PENDING_EVENTS = 100


@dataclass(frozen=True)
class SseEvent:
    event: str
    data: str

    def encode(self) -> str:
        lines = self.data.splitlines() or [""]
        return f"event: {self.event}\n" + "".join(f"data: {line}\n" for line in lines) + "\n"


class Session:
    def __init__(self, session_id: str):
        self.session_id = session_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_PENDING_EVENTS)
        self.connected = True
        self.heartbeat_task: Optional[asyncio.Task] = None

    def send(self, event: SseEvent):
        if not self.connected:
            raise SessionClosedError(self.session_id)
        self.queue.put_nowait(event)


class SessionManager:
    """Owns every streaming session: the only place they are opened, found and closed."""

    def __init__(self, heartbeat_interval: float = 30.0, message_path: str = "/messages",
                 clock: Optional[Clock] = None):
        self.heartbeat_interval = heartbeat_interval
        self.message_path = message_path
        self.clock = clock or utc_now
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def open(self) -> Session:
        """Register a new session, queue its endpoint event and start its heartbeat.

        Must be called from a running event loop.
        """
        with self._lock:
            session_id = uuid.uuid4().hex
            while session_id in self._sessions:
                session_id = uuid.uuid4().hex
            session = Session(session_id)
            self._sessions[session_id] = session

        session.send(SseEvent("endpoint", f"{self.message_path}?session_id={session_id}"))
        session.heartbeat_task = asyncio.create_task(self._heartbeat(session))
        logger.info(f"New SSE session created: {session_id}")
        return session

    def lookup(self, session_id: Optional[str]) -> Session:
        with self._lock:
            session = self._sessions.get(session_id) if session_id else None
        if session is None or not session.connected:
            raise InvalidSessionError(data=f"Unknown or closed session: {session_id}" if session_id else None)
        return session

    def close(self, session_id: str) -> bool:
        """Close a session. Returns False when it was already closed or never existed."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        session.connected = False
        task = session.heartbeat_task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        # Wake the stream so its generator finishes
        while True:
            try:
                session.queue.put_nowait(None)
                break
            except asyncio.QueueFull:
                session.queue.get_nowait()
        logger.info(f"SSE session closed: {session_id}")
        return True

    def close_all(self):
        with self._lock:
            session_ids: List[str] = list(self._sessions)
        for session_id in session_ids:
            self.close(session_id)

    def send_event(self, session: Session, event: SseEvent) -> bool:
        """Push ``event`` to the session's stream; a failed push closes the session."""
        try:
            session.send(event)
            return True
        except (SessionClosedError, asyncio.QueueFull) as e:
            logger.warning(f"Dropping {event.event} event for session {session.session_id}: {e!r}")
            self.close(session.session_id)
            return False

    async def stream(self, session: Session) -> AsyncIterator[str]:
        """Yield encoded SSE frames until the session closes or the consumer goes away."""
        try:
            while True:
                event = await session.queue.get()
                if event is None:
                    break
                yield event.encode()
        finally:
            self.close(session.session_id)

    async def _heartbeat(self, session: Session):
        while session.connected:
            await asyncio.sleep(self.heartbeat_interval)
            if not self.send_event(session, SseEvent("ping", isoformat_z(self.clock()))):
                break


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None

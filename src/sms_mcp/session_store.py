import logging
from contextlib import asynccontextmanager
from typing import Any, Dict
from uuid import UUID

from anyio.abc import ObjectSendStream
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.transport_security import TransportSecuritySettings
from starlette.types import Receive, Scope, Send

logger = logging.getLogger("sms-mcp-sessions")


class SessionEntry:
    def __init__(self, session_id: str, server: Server, writer: ObjectSendStream[Any]):
        self.session_id = session_id
        self.server = server
        self.writer = writer

    async def close(self) -> None:
        # Ends the server loop, which closes the SSE stream behind it.
        await self.writer.aclose()


class SessionStore:
    """
    Live SSE sessions keyed by session id (the hex form of the transport's UUID).

    All mutations happen on the event loop thread, so no lock is taken.
    An entry is added when a connection is accepted and removed when that
    connection ends.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def register(self, session_id: str, server: Server, writer: ObjectSendStream[Any]) -> SessionEntry:
        if session_id in self._sessions:
            raise ValueError(f"Session {session_id} is already registered")

        entry = SessionEntry(session_id, server, writer)
        self._sessions[session_id] = entry
        logger.info(f"Session registered: {session_id} ({len(self._sessions)} active)")
        return entry

    def unregister(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info(f"Session removed: {session_id} ({len(self._sessions)} active)")

    def get(self, session_id: str) -> SessionEntry | None:
        return self._sessions.get(session_id)

    async def close_all(self) -> None:
        """Close every open session (server shutdown)."""
        count = len(self._sessions)
        for session_id in list(self._sessions):
            entry = self._sessions.get(session_id)
            if entry is None:
                continue
            logger.info(f"Closing session {session_id}")
            try:
                await entry.close()
            except Exception as e:
                logger.warning(f"Error closing session {session_id}: {e}")
            finally:
                self.unregister(session_id)
        logger.info(f"SessionStore cleared ({count} sessions closed).")


class SessionTransport(SseServerTransport):
    """
    The SDK's SSE transport, with every connection recorded in a SessionStore.

    `connect_sse` generates the session id, sends the `endpoint` event and
    routes POSTed messages; this class only ties each of its sessions to the
    MCP server built for that connection.
    """

    def __init__(self, endpoint: str, sessions: SessionStore, security_settings: TransportSecuritySettings | None = None):
        super().__init__(endpoint, security_settings)
        self.sessions = sessions

    def _new_session_id(self) -> UUID:
        # connect_sse stores the writer and yields without suspending, so the
        # connection being set up owns the only id not yet in the store.
        unclaimed = [sid for sid in self._read_stream_writers if sid.hex not in self.sessions]
        if len(unclaimed) != 1:
            raise RuntimeError(f"Expected one new SSE session, found {len(unclaimed)}")
        return unclaimed[0]

    @asynccontextmanager
    async def connect_session(self, scope: Scope, receive: Receive, send: Send, server: Server):
        """Open the SSE stream and yield (session_id, read_stream, write_stream)."""
        async with self.connect_sse(scope, receive, send) as (read_stream, write_stream):
            uuid = self._new_session_id()
            session_id = uuid.hex
            self.sessions.register(session_id, server, self._read_stream_writers[uuid])
            try:
                yield session_id, read_stream, write_stream
            finally:
                self.sessions.unregister(session_id)
                self._read_stream_writers.pop(uuid, None)

"""WebSocket connection manager for the overlay's editor bridge"""

import asyncio
import uuid
from typing import Dict, Optional, Tuple
from fastapi import WebSocket
from codemate.logger import get_logger

logger = get_logger(__name__)


class WebSocketManager:
    """Manages one WebSocket per session and correlates requests with replies"""

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.locks: Dict[str, asyncio.Lock] = {}
        self.pending: Dict[str, Tuple[str, asyncio.Future]] = {}

    async def connect(self, session_id: str, websocket: WebSocket):
        """Connect a WebSocket for a session, replacing any earlier one"""
        await websocket.accept()
        self.connections[session_id] = websocket
        self.locks[session_id] = asyncio.Lock()
        logger.info(f"WebSocket connected for session: {session_id}")

    async def disconnect(self, session_id: str, websocket: Optional[WebSocket] = None):
        """Disconnect WebSocket for a session and release its waiting requests.

        With `websocket` given, nothing happens unless it is still the
        session's registered connection.
        """
        if websocket is not None and self.connections.get(session_id) is not websocket:
            return
        self.connections.pop(session_id, None)
        self.locks.pop(session_id, None)
        for request_id, (owner, future) in list(self.pending.items()):
            if owner == session_id and not future.done():
                future.set_result(None)
        logger.info(f"WebSocket disconnected for session: {session_id}")

    async def send_message(self, session_id: str, message: dict) -> bool:
        """Send message to session WebSocket"""
        websocket = self.connections.get(session_id)
        if websocket is None:
            logger.warning(f"No WebSocket connection for session: {session_id}")
            return False

        try:
            async with self.locks[session_id]:
                await websocket.send_json(message)
            return True
        except Exception as e:
            logger.error(f"Failed to send WebSocket message to {session_id}: {e}")
            await self.disconnect(session_id, websocket)
            return False

    async def receive_message(
        self, session_id: str, websocket: Optional[WebSocket] = None
    ) -> Optional[dict]:
        """Receive message from the given socket, or the session's registered one"""
        if websocket is None:
            websocket = self.connections.get(session_id)
        if websocket is None:
            return None

        try:
            return await websocket.receive_json()
        except Exception as e:
            logger.info(f"WebSocket closed for {session_id}: {e}")
            await self.disconnect(session_id, websocket)
            return None

    async def request(
        self, session_id: str, message: dict, timeout: float
    ) -> Optional[dict]:
        """Send a message and wait for the reply carrying the same request_id.

        Returns None when there is no connection, the send fails, the socket
        closes or no reply arrives in time.
        """
        if not self.is_connected(session_id):
            logger.warning(f"No WebSocket connection for session: {session_id}")
            return None

        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self.pending[request_id] = (session_id, future)
        try:
            if not await self.send_message(session_id, {**message, "request_id": request_id}):
                return None
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Session {session_id}: no reply to {message.get('type')} within {timeout}s"
            )
            return None
        finally:
            self.pending.pop(request_id, None)

    def resolve(self, message: dict) -> bool:
        """Hand a reply to the request waiting for it"""
        entry = self.pending.get(message.get("request_id"))
        if entry is None:
            logger.warning(f"Reply for unknown request: {message.get('request_id')}")
            return False
        _, future = entry
        if not future.done():
            future.set_result(message)
        return True

    def is_connected(self, session_id: str) -> bool:
        """Check if session has active WebSocket connection"""
        return session_id in self.connections


# --- global websocket manager instance ---
ws_manager = WebSocketManager()

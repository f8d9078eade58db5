import json
import math
import uuid
from typing import Any, Callable, Dict

from fastapi import WebSocket
from loguru import logger

from core.infrastructure.factory import get_data_sanitizer
from core.utils.datetime import utc_now

from ..application.ports import DeliveryChannel, PresenceRegistry
from ..domain.entities import Connection, ConnectionState
from ..domain.exceptions import DeliveryChannelError


class WebSocketDeliveryChannel(DeliveryChannel):
    """Live delivery over WebSockets, and the only writer of the presence registry.

    Frames in both directions are JSON objects of the form
    `{"event": <name>, "data": <object>}`.

    Parameters
    ----------
    registry : PresenceRegistry
        Registry that tracks which users have live connections.
    clock : Callable, default=utc_now
        Source of server timestamps.
    """

    def __init__(
        self, registry: PresenceRegistry, clock: Callable = utc_now
    ) -> None:
        self.registry = registry
        self.clock = clock
        self._sockets: Dict[str, WebSocket] = {}
        self._handlers = {
            "register": self._register,
            "unregister": self._unregister,
            "ping": self._ping,
        }

    def is_present(self, user_id: int) -> bool:
        return self.registry.is_present(user_id)

    async def emit_to_user(
        self, user_id: int, event: str, payload: Dict[str, Any]
    ) -> int:
        """Write `event` to every registered connection of `user_id`.

        A failed write to one connection is logged and the remaining
        connections are still attempted.
        """
        delivered = 0

        for connection in self.registry.connections_for(user_id):
            websocket = self._sockets.get(connection.connection_id)
            if websocket is None:
                continue

            try:
                await self._send(websocket, event, payload)
                delivered += 1
            except Exception as e:
                sanitizer = await get_data_sanitizer()
                error = DeliveryChannelError(
                    f"Send of '{event}' on connection {connection.connection_id} "
                    f"failed: {sanitizer.sanitize_exception_for_logging(e)}"
                )
                logger.warning(f"📝 {type(error).__name__}: {error.detail}")

        return delivered

    async def connect(
        self, websocket: WebSocket, authenticated_user_id: int | None = None
    ) -> Connection:
        """Accept a transport and start tracking it as an open connection.

        Parameters
        ----------
        websocket : WebSocket
            Transport to accept.
        authenticated_user_id : int | None, optional
            User proven by the handshake token, if any.

        Returns
        -------
        Connection
            Presence handle in the `open` state.

        Raises
        ------
        Exception
            Whatever the transport raised if the greeting could not be sent.
            The connection is forgotten before the error propagates.
        """
        await websocket.accept()

        now = self.clock()
        connection = Connection(
            connection_id=uuid.uuid4().hex,
            state=ConnectionState.OPEN,
            authenticated_user_id=authenticated_user_id,
            connected_at=now,
            last_seen_at=now,
        )
        self.registry.add(connection)
        self._sockets[connection.connection_id] = websocket

        logger.info(
            f"🔌 Connection {connection.connection_id} opened "
            f"(authenticated user: {authenticated_user_id})"
        )

        try:
            await self._send(
                websocket,
                "connected",
                {
                    "connection_id": connection.connection_id,
                    "server_time": now.isoformat(),
                    "user_id": authenticated_user_id,
                },
            )
        except Exception:
            # Client went away during the handshake.
            self.disconnect(connection)
            raise

        return connection

    async def handle_signal(
        self, connection: Connection, raw_message: str | bytes
    ) -> None:
        """Handle one client frame and reply on the same connection.

        Binary frames are accepted when they hold UTF-8 encoded JSON.
        """
        if isinstance(raw_message, bytes):
            try:
                raw_message = raw_message.decode("utf-8")
            except UnicodeDecodeError:
                raw_message = None

        try:
            message = json.loads(raw_message)
        except (TypeError, ValueError):
            message = None

        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            await self._reply_error(connection, "Malformed message")
            return

        event = message["event"]
        data = message.get("data")
        if data is None:
            data = {}

        handler = self._handlers.get(event)
        if handler is None:
            await self._reply_error(connection, f"Unknown event '{event}'", event)
            return

        if not isinstance(data, dict):
            await self._reply_error(connection, "Event data must be an object", event)
            return

        connection.last_seen_at = self.clock()
        await handler(connection, data)

    def disconnect(self, connection: Connection) -> None:
        """Forget a closed transport. Presence is dropped immediately."""
        self._sockets.pop(connection.connection_id, None)
        removed = self.registry.remove(connection.connection_id)
        connection.state = ConnectionState.CLOSED

        if removed is not None:
            logger.info(
                f"🔌 Connection {connection.connection_id} closed "
                f"(user: {removed.user_id})"
            )

    async def _register(self, connection: Connection, data: Dict[str, Any]) -> None:
        user_id = self._parse_user_id(data.get("user_id"))
        if user_id is None:
            await self._reply_error(connection, "A valid user_id is required", "register")
            return

        if (
            connection.authenticated_user_id is not None
            and connection.authenticated_user_id != user_id
        ):
            logger.warning(
                f"🚫 Connection {connection.connection_id} tried to register as "
                f"user {user_id} while authenticated as "
                f"{connection.authenticated_user_id}"
            )
            await self._reply_error(
                connection, "Cannot register for another user", "register"
            )
            return

        previous_user_id = connection.user_id
        self.registry.register(connection.connection_id, user_id)
        if previous_user_id is not None and previous_user_id != user_id:
            logger.info(
                f"🔁 Connection {connection.connection_id} moved from user "
                f"{previous_user_id} to user {user_id}"
            )
        else:
            logger.info(
                f"👤 Connection {connection.connection_id} registered for user {user_id}"
            )

        await self._reply(
            connection,
            "registered",
            {
                "user_id": user_id,
                "connection_id": connection.connection_id,
                "connections": len(self.registry.connections_for(user_id)),
                "timestamp": self.clock().isoformat(),
            },
        )

    async def _unregister(self, connection: Connection, data: Dict[str, Any]) -> None:
        requested = data.get("user_id")
        if requested is not None and self._parse_user_id(requested) != connection.user_id:
            await self._reply_error(
                connection, "Connection is not registered for that user", "unregister"
            )
            return

        previous_user_id = connection.user_id
        self.registry.unregister(connection.connection_id)
        logger.info(
            f"👋 Connection {connection.connection_id} unregistered "
            f"from user {previous_user_id}"
        )

        await self._reply(
            connection,
            "unregistered",
            {"user_id": previous_user_id, "connection_id": connection.connection_id},
        )

    async def _ping(self, connection: Connection, data: Dict[str, Any]) -> None:
        now = self.clock()
        sent_at = data.get("timestamp")

        latency_ms = None
        if (
            isinstance(sent_at, (int, float))
            and not isinstance(sent_at, bool)
            and math.isfinite(sent_at)
        ):
            latency_ms = max(int(now.timestamp() * 1000 - sent_at), 0)

        await self._reply(
            connection, "pong", {"server_time": now.isoformat(), "latency_ms": latency_ms}
        )

    async def _reply(
        self, connection: Connection, event: str, payload: Dict[str, Any]
    ) -> None:
        websocket = self._sockets.get(connection.connection_id)
        if websocket is not None:
            await self._send(websocket, event, payload)

    async def _reply_error(
        self, connection: Connection, message: str, event: str | None = None
    ) -> None:
        logger.debug(f"Connection {connection.connection_id} signal rejected: {message}")
        await self._reply(connection, "error", {"message": message, "event": event})

    @staticmethod
    def _parse_user_id(value: Any) -> int | None:
        if isinstance(value, bool):
            return None

        try:
            user_id = int(value)
        except (TypeError, ValueError, OverflowError):
            return None

        return user_id if user_id > 0 else None

    @staticmethod
    async def _send(websocket: WebSocket, event: str, payload: Dict[str, Any]) -> None:
        await websocket.send_json({"event": event, "data": payload})

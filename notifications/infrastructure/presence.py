from collections import defaultdict
from typing import Any, DefaultDict, Dict, List, Set

from core.utils.datetime import utc_now

from ..application.ports import PresenceRegistry
from ..domain.entities import Connection, ConnectionState


class InMemoryPresenceRegistry(PresenceRegistry):
    """Process-local presence registry.

    Keeps `user_id -> connection ids` and `connection_id -> Connection`.
    Presence is derived from the live map on every call, so a user is online
    exactly while at least one of their connections is registered.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}
        self._user_connections: DefaultDict[int, Set[str]] = defaultdict(set)

    def add(self, connection: Connection) -> None:
        self._connections[connection.connection_id] = connection

    def register(self, connection_id: str, user_id: int) -> Connection:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise KeyError(f"Unknown connection {connection_id}")

        if connection.user_id is not None and connection.user_id != user_id:
            self._discard(connection.user_id, connection_id)

        connection.user_id = user_id
        connection.state = ConnectionState.REGISTERED
        connection.last_seen_at = utc_now()
        self._user_connections[user_id].add(connection_id)
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        connection = self._connections.get(connection_id)
        if connection is None:
            return None

        if connection.user_id is not None:
            self._discard(connection.user_id, connection_id)

        connection.user_id = None
        connection.state = ConnectionState.ANONYMOUS
        return connection

    def remove(self, connection_id: str) -> Connection | None:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None

        if connection.user_id is not None:
            self._discard(connection.user_id, connection_id)

        connection.state = ConnectionState.CLOSED
        return connection

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def connections_for(self, user_id: int) -> List[Connection]:
        return [
            self._connections[connection_id]
            for connection_id in sorted(self._user_connections.get(user_id, ()))
            if connection_id in self._connections
        ]

    def is_present(self, user_id: int) -> bool:
        return bool(self._user_connections.get(user_id))

    def snapshot(self) -> Dict[str, Any]:
        users = {
            user_id: len(connection_ids)
            for user_id, connection_ids in self._user_connections.items()
            if connection_ids
        }
        return {
            "total_connections": len(self._connections),
            "registered_connections": sum(users.values()),
            "online_users": len(users),
            "users": users,
        }

    def _discard(self, user_id: int, connection_id: str) -> None:
        connection_ids = self._user_connections.get(user_id)
        if connection_ids is None:
            return

        connection_ids.discard(connection_id)
        if not connection_ids:
            self._user_connections.pop(user_id, None)

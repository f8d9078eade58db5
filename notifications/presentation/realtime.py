from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from loguru import logger

from authentication.infrastructure.factory import get_jwt_token_service
from authentication.infrastructure.services import JWTTokenService
from core.infrastructure.logging import RequestContextLogger

from ..infrastructure.channel import WebSocketDeliveryChannel
from ..infrastructure.factory import get_delivery_channel

router = APIRouter()


async def resolve_handshake_user(
    token: str | None, token_service: JWTTokenService
) -> int | None:
    """Return the user proven by a handshake token, or None.

    A missing or invalid token never refuses the connection; it only leaves
    the connection without an authenticated identity.
    """
    if not token:
        return None

    try:
        token_data = await token_service.decode_access_token(token)
    except HTTPException:
        logger.warning("⚠️ Ignoring invalid handshake token on notification socket")
        return None

    return token_data.user_id


@router.websocket("/ws/notifications")
async def notifications_websocket(
    websocket: WebSocket,
    token: str | None = None,
    channel: WebSocketDeliveryChannel = Depends(get_delivery_channel),
    token_service: JWTTokenService = Depends(get_jwt_token_service),
) -> None:
    """Realtime notification socket.

    Clients announce who they are with a `register` signal and then receive a
    `newNotification` event for every notification created for that user
    while the connection stays open.
    """
    authenticated_user_id = await resolve_handshake_user(token, token_service)
    try:
        connection = await channel.connect(websocket, authenticated_user_id)
    except WebSocketDisconnect as e:
        logger.debug(f"Client left during the handshake (code {e.code})")
        return

    async with RequestContextLogger(
        request_id=connection.connection_id[:8],
        connection_id=connection.connection_id,
        path=websocket.url.path,
    ):
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))

                raw_message = message.get("text")
                if raw_message is None:
                    raw_message = message.get("bytes")
                await channel.handle_signal(connection, raw_message)

        except WebSocketDisconnect as e:
            logger.debug(
                f"Connection {connection.connection_id} disconnected (code {e.code})"
            )

        finally:
            channel.disconnect(connection)

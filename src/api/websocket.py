"""WebSocket endpoint for real-time time card dashboards."""

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from src.models.enums import UserRole
from src.services.auth import decode_access_token
from src.services.realtime import ALL_TIMECARDS_CHANNEL, RealtimeService, employer_channel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ws", tags=["websocket"])

PING_INTERVAL_SECONDS = 30


def channel_for(role: UserRole, user_id: int) -> str | None:
    """Dashboard channel a role may follow; employees have none."""
    if role == UserRole.ADMIN:
        return ALL_TIMECARDS_CHANNEL
    if role == UserRole.EMPLOYER:
        return employer_channel(user_id)
    return None


def _identity_from_token(token: str) -> tuple[int, UserRole] | None:
    payload = decode_access_token(token)
    if payload is None:
        return None
    try:
        return int(payload["sub"]), UserRole(payload["role"])
    except (KeyError, TypeError, ValueError):
        return None


async def _forward_events(websocket: WebSocket, realtime: RealtimeService, channel: str) -> None:
    """Relay pub/sub messages to the dashboard until the socket goes away."""
    async for event in realtime.subscribe(channel):
        try:
            await websocket.send_json(event)
        except WebSocketDisconnect:
            return
        except Exception as e:
            logger.error(f"Error sending time card event on {channel}: {e}")
            return


async def _keepalive(websocket: WebSocket) -> None:
    while True:
        await asyncio.sleep(PING_INTERVAL_SECONDS)
        try:
            await websocket.send_json({"type": "ping"})
        except Exception:
            return


async def _drain_client(websocket: WebSocket) -> None:
    """Read (and ignore) client frames; pongs are the only expected ones."""
    while True:
        try:
            await websocket.receive_json()
        except Exception:
            return


@router.websocket("/timecards")
async def websocket_timecards(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    """Push time card change notifications to employer and admin dashboards.

    Authentication via token query parameter (WebSocket doesn't support headers).
    Messages only announce that something changed; clients refetch their listing.
    """
    identity = _identity_from_token(token)
    if identity is None:
        await websocket.close(code=4001, reason="Invalid token")
        return

    user_id, role = identity
    channel = channel_for(role, user_id)
    if channel is None:
        await websocket.close(code=4003, reason="Access denied")
        return

    realtime = RealtimeService()
    try:
        await websocket.accept()
        logger.info(f"Dashboard connected: user={user_id}, channel={channel}")

        tasks = [
            asyncio.create_task(_forward_events(websocket, realtime, channel)),
            asyncio.create_task(_keepalive(websocket)),
            asyncio.create_task(_drain_client(websocket)),
        ]
        # The first task to finish means the connection is over
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        failures = [task.exception() for task in done if task.exception() is not None]
        for error in failures:
            logger.error(f"Event stream failed on {channel}: {error!r}", exc_info=error)
        if failures:
            await websocket.close(code=1011, reason="Event stream unavailable")

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        logger.info(f"Dashboard disconnected: user={user_id}, channel={channel}")
        await realtime.cleanup()

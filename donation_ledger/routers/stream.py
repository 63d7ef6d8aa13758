import asyncio
import contextlib

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from donation_ledger.core.exceptions import UnauthorizedError
from donation_ledger.core.logging import get_logger
from donation_ledger.deps import USER_ID_HEADER, USER_ROLE_HEADER, actor_from_headers
from donation_ledger.services.store import DonationStore, Subscription, get_store

router = APIRouter()
log = get_logger(__name__)


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    async for event in subscription:
        await websocket.send_json({"type": "store_event", "data": event.model_dump(mode="json")})


@router.websocket("")
async def store_stream(websocket: WebSocket, store: DonationStore = Depends(get_store)):
    """
    Push committed store changes to a screen so it can re-read its projection.

    Messages:
      {"type": "hello", "version": <int>}                  once, on connect
      {"type": "store_event", "data": {version, type, entity_id, collections}}
      {"type": "pong"}                                     reply to a client "ping"
    """
    try:
        actor = actor_from_headers(
            websocket.headers.get(USER_ID_HEADER), websocket.headers.get(USER_ROLE_HEADER)
        )
    except UnauthorizedError as e:
        await websocket.close(code=4001, reason=e.message)
        return

    await websocket.accept()
    subscription = store.subscribe()
    log.info("stream_connected", user_id=actor.user_id, version=store.version)
    await websocket.send_json({"type": "hello", "version": store.version})
    pump = asyncio.create_task(_pump(websocket, subscription))
    try:
        while True:
            text = await websocket.receive_text()
            if text.strip() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        subscription.close()
        pump.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await pump
        log.info("stream_disconnected", user_id=actor.user_id, dropped=subscription.dropped)

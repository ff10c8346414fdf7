"""Placeholder WebSocket stream."""
import asyncio
import structlog
from fastapi import WebSocket, WebSocketDisconnect

log = structlog.get_logger()

PLACEHOLDER_MESSAGE = "Hello, WebSocket!"


async def handle_placeholder_stream(websocket: WebSocket, interval: float = 1.0):
    """
    Send PLACEHOLDER_MESSAGE every interval seconds until the client leaves.

    Args:
        websocket: WebSocket connection
        interval: Seconds between messages
    """
    await websocket.accept()
    log.info("websocket.connected")

    loop = asyncio.get_running_loop()
    next_send = loop.time()

    try:
        while True:
            if loop.time() >= next_send:
                await websocket.send_text(PLACEHOLDER_MESSAGE)
                next_send = loop.time() + interval

            try:
                # Waiting on receive is how a disconnect is noticed
                message = await asyncio.wait_for(
                    websocket.receive(),
                    timeout=max(0.0, next_send - loop.time()),
                )
            except asyncio.TimeoutError:
                continue

            if message["type"] == "websocket.disconnect":
                log.info("websocket.client_disconnected", code=message.get("code"))
                return

    except WebSocketDisconnect:
        log.info("websocket.client_disconnected")

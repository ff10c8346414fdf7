"""WebSocket routes."""
from fastapi import APIRouter, WebSocket
from ..streaming.websocket import handle_placeholder_stream

router = APIRouter(prefix="/api/v1/ws", tags=["websocket"])


@router.websocket("/events")
async def websocket_events(websocket: WebSocket):
    """
    Placeholder event stream.

    Sends a fixed greeting every WS_MESSAGE_INTERVAL seconds until the client
    disconnects. Messages from the client are ignored.

    Example client (JavaScript):
    ```javascript
    const ws = new WebSocket('ws://localhost:8080/api/v1/ws/events');
    ws.onmessage = (event) => console.log(event.data);
    ```
    """
    interval = websocket.app.state.settings.WS_MESSAGE_INTERVAL
    await handle_placeholder_stream(websocket, interval=interval)

"""Event endpoints.

Recent events can be polled; live events are streamed with Server-Sent
Events, optionally limited to one address.
"""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from learnplatform.web.platform import get_broadcaster, get_platform
from learnplatform.web.schemas import PlatformEventResponse

router = APIRouter(prefix="/api/events", tags=["events"])

KEEPALIVE_SECONDS = 30.0


@router.get("", response_model=list[PlatformEventResponse])
async def list_events(
    since: int = Query(default=0, ge=0),
    address: str | None = Query(default=None),
) -> list[PlatformEventResponse]:
    """Recent events with seq greater than since."""
    events = get_platform().events.history(since_seq=since)
    if address:
        events = [e for e in events if e.concerns(address)]
    return [PlatformEventResponse(**e.to_dict()) for e in events]


async def _event_generator(address: str | None) -> AsyncGenerator[str, None]:
    """Generate SSE events for one listener."""
    get_platform()
    broadcaster = get_broadcaster()
    listener = broadcaster.join(address)

    try:
        while True:
            try:
                event = await asyncio.wait_for(
                    listener.queue.get(),
                    timeout=KEEPALIVE_SECONDS,
                )
            except asyncio.TimeoutError:
                yield "event: keepalive\ndata: ping\n\n"
                continue

            if event is None:
                yield "event: close\ndata: Stream closed\n\n"
                return

            yield f"event: {event.event_type.value}\ndata: {json.dumps(event.to_dict())}\n\n"
    finally:
        broadcaster.leave(listener)


@router.get("/stream")
async def stream_events(address: str | None = Query(default=None)) -> StreamingResponse:
    """Stream platform events using Server-Sent Events.

    With ``address`` only events concerning that address are sent.

    Events:
    - <EventType>: Contains the PlatformEvent as JSON
    - keepalive: Sent every 30s to keep connection alive
    - close: Server is shutting down
    """
    return StreamingResponse(
        _event_generator(address),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )

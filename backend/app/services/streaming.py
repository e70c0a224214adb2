"""Server-sent event stream of relayed prediction updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from app.replicate.output import format_prediction_for_client, is_terminal_status
from app.services.relay import UpdateRelay

logger = logging.getLogger(__name__)


def encode_sse(data: dict) -> str:
    return f"data: {json.dumps(data, default=str)}\n\n"


async def stream_prediction_updates(
    relay: UpdateRelay,
    prediction_id: str,
    *,
    is_disconnected: Callable[[], Awaitable[bool]],
    tick_seconds: float = 1.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for new relay events until a terminal status or disconnect.

    Each tick flushes every event appended since the previous tick. Once a
    terminal event has been written the prediction's relay entry is discarded
    and the stream ends.
    """

    next_index = 0
    while True:
        if await is_disconnected():
            logger.info("stream.client_disconnected prediction_id=%s", prediction_id)
            return

        events = relay.drain(prediction_id, next_index)
        for event in events:
            next_index = event.index + 1
            yield encode_sse(format_prediction_for_client(event.payload))

        if events and is_terminal_status(events[-1].payload.get("status")):
            relay.discard(prediction_id)
            logger.info(
                "stream.completed prediction_id=%s status=%s",
                prediction_id,
                events[-1].payload.get("status"),
            )
            return

        await asyncio.sleep(tick_seconds)

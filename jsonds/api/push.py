import asyncio
import logging
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)

class JSONSender(Protocol):
    async def send_json(self, data: Any) -> None: ...
    async def close(self, code: int = 1000) -> None: ...

async def push_loop(ws: JSONSender, payload: Sequence[str], interval_s: float = 3.0) -> int:
    """Push `payload` to the client every `interval_s` until a write fails.

    Inbound messages are never read. A failed write is treated as the client
    going away: the loop ends and the socket is closed. Returns the number of
    successful pushes.
    """
    sent = 0
    while True:
        try:
            await ws.send_json(list(payload))
        except Exception as exc:
            logger.info("push write failed after %d messages: %r", sent, exc)
            break
        sent += 1
        await asyncio.sleep(interval_s)
    try:
        await ws.close()
    except Exception as exc:
        # already torn down by the client
        logger.debug("close after failed write: %r", exc)
    return sent

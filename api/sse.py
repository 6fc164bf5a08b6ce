"""
Server-Sent Events (SSE) Manager for SlopWatch.

Streams new verdicts to dashboards. Verdicts are produced on the engine
thread, so publishing from there goes through publish_threadsafe(), which
hands the event to the event loop the subscribers live on.
"""

import asyncio
import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional, Set

logger = logging.getLogger(__name__)

VERDICTS_TOPIC = "verdicts"

# Per-subscriber backlog before events are dropped
SUBSCRIBER_QUEUE_SIZE = 100


@dataclass
class SSEEvent:
    """A single SSE event."""
    event_type: str
    data: Dict[str, Any]
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )

    def format(self) -> str:
        """Format as SSE message."""
        payload = {
            "type": self.event_type,
            "data": self.data,
            "timestamp": self.timestamp,
        }
        return f"event: {self.event_type}\ndata: {json.dumps(payload)}\n\n"


class SSEManager:
    """
    Manages SSE connections and event broadcasting per topic.
    """

    def __init__(self, keepalive_s: float = 30.0):
        self._queues: Dict[str, Set[asyncio.Queue]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.keepalive_s = keepalive_s

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    async def subscribe(self, topic: str = VERDICTS_TOPIC) -> AsyncGenerator[str, None]:
        """
        Subscribe to a topic.

        Yields SSE-formatted event strings.
        """
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)

        async with self._lock:
            self._queues[topic].add(queue)

        try:
            yield SSEEvent(
                event_type="connected",
                data={"topic": topic, "message": "SSE connection established"},
            ).format()

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=self.keepalive_s)
                    yield event.format()
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            async with self._lock:
                self._queues[topic].discard(queue)
                if not self._queues[topic]:
                    del self._queues[topic]

    async def publish(self, topic: str, event: SSEEvent) -> int:
        """
        Publish an event to all subscribers of a topic.

        Returns the number of subscribers notified.
        """
        async with self._lock:
            queues = self._queues.get(topic, set()).copy()
        return self._deliver(topic, event, queues)

    def _deliver(self, topic: str, event: SSEEvent, queues) -> int:
        delivered = 0
        for queue in queues:
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"SSE queue full for topic {topic}, dropping {event.event_type}")
        return delivered

    def publish_threadsafe(self, topic: str, event: SSEEvent) -> None:
        """Publish from a thread that is not running the event loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        queues = self._queues.get(topic, set()).copy()
        if queues:
            loop.call_soon_threadsafe(self._deliver, topic, event, queues)

    def verdict_listener(self, verdict) -> None:
        """Engine verdict listener that forwards each verdict to the stream."""
        self.publish_threadsafe(VERDICTS_TOPIC, SSEEvent(event_type="verdict", data=verdict.to_dict()))

    def get_subscriber_count(self, topic: str = VERDICTS_TOPIC) -> int:
        return len(self._queues.get(topic, set()))


sse_manager = SSEManager()

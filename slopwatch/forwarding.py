"""
Forwarding of claims and verdicts to external collaborators.

Forwarding is fire-and-forget: send_claim() and send_verdict() enqueue a
record and return immediately. A background worker delivers records; a
full queue drops the record with a warning, and delivery errors are
logged and swallowed here so they never reach the engine.

Usage:
    forwarder = build_forwarder(ForwardingConfig(jsonl_path="slopwatch.jsonl"))
    forwarder.send_verdict(verdict)
    forwarder.close()
"""

import json
import logging
import queue
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from .core.config_manager import ForwardingConfig

logger = logging.getLogger(__name__)

_STOP = object()


class Forwarder:
    """Interface for claim/verdict sinks. The base class discards everything."""

    name = "base"

    def send_claim(self, claim) -> None:
        pass

    def send_verdict(self, verdict) -> None:
        pass

    def open(self) -> None:
        pass

    def close(self, timeout: float = 5.0) -> None:
        pass


class NullForwarder(Forwarder):
    name = "null"


class QueuedForwarder(Forwarder):
    """
    Forwarder with a bounded queue drained by a daemon worker thread.

    Subclasses implement _deliver(kind, record).
    """

    def __init__(self, queue_size: int = 256):
        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self.dropped = 0
        self.delivered = 0
        self.failed = 0
        self._thread: Optional[threading.Thread] = None
        self.open()

    def open(self) -> None:
        """Start the worker; a no-op while it is alive."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run, name=f"slopwatch-forward-{self.name}", daemon=True
        )
        self._thread.start()

    def send_claim(self, claim) -> None:
        self._enqueue("claim", claim.to_dict())

    def send_verdict(self, verdict) -> None:
        self._enqueue("verdict", verdict.to_dict())

    def _enqueue(self, kind: str, record: Dict[str, Any]) -> None:
        try:
            self._queue.put_nowait((kind, record))
        except queue.Full:
            self.dropped += 1
            logger.warning(f"[FORWARDER] {self.name} queue full, dropped {kind} record")

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                kind, record = item
                try:
                    self._deliver(kind, record)
                    self.delivered += 1
                except Exception as e:
                    self.failed += 1
                    logger.warning(f"[FORWARDER] {self.name} failed to deliver {kind}: {e}")
            finally:
                self._queue.task_done()

    def _deliver(self, kind: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self, timeout: float = 5.0) -> None:
        """Deliver what is queued, then stop the worker."""
        if self._thread is None or not self._thread.is_alive():
            return
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning(f"[FORWARDER] {self.name} could not stop cleanly (queue full)")
            return
        self._thread.join(timeout=timeout)


class JsonlForwarder(QueuedForwarder):
    """
    Appends one JSON record per line to a file.

    Record format:
        {"type": "claim" | "verdict", "forwarded_at": "...Z", "data": {...}}
    """

    name = "jsonl"

    def __init__(self, path: str, queue_size: int = 256):
        self.path = Path(path)
        self._file_lock = threading.Lock()
        super().__init__(queue_size)

    def _deliver(self, kind: str, record: Dict[str, Any]) -> None:
        line = {
            "type": kind,
            "forwarded_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "data": record,
        }
        with self._file_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(line, ensure_ascii=False) + "\n")

    def read_records(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        """Read forwarded records back, skipping malformed lines."""
        if not self.path.exists():
            return []
        records = []
        with self._file_lock:
            with open(self.path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if kind is None or data.get("type") == kind:
                        records.append(data)
        return records


class HttpForwarder(QueuedForwarder):
    """POSTs each record as JSON to `<endpoint>/claims` or `<endpoint>/verdicts`."""

    name = "http"

    def __init__(self, endpoint: str, timeout: float = 5.0, queue_size: int = 256):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        super().__init__(queue_size)

    def _deliver(self, kind: str, record: Dict[str, Any]) -> None:
        response = self._session.post(
            f"{self.endpoint}/{kind}s",
            json=record,
            timeout=self.timeout,
        )
        response.raise_for_status()

    def close(self, timeout: float = 5.0) -> None:
        super().close(timeout)
        self._session.close()


class CompositeForwarder(Forwarder):
    """Fans every record out to several forwarders."""

    name = "composite"

    def __init__(self, forwarders: Iterable[Forwarder]):
        self.forwarders: Tuple[Forwarder, ...] = tuple(forwarders)

    def send_claim(self, claim) -> None:
        for forwarder in self.forwarders:
            try:
                forwarder.send_claim(claim)
            except Exception as e:
                logger.warning(f"[FORWARDER] {forwarder.name} rejected claim: {e}")

    def send_verdict(self, verdict) -> None:
        for forwarder in self.forwarders:
            try:
                forwarder.send_verdict(verdict)
            except Exception as e:
                logger.warning(f"[FORWARDER] {forwarder.name} rejected verdict: {e}")

    def open(self) -> None:
        for forwarder in self.forwarders:
            forwarder.open()

    def close(self, timeout: float = 5.0) -> None:
        for forwarder in self.forwarders:
            forwarder.close(timeout)


def build_forwarder(config: Optional[ForwardingConfig] = None) -> Forwarder:
    """Create the forwarder described by the configuration."""
    config = config or ForwardingConfig()
    forwarders: List[Forwarder] = []
    if config.jsonl_path:
        forwarders.append(JsonlForwarder(config.jsonl_path, queue_size=config.queue_size))
    if config.http_endpoint:
        forwarders.append(
            HttpForwarder(
                config.http_endpoint,
                timeout=config.http_timeout_s,
                queue_size=config.queue_size,
            )
        )

    if not forwarders:
        return NullForwarder()
    if len(forwarders) == 1:
        return forwarders[0]
    return CompositeForwarder(forwarders)

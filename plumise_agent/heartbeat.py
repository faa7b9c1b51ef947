"""Heartbeat loop for Plumise agent.

Sends a signed heartbeat immediately on start and then at a fixed interval
to keep the agent active on the network. A failed heartbeat is recorded in
`last_error` and never stops the loop; the next tick simply tries again.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .utils import isoformat

logger = logging.getLogger("plumise-agent")


@dataclass(frozen=True)
class HeartbeatState:
    """Point-in-time view of the heartbeat loop."""

    is_running: bool = False
    last_heartbeat_at: Optional[datetime] = None
    heartbeat_count: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "lastHeartbeat": isoformat(self.last_heartbeat_at),
            "totalHeartbeats": self.heartbeat_count,
            "lastError": self.last_error,
        }


class HeartbeatLoop:
    """Manages periodic heartbeats to the Plumise node.

    Each tick after the first runs on its own daemon thread, so a slow
    round-trip does not delay the next tick. Overlapping ticks may complete
    out of order and overwrite each other's results; pass
    `skip_overlapping=True` to skip a tick while the previous one is still
    in flight instead.
    """

    def __init__(
        self,
        gateway,
        signer,
        interval_ms: int,
        skip_overlapping: bool = False,
    ):
        """Initialize heartbeat loop.

        Args:
            gateway: Object with send_heartbeat(address, signature)
            signer: Object with `address` and sign(message)
            interval_ms: Milliseconds between heartbeats, must be > 0
            skip_overlapping: Skip a tick if the previous one has not finished
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got: {interval_ms}")

        self.gateway = gateway
        self.signer = signer
        self.interval_ms = interval_ms
        self.skip_overlapping = skip_overlapping

        self._state_lock = threading.Lock()
        self._in_flight = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._is_running = False
        self._last_heartbeat_at: Optional[datetime] = None
        self._heartbeat_count = 0
        self._last_error: Optional[str] = None

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def last_heartbeat_at(self) -> Optional[datetime]:
        return self._last_heartbeat_at

    @property
    def heartbeat_count(self) -> int:
        return self._heartbeat_count

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def snapshot(self) -> HeartbeatState:
        with self._state_lock:
            return HeartbeatState(
                is_running=self._is_running,
                last_heartbeat_at=self._last_heartbeat_at,
                heartbeat_count=self._heartbeat_count,
                last_error=self._last_error,
            )

    def to_dict(self) -> Dict[str, Any]:
        return self.snapshot().to_dict()

    def start(self) -> None:
        """Start the loop.

        Sends one heartbeat in the calling thread, then schedules the rest
        on a background thread. Returns once the first heartbeat has
        finished, whether it succeeded or not. No-op if already running.
        """
        with self._state_lock:
            if self._is_running:
                logger.debug("Heartbeat loop already running")
                return
            self._is_running = True
            self._last_error = None
            stop_event = self._stop_event = threading.Event()

        self.send_heartbeat()

        # stop() may have been called while the first heartbeat was in flight
        if stop_event.is_set():
            return

        self._thread = threading.Thread(
            target=self._run_loop,
            args=(stop_event,),
            name="heartbeat-loop",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Started heartbeat loop (interval: {self.interval_ms}ms)")

    def stop(self) -> None:
        """Stop scheduling heartbeats.

        A heartbeat already in flight is not waited for and may still
        update the state after this returns.
        """
        with self._state_lock:
            self._stop_event.set()
            was_running = self._is_running
            self._is_running = False
            count = self._heartbeat_count
        self._thread = None
        if was_running:
            logger.info(f"Stopped heartbeat loop after {count} heartbeats")

    def _run_loop(self, stop_event: threading.Event) -> None:
        """Timer thread: dispatch a tick every interval until stopped."""
        while not stop_event.wait(timeout=self.interval):
            self._dispatch()

    def _dispatch(self) -> None:
        if self.skip_overlapping:
            if not self._in_flight.acquire(blocking=False):
                logger.debug("Previous heartbeat still in flight, skipping tick")
                return
            target = self._send_guarded
        else:
            target = self.send_heartbeat

        threading.Thread(target=target, name="heartbeat-tick", daemon=True).start()

    def _send_guarded(self) -> None:
        try:
            self.send_heartbeat()
        finally:
            self._in_flight.release()

    def send_heartbeat(self) -> bool:
        """Send a single heartbeat and record the outcome.

        Returns:
            True if the node accepted the call, False otherwise
        """
        try:
            address = self.signer.address
            timestamp = int(time.time())
            message = f"heartbeat:{address}:{timestamp}"
            signature = self.signer.sign(message)

            self.gateway.send_heartbeat(address, signature)

        except Exception as e:
            error = str(e) or type(e).__name__
            with self._state_lock:
                self._last_error = error
            logger.warning(f"Heartbeat failed: {error}")
            return False

        with self._state_lock:
            self._last_heartbeat_at = datetime.now(timezone.utc)
            self._heartbeat_count += 1
            self._last_error = None
            count = self._heartbeat_count
        logger.debug(f"Heartbeat #{count} sent for {address}")
        return True

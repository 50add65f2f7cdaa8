"""
Session Aggregator

Counts sessions started and handled/unhandled events per time window, and
turns closed windows into SessionPayloads.

Windows are keyed by their UTC start time. A flushed window is sealed: any
later increment that resolves to it is attributed to the first open window.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from ..models import SessionBucket, SessionPayload, SessionSnapshot, SessionSummary

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class SessionAggregator:
    """
    Thread-safe, time-windowed session counters.

    All counters are mutated under one lock; flush removes and snapshots
    closed buckets under the same lock, so no increment is lost or counted
    twice.
    """

    def __init__(
        self,
        window_seconds: int = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.window = timedelta(seconds=window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: Dict[datetime, SessionBucket] = {}
        self._sealed_until: Optional[datetime] = None
        self._session: Optional[SessionSnapshot] = None

    def window_start(self, moment: datetime) -> datetime:
        """Start of the window containing ``moment``."""
        elapsed = _as_utc(moment) - _EPOCH
        return _EPOCH + (elapsed // self.window) * self.window

    def _bucket_for(self, moment: datetime) -> SessionBucket:
        # Caller holds self._lock
        key = self.window_start(moment)
        if self._sealed_until is not None and key < self._sealed_until:
            key = self._sealed_until
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = SessionBucket(started_at=key)
            self._buckets[key] = bucket
        return bucket

    def start_session(self, now: Optional[datetime] = None) -> SessionSnapshot:
        """Begin a new session; events captured afterwards reference it."""
        now = _as_utc(now or self._clock())
        with self._lock:
            self._session = SessionSnapshot(id=str(uuid.uuid4()), started_at=now)
            self._bucket_for(now).sessions_started += 1
            session = self._session
        logger.debug("Started session %s", session.id)
        return session

    def current_session(self) -> Optional[SessionSnapshot]:
        with self._lock:
            return self._session

    def record_handled(self, now: Optional[datetime] = None) -> Optional[SessionSnapshot]:
        """Count a handled event in the current window and the active session, if any."""
        return self._record(unhandled=False, now=now)

    def record_unhandled(self, now: Optional[datetime] = None) -> Optional[SessionSnapshot]:
        """Count an unhandled event in the current window and the active session, if any."""
        return self._record(unhandled=True, now=now)

    def _record(self, unhandled: bool, now: Optional[datetime]) -> Optional[SessionSnapshot]:
        now = _as_utc(now or self._clock())
        with self._lock:
            bucket = self._bucket_for(now)
            if unhandled:
                bucket.unhandled += 1
            else:
                bucket.handled += 1

            session = self._session
            if session is None:
                return None

            if unhandled:
                session = SessionSnapshot(
                    id=session.id,
                    started_at=session.started_at,
                    handled=session.handled,
                    unhandled=session.unhandled + 1,
                )
            else:
                session = SessionSnapshot(
                    id=session.id,
                    started_at=session.started_at,
                    handled=session.handled + 1,
                    unhandled=session.unhandled,
                )
            self._session = session
            return session

    def pending_bucket_count(self) -> int:
        with self._lock:
            return len(self._buckets)

    def flush(
        self,
        now: Optional[datetime] = None,
        app: Optional[Mapping[str, Any]] = None,
        device: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SessionPayload]:
        """
        Remove every window that closed at or before ``now``.

        Args:
            now: Flush time (defaults to the clock)
            app: App metadata for the payload
            device: Device metadata for the payload

        Returns:
            A payload with one entry per closed, non-empty window, or None
        """
        now = _as_utc(now or self._clock())
        with self._lock:
            closed = [key for key in self._buckets if key + self.window <= now]
            if closed:
                seal = max(closed) + self.window
                if self._sealed_until is None or seal > self._sealed_until:
                    self._sealed_until = seal
            buckets = [self._buckets.pop(key) for key in sorted(closed)]

        return self._payload(buckets, app, device)

    def flush_all(
        self,
        app: Optional[Mapping[str, Any]] = None,
        device: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SessionPayload]:
        """Remove every window, open or closed. Used on shutdown."""
        with self._lock:
            keys = sorted(self._buckets)
            if keys:
                seal = keys[-1] + self.window
                if self._sealed_until is None or seal > self._sealed_until:
                    self._sealed_until = seal
            buckets = [self._buckets.pop(key) for key in keys]

        return self._payload(buckets, app, device)

    def _payload(self, buckets, app, device) -> Optional[SessionPayload]:
        summaries = tuple(SessionSummary.from_bucket(b) for b in buckets if not b.is_empty)
        if not summaries:
            return None

        logger.debug("Flushing %d session window(s)", len(summaries))
        return SessionPayload(
            app=dict(app or {}),
            device=dict(device or {}),
            session_counts=summaries,
        )

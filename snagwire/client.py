"""
Notifier Client

Ties the capture pipeline together:

    capture:  gate -> build -> callbacks -> session count -> redact -> enqueue
    tick:     session flush -> enqueue

Everything up to the enqueue runs inline on the calling thread and is
in-memory only; network I/O happens on the delivery worker's threads.
"""

import atexit
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config import Configuration, EndpointConfig, ProxyConfig
from .delivery import Delivery, DeliveryWorker, HttpDelivery, JsonSerializer, Serializer
from .models import (
    DeliveryTask,
    Event,
    MutationOutcome,
    RawCapture,
    SessionPayload,
    SessionSnapshot,
    Severity,
)
from .pipeline import (
    Callback,
    CaptureGate,
    app_metadata,
    build_event,
    device_metadata,
    redact,
    run_callbacks,
)
from .sessions import SessionAggregator, SessionFlushTimer, utcnow

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = "4.0"


class Client:
    """
    Captures exceptions and sessions and delivers them in the background.

    Usage:
        config = Configuration.from_env()
        client = Client(config)
        client.register_shutdown_handler()

        try:
            charge(order)
        except PaymentError as e:
            client.notify(e)
    """

    def __init__(
        self,
        config: Optional[Configuration] = None,
        delivery: Optional[Delivery] = None,
        session_delivery: Optional[Delivery] = None,
        serializer: Optional[Serializer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the client and start its delivery worker.

        Args:
            config: Configuration (defaults to Configuration.from_env())
            delivery: Transport for events (defaults to HttpDelivery)
            session_delivery: Transport for sessions (defaults to ``delivery``)
            serializer: Payload encoder (defaults to JsonSerializer)
            clock: Source of "now" for session windows
        """
        config = config or Configuration.from_env()
        self._config = config
        self._lock = threading.Lock()

        self.delivery = delivery or HttpDelivery(timeout=config.delivery_timeout)
        self.session_delivery = session_delivery or self.delivery
        self.serializer = serializer or JsonSerializer()
        self.gate = CaptureGate()
        self.sessions = SessionAggregator(window_seconds=config.session_window, clock=clock)
        self.worker = DeliveryWorker(
            worker_count=config.worker_count,
            grace_period=config.shutdown_grace_period,
        )

        self._callbacks: List[Callback] = []
        self._timer: Optional[SessionFlushTimer] = None
        self._device = device_metadata()
        self._stopped = False
        self._dropped = 0

        if not config.enabled:
            logger.debug("No api key configured, events will not be sent")

    # Configuration

    @property
    def config(self) -> Configuration:
        """Current configuration snapshot."""
        return self._config

    def configure(self, **changes: Any) -> Configuration:
        """
        Replace configuration fields.

        Tasks already built keep the configuration they were built with.
        """
        with self._lock:
            self._config = self._config.with_changes(**changes)
            return self._config

    def set_release_stage(self, release_stage: str) -> None:
        self.configure(release_stage=release_stage)

    def set_endpoints(self, notify: Optional[str] = None, sessions: Optional[str] = None) -> None:
        current = self.config.endpoints
        self.configure(endpoints=EndpointConfig(
            notify=notify or current.notify,
            sessions=sessions or current.sessions,
        ))

    def set_proxy(self, proxy: Optional[ProxyConfig]) -> None:
        self.configure(proxy=proxy)

    def set_filters(self, *filters: str) -> None:
        self.configure(filters=tuple(filters))

    # Callbacks

    def add_callback(self, callback: Callback) -> None:
        """Register a callback run on every event, in registration order."""
        with self._lock:
            self._callbacks = self._callbacks + [callback]

    def remove_callback(self, callback: Callback) -> None:
        with self._lock:
            self._callbacks = [cb for cb in self._callbacks if cb is not callback]

    # Capture

    def capture(self, raw: RawCapture, callback: Optional[Callback] = None) -> None:
        """Report a raw capture. Returns immediately and never raises."""
        self._process(raw, callback)

    def notify(
        self,
        exception: BaseException,
        severity: Severity = Severity.WARNING,
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
        callback: Optional[Callback] = None,
        unhandled: bool = False,
    ) -> bool:
        """
        Report an exception.

        Args:
            exception: The exception to report
            severity: Event severity
            metadata: Extra tab -> key -> value metadata
            callback: Callback run after the registered ones, for this event only
            unhandled: Whether the exception escaped application code

        Returns:
            True if an event was queued for delivery
        """
        try:
            raw = RawCapture.from_exception(
                exception,
                severity=severity,
                unhandled=unhandled,
                metadata=metadata,
                send_threads=self.config.send_threads,
            )
        except Exception:
            logger.error("Failed to read exception %r", exception, exc_info=True)
            return False
        return self._process(raw, callback)

    def _process(self, raw: RawCapture, callback: Optional[Callback]) -> bool:
        config = self.config
        try:
            if not config.enabled:
                logger.debug("No api key configured, skipping event")
                return False

            if not self.gate.should_capture(raw, config):
                return False

            draft = build_event(
                raw,
                config,
                session=self.sessions.current_session(),
                device=self._device,
            )

            callbacks = list(self._callbacks)
            if callback is not None:
                callbacks.append(callback)
            if run_callbacks(draft, callbacks) is MutationOutcome.SUPPRESS:
                logger.debug("Event %s suppressed by callback", draft.exception_class)
                return False

            if draft.unhandled:
                session = self.sessions.record_unhandled()
            else:
                session = self.sessions.record_handled()
            if session is not None:
                draft.session = session

            draft.metadata = redact(draft.metadata, config.filters)
            event = draft.freeze()
            return self._enqueue_event(event, config)

        except Exception:
            logger.error("Failed to capture event", exc_info=True)
            return False

    def _headers(self, api_key: Optional[str]) -> Dict[str, str]:
        return {
            "Api-Key": api_key or "",
            "Payload-Version": PAYLOAD_VERSION,
            "Sent-At": datetime.now(timezone.utc).isoformat(),
        }

    def _enqueue_event(self, event: Event, config: Configuration) -> bool:
        task = DeliveryTask(
            payload=self.serializer.encode(event),
            endpoint=config.endpoints.notify,
            delivery=self.delivery,
            proxy=config.proxy,
            headers=self._headers(event.api_key or config.api_key),
            description=f"event {event.exception_class}",
        )
        return self.worker.enqueue(task)

    def _enqueue_sessions(self, payload: SessionPayload, config: Configuration) -> bool:
        task = DeliveryTask(
            payload=self.serializer.encode(payload),
            endpoint=config.endpoints.sessions,
            delivery=self.session_delivery,
            proxy=config.proxy,
            headers=self._headers(config.api_key),
            description=f"{len(payload.session_counts)} session window(s)",
        )
        return self.worker.enqueue(task)

    # Sessions

    def start_session(self) -> SessionSnapshot:
        """Start a session. Events captured afterwards count against it."""
        session = self.sessions.start_session()
        interval = self.config.session_flush_interval
        if interval > 0 and not self._stopped:
            with self._lock:
                if self._timer is None:
                    self._timer = SessionFlushTimer(self.tick, interval=interval)
                    self._timer.start()
        return session

    def tick(self, now: Optional[datetime] = None) -> None:
        """Timer callback: flush closed session windows. Never raises."""
        try:
            self.flush_now(now)
        except Exception:
            logger.error("Failed to flush sessions", exc_info=True)

    def flush_now(self, now: Optional[datetime] = None) -> Optional[SessionPayload]:
        """
        Flush every session window closed at ``now`` and queue the payload.

        Returns:
            The payload that was queued, or None if no window had closed
        """
        config = self.config
        payload = self.sessions.flush(now, app=app_metadata(config), device=self._device)
        if payload is not None and config.enabled:
            self._enqueue_sessions(payload, config)
        return payload

    def pending_task_count(self) -> int:
        """Queued plus in-flight delivery tasks."""
        return self.worker.pending_task_count()

    # Lifecycle

    def stop(self, grace_period: Optional[float] = None) -> int:
        """
        Flush sessions and drain the delivery worker.

        Waits up to the grace period (``config.shutdown_grace_period`` by
        default). Safe to call more than once.

        Returns:
            Number of payloads that were not delivered
        """
        with self._lock:
            if self._stopped:
                return self._dropped
            self._stopped = True
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.stop()

        config = self.config
        try:
            payload = self.sessions.flush_all(app=app_metadata(config), device=self._device)
            if payload is not None and config.enabled:
                self._enqueue_sessions(payload, config)
        except Exception:
            logger.error("Failed to flush sessions on shutdown", exc_info=True)

        grace = config.shutdown_grace_period if grace_period is None else grace_period
        self._dropped = self.worker.stop(grace)

        # Abandoned workers may still be using the transports
        if self._dropped == 0:
            self._close_transports()
        return self._dropped

    def _close_transports(self) -> None:
        transports = [self.delivery]
        if self.session_delivery is not self.delivery:
            transports.append(self.session_delivery)
        for transport in transports:
            try:
                transport.close()
            except Exception:
                logger.warning("Failed to close %r", transport, exc_info=True)

    def register_shutdown_handler(self) -> None:
        """Drain pending payloads when the interpreter exits."""
        atexit.register(self.stop)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.stop()
        return False

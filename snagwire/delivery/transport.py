"""Delivery - Interface and implementations for sending payloads."""

import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import IO, Dict, List, Optional, Tuple

import requests

from ..config import ProxyConfig

logger = logging.getLogger(__name__)


class Delivery(ABC):
    """Abstract transport. Called synchronously from a delivery worker."""

    @abstractmethod
    def deliver(
        self,
        payload: bytes,
        endpoint: str,
        proxy: Optional[ProxyConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        """
        Send a serialized payload.

        Returns:
            True if the endpoint accepted the payload
        """
        pass

    def close(self) -> None:
        """Release any resources held by the transport."""
        pass


class HttpDelivery(Delivery):
    """POSTs payloads with a shared ``requests.Session``."""

    # Request timeout in seconds (connect, read)
    DEFAULT_TIMEOUT = (5, 10)

    def __init__(self, timeout=None, session: Optional[requests.Session] = None):
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.session = session or requests.Session()

    def deliver(
        self,
        payload: bytes,
        endpoint: str,
        proxy: Optional[ProxyConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        request_headers = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)

        try:
            response = self.session.post(
                endpoint,
                data=payload,
                headers=request_headers,
                proxies=proxy.to_requests_proxies() if proxy else None,
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.debug("Delivered %d bytes to %s", len(payload), endpoint)
            return True

        except requests.RequestException as e:
            logger.warning("Failed to deliver payload to %s: %s", endpoint, e)
            return False

    def close(self) -> None:
        self.session.close()


class OutputStreamDelivery(Delivery):
    """Writes payloads to a stream, one per line. Useful for local debugging."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()

    def deliver(
        self,
        payload: bytes,
        endpoint: str,
        proxy: Optional[ProxyConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        with self._lock:
            self.stream.write(payload.decode("utf-8"))
            self.stream.write("\n")
            self.stream.flush()
        return True


class MockDelivery(Delivery):
    """Records deliveries in memory for testing."""

    def __init__(self, result: bool = True):
        self.result = result
        self.deliveries: List[Tuple[bytes, str, Optional[ProxyConfig], Dict[str, str]]] = []
        self.closed = False
        self._lock = threading.Lock()

    def deliver(
        self,
        payload: bytes,
        endpoint: str,
        proxy: Optional[ProxyConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        with self._lock:
            self.deliveries.append((payload, endpoint, proxy, dict(headers or {})))
        return self.result

    @property
    def payloads(self) -> List[bytes]:
        with self._lock:
            return [d[0] for d in self.deliveries]

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.deliveries)

    def close(self) -> None:
        self.closed = True

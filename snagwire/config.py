"""
Notifier Configuration

Loads notifier settings from environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

DEFAULT_NOTIFY_ENDPOINT = "https://notify.snagwire.dev"
DEFAULT_SESSION_ENDPOINT = "https://sessions.snagwire.dev"

DEFAULT_FILTERS = ("password", "secret", "Authorization", "Cookie")

PROXY_TYPES = ("http", "https", "socks4", "socks5")


class SnagwireError(Exception):
    """Raised for invalid notifier configuration."""


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(',') if v.strip())


@dataclass(frozen=True)
class EndpointConfig:
    notify: str = DEFAULT_NOTIFY_ENDPOINT
    sessions: str = DEFAULT_SESSION_ENDPOINT


@dataclass(frozen=True)
class ProxyConfig:
    """Proxy used by the HTTP transport."""

    hostname: str
    port: int
    type: str = "http"
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        if self.type not in PROXY_TYPES:
            raise SnagwireError(f"Unsupported proxy type: {self.type}")

    @property
    def url(self) -> str:
        auth = ""
        if self.username:
            auth = self.username
            if self.password:
                auth += f":{self.password}"
            auth += "@"
        return f"{self.type}://{auth}{self.hostname}:{self.port}"

    @property
    def address(self) -> str:
        return f"{self.hostname}:{self.port}"

    def to_requests_proxies(self) -> Dict[str, str]:
        """Proxy mapping in the form ``requests`` expects."""
        return {"http": self.url, "https": self.url}


@dataclass(frozen=True)
class Configuration:
    """Configuration for the notifier. Treated as immutable once built."""

    api_key: Optional[str] = field(default=None)

    # App metadata stamped on every event and session payload
    release_stage: str = "production"
    app_version: Optional[str] = None
    app_type: Optional[str] = None

    # Capture and redaction rules
    project_packages: Tuple[str, ...] = ()
    ignore_classes: Tuple[str, ...] = ()
    notify_release_stages: Tuple[str, ...] = ()
    filters: Tuple[str, ...] = DEFAULT_FILTERS
    send_threads: bool = False

    # Delivery
    endpoints: EndpointConfig = field(default_factory=EndpointConfig)
    proxy: Optional[ProxyConfig] = None
    worker_count: int = 2
    shutdown_grace_period: float = 1.0
    delivery_timeout: float = 10.0

    # Sessions
    session_window: int = 60
    session_flush_interval: float = 60.0

    def __post_init__(self):
        for name in ("project_packages", "ignore_classes", "notify_release_stages", "filters"):
            value = getattr(self, name)
            if isinstance(value, str):
                value = _split_list(value)
            object.__setattr__(self, name, tuple(value or ()))

        if self.worker_count < 1:
            raise SnagwireError("worker_count must be at least 1")
        if self.session_window < 1:
            raise SnagwireError("session_window must be at least 1 second")
        if self.shutdown_grace_period < 0:
            raise SnagwireError("shutdown_grace_period cannot be negative")

    @classmethod
    def from_env(cls) -> "Configuration":
        """Create config from environment variables."""
        proxy = None
        if os.getenv("SNAGWIRE_PROXY_HOST"):
            proxy = ProxyConfig(
                hostname=os.environ["SNAGWIRE_PROXY_HOST"],
                port=int(os.getenv("SNAGWIRE_PROXY_PORT", "8080")),
                type=os.getenv("SNAGWIRE_PROXY_TYPE", "http"),
                username=os.getenv("SNAGWIRE_PROXY_USER"),
                password=os.getenv("SNAGWIRE_PROXY_PASSWORD"),
            )

        filters = os.getenv("SNAGWIRE_FILTERS")

        return cls(
            api_key=os.getenv("SNAGWIRE_API_KEY"),
            release_stage=os.getenv("SNAGWIRE_RELEASE_STAGE", "production"),
            app_version=os.getenv("SNAGWIRE_APP_VERSION"),
            app_type=os.getenv("SNAGWIRE_APP_TYPE"),
            project_packages=_split_list(os.getenv("SNAGWIRE_PROJECT_PACKAGES")),
            ignore_classes=_split_list(os.getenv("SNAGWIRE_IGNORE_CLASSES")),
            notify_release_stages=_split_list(os.getenv("SNAGWIRE_NOTIFY_RELEASE_STAGES")),
            filters=_split_list(filters) if filters is not None else DEFAULT_FILTERS,
            send_threads=os.getenv("SNAGWIRE_SEND_THREADS", "false").lower() == "true",
            endpoints=EndpointConfig(
                notify=os.getenv("SNAGWIRE_NOTIFY_ENDPOINT", DEFAULT_NOTIFY_ENDPOINT),
                sessions=os.getenv("SNAGWIRE_SESSION_ENDPOINT", DEFAULT_SESSION_ENDPOINT),
            ),
            proxy=proxy,
            worker_count=int(os.getenv("SNAGWIRE_WORKER_COUNT", "2")),
            shutdown_grace_period=float(os.getenv("SNAGWIRE_SHUTDOWN_GRACE_PERIOD", "1.0")),
            delivery_timeout=float(os.getenv("SNAGWIRE_DELIVERY_TIMEOUT", "10.0")),
            session_window=int(os.getenv("SNAGWIRE_SESSION_WINDOW", "60")),
            session_flush_interval=float(os.getenv("SNAGWIRE_SESSION_FLUSH_INTERVAL", "60.0")),
        )

    @property
    def enabled(self) -> bool:
        """Check if an api key is configured."""
        return bool(self.api_key)

    def should_notify_for_release_stage(self) -> bool:
        if not self.notify_release_stages:
            return True
        return self.release_stage in self.notify_release_stages

    def with_changes(self, **changes) -> "Configuration":
        """Copy of this configuration with some fields replaced."""
        return replace(self, **changes)

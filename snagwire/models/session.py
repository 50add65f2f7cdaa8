"""Session Types - Session snapshots, time-windowed buckets and flush payloads."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the active session, referenced by events."""

    id: str
    started_at: datetime
    handled: int = 0
    unhandled: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startedAt": self.started_at.isoformat(),
            "events": {
                "handled": self.handled,
                "unhandled": self.unhandled,
            },
        }


@dataclass
class SessionBucket:
    """Counters for one time window. Mutated only under the aggregator lock."""

    started_at: datetime
    sessions_started: int = 0
    handled: int = 0
    unhandled: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.sessions_started or self.handled or self.unhandled)


@dataclass(frozen=True)
class SessionSummary:
    """Counts reported for one closed window."""

    started_at: datetime
    sessions_started: int
    handled: int
    unhandled: int

    @classmethod
    def from_bucket(cls, bucket: SessionBucket) -> "SessionSummary":
        return cls(
            started_at=bucket.started_at,
            sessions_started=bucket.sessions_started,
            handled=bucket.handled,
            unhandled=bucket.unhandled,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": self.started_at.isoformat(),
            "sessionsStarted": self.sessions_started,
            "handled": self.handled,
            "unhandled": self.unhandled,
        }


@dataclass(frozen=True)
class SessionPayload:
    """Snapshot produced at flush time and handed to delivery."""

    app: Mapping[str, Any]
    device: Mapping[str, Any]
    session_counts: Tuple[SessionSummary, ...] = field(default_factory=tuple)

    @property
    def handled(self) -> int:
        return sum(s.handled for s in self.session_counts)

    @property
    def unhandled(self) -> int:
        return sum(s.unhandled for s in self.session_counts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "app": dict(self.app),
            "device": dict(self.device),
            "sessionCounts": [s.to_dict() for s in self.session_counts],
        }

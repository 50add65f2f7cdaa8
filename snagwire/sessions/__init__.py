"""Session tracking - Windowed counters and the periodic flush timer."""

from .aggregator import SessionAggregator, utcnow
from .timer import SessionFlushTimer

__all__ = [
    'SessionAggregator',
    'SessionFlushTimer',
    'utcnow',
]

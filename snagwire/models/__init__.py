"""Data models - Dataclass definitions for captures, events, sessions and tasks."""

from .event import (
    Severity,
    MutationOutcome,
    RawFrame,
    RawException,
    RawCapture,
    ThreadInfo,
    StackFrame,
    ExceptionRecord,
    EventDraft,
    Event,
)
from .session import SessionSnapshot, SessionBucket, SessionSummary, SessionPayload
from .delivery import DeliveryTask

__all__ = [
    'Severity',
    'MutationOutcome',
    'RawFrame',
    'RawException',
    'RawCapture',
    'ThreadInfo',
    'StackFrame',
    'ExceptionRecord',
    'EventDraft',
    'Event',
    'SessionSnapshot',
    'SessionBucket',
    'SessionSummary',
    'SessionPayload',
    'DeliveryTask',
]

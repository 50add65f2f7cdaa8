"""Capture pipeline - Gate, build, callbacks and redaction."""

from .gate import CaptureGate, EXCLUDED_COMPONENTS
from .builder import build_event, classify_frame, is_in_project, app_metadata, device_metadata
from .redaction import redact, should_filter, FILTERED
from .callbacks import run_callbacks, Callback

__all__ = [
    'CaptureGate',
    'EXCLUDED_COMPONENTS',
    'build_event',
    'classify_frame',
    'is_in_project',
    'app_metadata',
    'device_metadata',
    'redact',
    'should_filter',
    'FILTERED',
    'run_callbacks',
    'Callback',
]

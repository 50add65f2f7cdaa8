"""snagwire - Asynchronous exception and session notifier.

Captures exceptions and session counts and ships them to a remote
error-tracking endpoint in the background, without blocking or crashing the
instrumented application.

Modules:
    models - Data models (dataclasses)
    pipeline - Capture gate, event builder, callbacks, redaction
    delivery - Serializer, transports and the delivery worker
    sessions - Windowed session counters
    integrations - logging handler and uncaught-exception hooks
    client - The Client tying it all together
    config - Configuration
"""

from .config import Configuration, EndpointConfig, ProxyConfig, SnagwireError
from .client import Client
from .context import metadata_scope, add_metadata, clear_metadata
from .decorators import capture_errors
from .models import Severity, MutationOutcome, RawCapture, EventDraft, Event
from .delivery import Delivery, HttpDelivery, OutputStreamDelivery, MockDelivery

__all__ = [
    'Configuration',
    'EndpointConfig',
    'ProxyConfig',
    'SnagwireError',
    'Client',
    'metadata_scope',
    'add_metadata',
    'clear_metadata',
    'capture_errors',
    'Severity',
    'MutationOutcome',
    'RawCapture',
    'EventDraft',
    'Event',
    'Delivery',
    'HttpDelivery',
    'OutputStreamDelivery',
    'MockDelivery',
]

__version__ = '1.0.0'

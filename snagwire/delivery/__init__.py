"""Delivery layer - Serialization, transports and the background worker."""

from .serializer import Serializer, JsonSerializer
from .transport import Delivery, HttpDelivery, OutputStreamDelivery, MockDelivery
from .worker import DeliveryWorker, DEFAULT_GRACE_PERIOD

__all__ = [
    'Serializer',
    'JsonSerializer',
    'Delivery',
    'HttpDelivery',
    'OutputStreamDelivery',
    'MockDelivery',
    'DeliveryWorker',
    'DEFAULT_GRACE_PERIOD',
]

"""Serializer - Encodes events and session payloads to bytes."""

import json
from abc import ABC, abstractmethod
from typing import Any


class Serializer(ABC):
    """Abstract interface for payload encoding."""

    @abstractmethod
    def encode(self, obj: Any) -> bytes:
        """Encode an Event or SessionPayload."""
        pass


class JsonSerializer(Serializer):
    """Encodes anything exposing ``to_dict()`` as UTF-8 JSON."""

    def __init__(self, indent: Any = None):
        self.indent = indent

    def encode(self, obj: Any) -> bytes:
        data = obj.to_dict() if hasattr(obj, "to_dict") else obj
        return json.dumps(data, default=str, indent=self.indent).encode("utf-8")

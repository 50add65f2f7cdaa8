"""Delivery Types - Units of work handed to the delivery worker."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from ..config import ProxyConfig
    from ..delivery.transport import Delivery


@dataclass(frozen=True)
class DeliveryTask:
    """A serialized payload bound for one endpoint. Consumed exactly once."""

    payload: bytes
    endpoint: str
    delivery: "Delivery"
    proxy: Optional["ProxyConfig"] = None
    headers: Dict[str, str] = field(default_factory=dict)
    description: str = "event"

    def run(self) -> bool:
        """Hand the payload to the transport."""
        return self.delivery.deliver(
            self.payload,
            self.endpoint,
            proxy=self.proxy,
            headers=self.headers,
        )

    def __repr__(self) -> str:
        return f"DeliveryTask({self.description} -> {self.endpoint}, {len(self.payload)} bytes)"

"""Capture Gate - Decides whether a raw capture should become an event."""

import logging
from typing import Iterable, Tuple

from ..config import Configuration
from ..models import RawCapture

logger = logging.getLogger(__name__)

# Components that log their own failures. Captures raised from inside them
# would feed back into the notifier.
EXCLUDED_COMPONENTS: Tuple[str, ...] = (
    "snagwire.client",
    "snagwire.delivery",
    "snagwire.sessions",
)


def matches_prefix(name: str, prefixes: Iterable[str]) -> bool:
    """True if ``name`` is one of ``prefixes`` or lives beneath one of them."""
    for prefix in prefixes:
        if not prefix:
            continue
        if prefix.endswith("."):
            if name.startswith(prefix):
                return True
        elif name == prefix or name.startswith(prefix + "."):
            return True
    return False


class CaptureGate:
    """Pure predicate run before an event is built."""

    def __init__(self, excluded_components: Tuple[str, ...] = EXCLUDED_COMPONENTS):
        self.excluded_components = excluded_components

    def should_capture(self, raw: RawCapture, config: Configuration) -> bool:
        """
        Check whether a capture should be reported.

        Never raises: an internal fault is logged and the capture proceeds.

        Args:
            raw: The raw capture
            config: Configuration snapshot for this capture

        Returns:
            False if the capture is ignored, excluded or in a muted release stage
        """
        try:
            return self._evaluate(raw, config)
        except Exception:
            logger.warning("Capture gate failed, reporting anyway", exc_info=True)
            return True

    def _evaluate(self, raw: RawCapture, config: Configuration) -> bool:
        primary = raw.primary
        if primary is None:
            return True

        if primary.type_name in config.ignore_classes:
            logger.debug("Ignoring %s: listed in ignore_classes", primary.type_name)
            return False

        if self.is_self_emitted(raw):
            logger.debug("Ignoring %s: raised inside the notifier", primary.type_name)
            return False

        if not config.should_notify_for_release_stage():
            logger.debug(
                "Ignoring %s: release stage %s not in %s",
                primary.type_name,
                config.release_stage,
                list(config.notify_release_stages),
            )
            return False

        return True

    def is_self_emitted(self, raw: RawCapture) -> bool:
        """Check if any frame of the primary exception belongs to the notifier."""
        primary = raw.primary
        if primary is None:
            return False
        return any(
            matches_prefix(frame.module, self.excluded_components)
            for frame in primary.frames
        )

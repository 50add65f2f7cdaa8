"""
Capture Decorators

Provides a decorator for automatic error capture.
"""

import functools
import logging
from typing import Any, Callable, Dict, Optional, TypeVar, cast

from .client import Client
from .context import metadata_scope
from .models import Severity

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def capture_errors(
    client: Client,
    severity: Severity = Severity.ERROR,
    reraise: bool = True,
    metadata: Optional[Dict[str, Any]] = None,
) -> Callable[[F], F]:
    """
    Decorator to report exceptions escaping a function.

    Args:
        client: Client used to report
        severity: Severity of the reported event
        reraise: Whether to reraise the exception after capture
        metadata: Values added to a "function" tab on every capture

    Usage:
        @capture_errors(client)
        def sync_orders():
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            tab = {"name": func.__qualname__}
            tab.update(metadata or {})

            with metadata_scope("function", **tab):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    client.notify(e, severity=severity, unhandled=reraise)

                    if reraise:
                        raise

                    logger.debug("Suppressed %s from %s", type(e).__name__, func.__qualname__)
                    return None

        return cast(F, wrapper)

    return decorator

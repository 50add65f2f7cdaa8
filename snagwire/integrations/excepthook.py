"""Uncaught Exception Hooks - Report exceptions that escape the main thread or worker threads."""

import sys
import threading
from typing import Any, Optional

from ..client import Client
from ..models import Severity

_previous_excepthook: Optional[Any] = None
_previous_threading_excepthook: Optional[Any] = None


def install_excepthook(client: Client) -> None:
    """
    Report uncaught exceptions with severity ERROR, then chain to the previous hooks.

    Args:
        client: Client used to report
    """
    global _previous_excepthook, _previous_threading_excepthook

    uninstall_excepthook()
    previous = sys.excepthook
    previous_threading = threading.excepthook

    def excepthook(exc_type, exc_value, exc_tb):
        if exc_value is not None and not issubclass(exc_type, KeyboardInterrupt):
            client.notify(exc_value, severity=Severity.ERROR, unhandled=True)
        previous(exc_type, exc_value, exc_tb)

    def threading_excepthook(args):
        if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
            client.notify(
                args.exc_value,
                severity=Severity.ERROR,
                unhandled=True,
                metadata={"thread": {"name": getattr(args.thread, "name", None)}},
            )
        previous_threading(args)

    _previous_excepthook = previous
    _previous_threading_excepthook = previous_threading
    sys.excepthook = excepthook
    threading.excepthook = threading_excepthook


def uninstall_excepthook() -> None:
    """Restore the hooks that were active before install_excepthook()."""
    global _previous_excepthook, _previous_threading_excepthook

    if _previous_excepthook is not None:
        sys.excepthook = _previous_excepthook
        _previous_excepthook = None
    if _previous_threading_excepthook is not None:
        threading.excepthook = _previous_threading_excepthook
        _previous_threading_excepthook = None

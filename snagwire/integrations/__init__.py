"""Integrations - Entry points that feed captures into a Client."""

from .logging import SnagwireHandler, severity_for_level
from .excepthook import install_excepthook, uninstall_excepthook

__all__ = [
    'SnagwireHandler',
    'severity_for_level',
    'install_excepthook',
    'uninstall_excepthook',
]

"""
Scoped Metadata

Metadata attached to the logical unit of work (a request, a job, a task)
rather than to a thread. Values live in a ``contextvars.ContextVar`` so they
follow asyncio tasks and are restored when the scope exits.

Usage:
    with metadata_scope("request", path="/checkout", method="POST"):
        handle_request()   # captures made here carry the "request" tab
"""

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping

_EMPTY: Mapping[str, Mapping[str, Any]] = MappingProxyType({})

_scoped_metadata: ContextVar[Mapping[str, Mapping[str, Any]]] = ContextVar(
    "snagwire_metadata", default=_EMPTY
)


def current_metadata() -> Mapping[str, Mapping[str, Any]]:
    """Metadata visible to captures made in the current context."""
    return _scoped_metadata.get()


def _merged(tab: str, values: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    current = _scoped_metadata.get()
    tabs: Dict[str, Mapping[str, Any]] = dict(current)
    tab_values = dict(current.get(tab, {}))
    tab_values.update(values)
    tabs[tab] = MappingProxyType(tab_values)
    return MappingProxyType(tabs)


@contextmanager
def metadata_scope(tab: str, **values: Any) -> Iterator[None]:
    """
    Attach metadata to every capture made inside the block.

    Args:
        tab: Metadata tab name
        **values: Key/value pairs added to the tab
    """
    token = _scoped_metadata.set(_merged(tab, values))
    try:
        yield
    finally:
        _scoped_metadata.reset(token)


def add_metadata(tab: str, key: str, value: Any) -> None:
    """
    Add a value to the current context's metadata.

    Lasts until the enclosing ``metadata_scope`` exits, or for the rest of the
    context (thread or task) when called outside any scope.
    """
    _scoped_metadata.set(_merged(tab, {key: value}))


def clear_metadata() -> None:
    """Drop all metadata from the current context."""
    _scoped_metadata.set(_EMPTY)

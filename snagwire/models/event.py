"""
Event Types

Data structures for captured exceptions, from the raw capture taken at the
instrumentation boundary through the mutable draft to the frozen event.
"""

import sys
import threading
import traceback
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Severity(Enum):
    """Event severity."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class MutationOutcome(Enum):
    """Result of running the callback chain over a draft."""
    PROCEED = "proceed"
    SUPPRESS = "suppress"


@dataclass(frozen=True)
class RawFrame:
    """A stack frame as seen at capture time, before classification."""

    module: str
    function: str
    file: str
    line: int

    @classmethod
    def from_frame(cls, frame: Any, lineno: Optional[int] = None) -> "RawFrame":
        code = frame.f_code
        return cls(
            module=frame.f_globals.get("__name__", "") or "",
            function=code.co_name,
            file=code.co_filename,
            line=lineno if lineno is not None else frame.f_lineno,
        )


def _type_name(exc_type: type) -> str:
    module = getattr(exc_type, "__module__", None)
    if module in (None, "builtins", "__builtin__"):
        return exc_type.__qualname__
    return f"{module}.{exc_type.__qualname__}"


def _frames_from_traceback(tb: Any) -> Tuple[RawFrame, ...]:
    frames = [RawFrame.from_frame(f, lineno) for f, lineno in traceback.walk_tb(tb)]
    # walk_tb yields outermost first; index 0 must be the raising frame
    frames.reverse()
    return tuple(frames)


def _frames_from_stack(frame: Any) -> Tuple[RawFrame, ...]:
    return tuple(RawFrame.from_frame(f, lineno) for f, lineno in traceback.walk_stack(frame))


@dataclass(frozen=True)
class RawException:
    """One link of an exception chain."""

    type_name: str
    message: str
    frames: Tuple[RawFrame, ...] = ()

    @classmethod
    def from_exception(cls, exc: BaseException) -> "RawException":
        return cls(
            type_name=_type_name(type(exc)),
            message=str(exc),
            frames=_frames_from_traceback(exc.__traceback__),
        )


def walk_exception_chain(exc: BaseException) -> List[BaseException]:
    """Return ``exc`` followed by its causes, most recent first."""
    chain: List[BaseException] = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
    return chain


@dataclass(frozen=True)
class ThreadInfo:
    """Snapshot of a live thread's stack."""

    id: int
    name: str
    current: bool
    frames: Tuple[Any, ...] = ()

    @classmethod
    def snapshot_all(cls) -> Tuple["ThreadInfo", ...]:
        """Capture the stack of every live thread."""
        current_id = threading.get_ident()
        names = {t.ident: t.name for t in threading.enumerate()}
        threads = []
        for ident, frame in sys._current_frames().items():
            threads.append(cls(
                id=ident,
                name=names.get(ident, str(ident)),
                current=ident == current_id,
                frames=_frames_from_stack(frame),
            ))
        threads.sort(key=lambda t: (not t.current, t.name))
        return tuple(threads)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "errorReportingThread": self.current,
            "stacktrace": [f.to_dict() for f in self.frames],
        }


@dataclass(frozen=True)
class RawCapture:
    """Unprocessed exception data at the moment of interception."""

    exceptions: Tuple[RawException, ...]
    severity: Severity = Severity.WARNING
    unhandled: bool = False
    origin: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    threads: Tuple[ThreadInfo, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        severity: Severity = Severity.WARNING,
        unhandled: bool = False,
        origin: Optional[Mapping[str, Any]] = None,
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
        send_threads: bool = False,
    ) -> "RawCapture":
        """
        Build a capture from a live exception.

        Args:
            exc: The exception to capture
            severity: Event severity
            unhandled: Whether the exception escaped application code
            origin: Where the capture came from (logger name, log message, ...)
            metadata: Tab -> key -> value mapping to attach
            send_threads: Whether to snapshot every live thread

        Returns:
            An immutable RawCapture
        """
        from ..context import current_metadata

        merged: Dict[str, Dict[str, Any]] = {
            tab: dict(values) for tab, values in current_metadata().items()
        }
        for tab, values in (metadata or {}).items():
            merged.setdefault(tab, {}).update(values)

        return cls(
            exceptions=tuple(RawException.from_exception(e) for e in walk_exception_chain(exc)),
            severity=severity,
            unhandled=unhandled,
            origin=dict(origin or {}),
            metadata=merged,
            threads=ThreadInfo.snapshot_all() if send_threads else (),
        )

    @property
    def primary(self) -> Optional[RawException]:
        """The most recent exception of the chain."""
        return self.exceptions[0] if self.exceptions else None


@dataclass(frozen=True)
class StackFrame:
    """A classified stack frame."""

    file: str
    method: str
    line: int
    module: str = ""
    in_project: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "method": f"{self.module}.{self.method}" if self.module else self.method,
            "lineNumber": self.line,
            "inProject": self.in_project,
        }


@dataclass(frozen=True)
class ExceptionRecord:
    """One exception of an event, with classified frames."""

    type_name: str
    message: str
    frames: Tuple[StackFrame, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorClass": self.type_name,
            "message": self.message,
            "stacktrace": [f.to_dict() for f in self.frames],
        }


@dataclass
class EventDraft:
    """
    Mutable working copy of an event.

    Owned by the client while the pipeline runs. Callbacks receive it and may
    change the user, context, grouping hash, api key, severity and metadata.
    """

    severity: Severity
    exceptions: List[ExceptionRecord]
    context: Optional[str] = None
    grouping_hash: Optional[str] = None
    api_key: Optional[str] = None
    user: Dict[str, Optional[str]] = field(default_factory=dict)
    metadata: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    session: Optional[Any] = None
    threads: List[ThreadInfo] = field(default_factory=list)
    app: Dict[str, Any] = field(default_factory=dict)
    device: Dict[str, Any] = field(default_factory=dict)
    unhandled: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def exception_class(self) -> Optional[str]:
        return self.exceptions[0].type_name if self.exceptions else None

    @property
    def exception_message(self) -> Optional[str]:
        return self.exceptions[0].message if self.exceptions else None

    def add_to_tab(self, tab: str, key: str, value: Any) -> None:
        """Add a value to a metadata tab, creating the tab if needed."""
        self.metadata.setdefault(tab, {})[key] = value

    def clear_tab(self, tab: str) -> None:
        """Remove a metadata tab."""
        self.metadata.pop(tab, None)

    def set_user(
        self,
        id: Optional[str] = None,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        self.user = {"id": id, "email": email, "name": name}

    def checkpoint(self) -> "EventDraft":
        """Copy of the draft that a failed callback can be rolled back to."""
        return replace(
            self,
            exceptions=list(self.exceptions),
            user=_copy_tree(self.user),
            metadata=_copy_tree(self.metadata),
            threads=list(self.threads),
            app=_copy_tree(self.app),
            device=_copy_tree(self.device),
        )

    def restore(self, checkpoint: "EventDraft") -> None:
        """Reset every field to the values held by ``checkpoint``."""
        self.__dict__.update(checkpoint.checkpoint().__dict__)

    def freeze(self) -> "Event":
        """Produce the immutable event delivered to the remote endpoint."""
        return Event(
            severity=self.severity,
            exceptions=tuple(self.exceptions),
            context=self.context,
            grouping_hash=self.grouping_hash,
            api_key=self.api_key,
            user=MappingProxyType(dict(self.user)),
            metadata=MappingProxyType({
                tab: MappingProxyType(dict(values)) for tab, values in self.metadata.items()
            }),
            session=self.session,
            threads=tuple(self.threads),
            app=MappingProxyType(dict(self.app)),
            device=MappingProxyType(dict(self.device)),
            unhandled=self.unhandled,
            timestamp=self.timestamp,
        )


def _copy_tree(value: Any) -> Any:
    # Containers are copied at every level; leaf values are shared
    if isinstance(value, dict):
        return {k: _copy_tree(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_tree(v) for v in value]
    if isinstance(value, set):
        return {_copy_tree(v) for v in value}
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class Event:
    """A finalized, immutable error occurrence."""

    severity: Severity
    exceptions: Tuple[ExceptionRecord, ...]
    context: Optional[str]
    grouping_hash: Optional[str]
    api_key: Optional[str]
    user: Mapping[str, Optional[str]]
    metadata: Mapping[str, Mapping[str, Any]]
    session: Optional[Any]
    threads: Tuple[ThreadInfo, ...]
    app: Mapping[str, Any]
    device: Mapping[str, Any]
    unhandled: bool
    timestamp: datetime

    @property
    def exception_class(self) -> Optional[str]:
        return self.exceptions[0].type_name if self.exceptions else None

    @property
    def exception_message(self) -> Optional[str]:
        return self.exceptions[0].message if self.exceptions else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "severity": self.severity.value,
            "unhandled": self.unhandled,
            "exceptions": [e.to_dict() for e in self.exceptions],
            "context": self.context,
            "groupingHash": self.grouping_hash,
            "user": _plain(self.user),
            "metaData": _plain(self.metadata),
            "session": self.session.to_dict() if self.session is not None else None,
            "threads": [t.to_dict() for t in self.threads],
            "app": _plain(self.app),
            "device": _plain(self.device),
            "timestamp": self.timestamp.isoformat(),
        }

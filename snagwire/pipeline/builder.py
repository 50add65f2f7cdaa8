"""Event Builder - Turns a raw capture into a mutable event draft."""

import platform
import socket
from typing import Any, Dict, Iterable, Optional, Tuple

from ..config import Configuration
from ..models import (
    EventDraft,
    ExceptionRecord,
    RawCapture,
    RawException,
    RawFrame,
    SessionSnapshot,
    StackFrame,
    ThreadInfo,
)

LOG_EVENT_TAB = "Log event data"


def is_in_project(module: str, project_packages: Iterable[str]) -> bool:
    """True if ``module`` begins with any project package prefix."""
    return any(prefix and module.startswith(prefix) for prefix in project_packages)


def classify_frame(frame: RawFrame, project_packages: Iterable[str]) -> StackFrame:
    """Build a StackFrame, marking it in-project if its module starts with a project package."""
    return StackFrame(
        file=frame.file,
        method=frame.function,
        line=frame.line,
        module=frame.module,
        in_project=is_in_project(frame.module, project_packages),
    )


def build_exception_record(raw: RawException, project_packages: Tuple[str, ...]) -> ExceptionRecord:
    return ExceptionRecord(
        type_name=raw.type_name,
        message=raw.message,
        frames=tuple(classify_frame(f, project_packages) for f in raw.frames),
    )


def app_metadata(config: Configuration) -> Dict[str, Any]:
    """App section stamped on every event and session payload."""
    return {
        "releaseStage": config.release_stage,
        "version": config.app_version,
        "type": config.app_type,
    }


def device_metadata() -> Dict[str, Any]:
    """Device section stamped on every event and session payload."""
    return {
        "hostname": socket.gethostname(),
        "osName": platform.system(),
        "osVersion": platform.release(),
        "runtimeVersions": {"python": platform.python_version()},
    }


def build_event(
    raw: RawCapture,
    config: Configuration,
    session: Optional[SessionSnapshot] = None,
    device: Optional[Dict[str, Any]] = None,
) -> EventDraft:
    """
    Build an event draft from a raw capture.

    Args:
        raw: The raw capture
        config: Configuration snapshot for this capture
        session: Active session, attached read-only
        device: Device metadata (computed per call when omitted)

    Returns:
        A new EventDraft owned by the caller
    """
    packages = config.project_packages

    metadata: Dict[str, Dict[str, Any]] = {
        tab: dict(values) for tab, values in raw.metadata.items()
    }

    origin = dict(raw.origin)
    if "message" in origin:
        tab = metadata.setdefault(LOG_EVENT_TAB, {})
        tab["Message"] = origin.pop("message")
        if "logger" in origin:
            tab["Logger name"] = origin.pop("logger")
    if origin:
        metadata.setdefault("origin", {}).update(origin)

    threads = [
        ThreadInfo(
            id=t.id,
            name=t.name,
            current=t.current,
            frames=tuple(classify_frame(f, packages) for f in t.frames),
        )
        for t in raw.threads
    ]

    return EventDraft(
        severity=raw.severity,
        exceptions=[build_exception_record(e, packages) for e in raw.exceptions],
        api_key=config.api_key,
        metadata=metadata,
        session=session,
        threads=threads,
        app=app_metadata(config),
        device=dict(device) if device is not None else device_metadata(),
        unhandled=raw.unhandled,
        timestamp=raw.timestamp,
    )

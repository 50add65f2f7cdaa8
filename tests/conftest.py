"""Shared pytest fixtures for snagwire tests."""

import json

import pytest

from snagwire import Client, Configuration, MockDelivery
from snagwire.models import RawCapture, RawException, RawFrame, Severity


@pytest.fixture
def config():
    """Configuration mirroring a typical application setup."""
    return Configuration(
        api_key="appenderApikey",
        release_stage="test",
        app_version="1.0.1",
        app_type="gradleTask",
        project_packages=("myapp.package1", "myapp.package2"),
        ignore_classes=("myapp.errors.Custom", "OSError"),
        notify_release_stages=("development", "test"),
        filters=("password", "credit_card_number"),
        session_flush_interval=0,
    )


@pytest.fixture
def delivery():
    """Mock transport for events."""
    return MockDelivery()


@pytest.fixture
def session_delivery():
    """Mock transport for sessions."""
    return MockDelivery()


@pytest.fixture
def client(config, delivery, session_delivery):
    """Client wired to mock transports. Stopped after the test."""
    client = Client(config, delivery=delivery, session_delivery=session_delivery)
    yield client
    client.stop(grace_period=1.0)


@pytest.fixture
def delivered_events(client, delivery):
    """Wait for the worker to go idle and return the decoded event payloads."""
    def _delivered():
        assert client.worker.wait_until_idle(timeout=5)
        return [json.loads(payload) for payload in delivery.payloads]
    return _delivered


@pytest.fixture
def make_raw():
    """Factory for RawCapture objects with hand-built frames."""
    def _make(
        type_name="RuntimeError",
        message="test",
        modules=("myapp.package1.orders", "requests.api"),
        severity=Severity.WARNING,
        **kwargs,
    ):
        frames = tuple(
            RawFrame(module=module, function=f"func{i}", file=f"/src/file{i}.py", line=10 + i)
            for i, module in enumerate(modules)
        )
        return RawCapture(
            exceptions=(RawException(type_name=type_name, message=message, frames=frames),),
            severity=severity,
            **kwargs,
        )
    return _make


@pytest.fixture
def raised():
    """Raise an exception so it carries a traceback, and return it."""
    def _raise(exc):
        try:
            raise exc
        except BaseException as e:
            return e
    return _raise

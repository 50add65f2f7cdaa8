"""Tests for capturing from many threads at once."""

import threading

from snagwire import Client, MockDelivery


def test_concurrent_captures_each_delivered_once(config):
    delivery = MockDelivery()
    client = Client(config, delivery=delivery, session_delivery=MockDelivery())
    threads_count, per_thread = 8, 25
    barrier = threading.Barrier(threads_count)

    def capture(n):
        barrier.wait()
        for i in range(per_thread):
            try:
                raise RuntimeError(f"{n}-{i}")
            except RuntimeError as e:
                client.notify(e)

    workers = [threading.Thread(target=capture, args=(n,)) for n in range(threads_count)]
    for t in workers:
        t.start()
    for t in workers:
        t.join()

    assert client.stop(grace_period=5.0) == 0
    assert delivery.count == threads_count * per_thread
    assert len(set(delivery.payloads)) == threads_count * per_thread


def test_concurrent_captures_counted_against_session(config):
    client = Client(config, delivery=MockDelivery())
    client.start_session()
    threads_count, per_thread = 4, 50

    def capture():
        for _ in range(per_thread):
            client.notify(RuntimeError("test"))

    workers = [threading.Thread(target=capture) for _ in range(threads_count)]
    for t in workers:
        t.start()
    for t in workers:
        t.join()

    try:
        assert client.sessions.current_session().handled == threads_count * per_thread
    finally:
        client.stop()

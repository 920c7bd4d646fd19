"""Tests for notification counters."""

import threading

from sqlmodel import SQLModel, create_engine

import app.models  # noqa: F401
from app.services.notifications import NotificationChannel, NotificationScope, NotificationService, scope_for_role


def test_scope_for_role():
    assert scope_for_role("ADMIN") == NotificationScope.ADMIN
    assert scope_for_role("super_admin") == NotificationScope.ADMIN
    assert scope_for_role("gestionnaire") == NotificationScope.GESTIONNAIRE
    assert scope_for_role(None) == NotificationScope.GLOBAL


def test_increment_and_total(notifier):
    notifier.increment(NotificationChannel.CLIENTS, scope=NotificationScope.ADMIN)
    notifier.increment(NotificationChannel.ORDERS, 2, scope=NotificationScope.ADMIN)
    notifier.increment(NotificationChannel.TOTAL, 7, scope=NotificationScope.ADMIN)

    counts = notifier.get_all(NotificationScope.ADMIN)
    assert counts["admin.clients"] == 1
    assert counts["admin.commandes"] == 2
    assert notifier.total(NotificationScope.ADMIN) == 3


def test_scopes_are_separate(notifier):
    notifier.increment(NotificationChannel.STOCKS, scope=NotificationScope.ADMIN)
    assert notifier.get_all(NotificationScope.GESTIONNAIRE) == {}


def test_count_never_negative(notifier):
    assert notifier.increment(NotificationChannel.STOCKS, -5) == 0


def test_clear(notifier):
    notifier.increment(NotificationChannel.CLIENTS, 4)
    notifier.increment(NotificationChannel.ORDERS, 1)
    notifier.clear(NotificationChannel.CLIENTS)
    assert notifier.get_all() == {"admin.clients": 0, "admin.commandes": 1}

    notifier.clear_all()
    assert notifier.total() == 0


def test_subscribers_receive_events(notifier):
    events = []
    unsubscribe = notifier.subscribe(events.append)

    notifier.increment(NotificationChannel.ORDERS, scope=NotificationScope.ADMIN)
    assert len(events) == 1
    assert events[0].channel == NotificationChannel.ORDERS
    assert events[0].scope == NotificationScope.ADMIN
    assert events[0].counts == {"admin.commandes": 1}

    notifier.clear_all(NotificationScope.ADMIN)
    assert events[-1].channel is None
    assert events[-1].counts == {"admin.commandes": 0}

    unsubscribe()
    notifier.increment(NotificationChannel.ORDERS, scope=NotificationScope.ADMIN)
    assert len(events) == 2


def test_failing_subscriber_does_not_break_others(notifier):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(received.append)
    notifier.increment(NotificationChannel.CLIENTS)
    assert len(received) == 1


def test_notify_defaults_to_admin(notifier):
    notifier.notify(NotificationChannel.CLIENTS)
    assert notifier.get_all(NotificationScope.ADMIN) == {"admin.clients": 1}


def test_concurrent_increments_are_not_lost(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'notifications.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)
    service = NotificationService(engine)

    def worker():
        for _ in range(25):
            service.notify(NotificationChannel.ORDERS)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert service.get_all(NotificationScope.ADMIN) == {"admin.commandes": 200}
    engine.dispose()


def test_clear_unknown_channel_keeps_counts(notifier):
    notifier.increment(NotificationChannel.ORDERS, 2)
    notifier.clear(NotificationChannel.STOCKS)
    assert notifier.get_all() == {"admin.commandes": 2}

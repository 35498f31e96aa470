from __future__ import annotations

from academy_app.services import Notifier


def test_publish_reaches_every_listener():
    notifier = Notifier()
    first, second = [], []
    notifier.subscribe(first.append)
    notifier.subscribe(second.append)

    notification = notifier.publish("Saved", "success")

    assert first == [notification] and second == [notification]
    assert notification.tone == "success"


def test_unsubscribe_stops_delivery():
    notifier = Notifier()
    received = []
    unsubscribe = notifier.subscribe(received.append)

    unsubscribe()
    notifier.publish("Hello")

    assert received == []
    assert notifier.listener_count == 0


def test_unknown_tone_falls_back_to_info_and_ids_increase():
    notifier = Notifier()

    first = notifier.publish("one", "warning")
    second = notifier.publish("two")

    assert first.tone == "info"
    assert second.id > first.id


def test_failing_listener_does_not_block_others(caplog):
    notifier = Notifier()
    received = []

    def broken(_notification):
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(received.append)

    notifier.publish("Still delivered", "error")

    assert [item.message for item in received] == ["Still delivered"]
    assert "failed" in caplog.text

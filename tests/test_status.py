# Tests for cfgsync.status
# Observable connection status and notification delivery

import threading

from cfgsync.status import ConnectionStatus, QueuedDispatcher, StatusModel


class TestStatusModel:
    """Tests for StatusModel."""

    def test_initially_unknown(self):
        model = StatusModel()
        assert model.status is None
        assert model.status_text == "Unknown"
        assert not model.is_opened

    def test_status_text(self):
        model = StatusModel()
        model.set_status(ConnectionStatus.OPEN_FAILED)
        assert model.status_text == "Open repository failed"
        model.set_status(ConnectionStatus.UPDATE_FAILED)
        assert model.status_text == "Update repository failed"
        model.set_status(ConnectionStatus.OPENED)
        assert model.status_text == "Opened"
        assert model.is_opened

    def test_one_notification_per_change(self):
        model = StatusModel()
        received = []
        model.subscribe(received.append)

        assert model.set_status(ConnectionStatus.OPENED) is True
        assert model.set_status(ConnectionStatus.OPENED) is False
        assert model.set_status(ConnectionStatus.UPDATE_FAILED) is True

        assert received == [ConnectionStatus.OPENED, ConnectionStatus.UPDATE_FAILED]

    def test_unsubscribe(self):
        model = StatusModel()
        received = []
        unsubscribe = model.subscribe(received.append)
        model.set_status(ConnectionStatus.OPENED)
        unsubscribe()
        model.set_status(ConnectionStatus.OPEN_FAILED)
        assert received == [ConnectionStatus.OPENED]

    def test_unsubscribe_unknown_listener(self):
        StatusModel().unsubscribe(lambda status: None)

    def test_failing_listener_does_not_block_others(self, caplog):
        model = StatusModel()
        received = []

        def broken(status):
            raise RuntimeError("listener bug")

        model.subscribe(broken)
        model.subscribe(received.append)
        model.set_status(ConnectionStatus.OPENED)

        assert received == [ConnectionStatus.OPENED]
        assert model.status == ConnectionStatus.OPENED
        assert "listener" in caplog.text.lower()

    def test_concurrent_changes_notify_in_order(self):
        model = StatusModel()
        received = []
        model.subscribe(received.append)
        values = [ConnectionStatus.OPENED, ConnectionStatus.UPDATE_FAILED] * 50
        barrier = threading.Barrier(2)

        def flip(items):
            barrier.wait()
            for value in items:
                model.set_status(value)

        threads = [threading.Thread(target=flip, args=(values,)) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # every delivered notification is a real change
        for previous, current in zip(received, received[1:]):
            assert previous != current
        assert received[-1] == model.status


class TestQueuedDispatcher:
    """Tests for QueuedDispatcher."""

    def test_delivery_deferred_until_drain(self):
        dispatcher = QueuedDispatcher()
        model = StatusModel(dispatcher)
        received = []
        model.subscribe(received.append)

        model.set_status(ConnectionStatus.OPEN_FAILED)
        model.set_status(ConnectionStatus.OPENED)
        assert received == []
        assert dispatcher.pending == 2

        assert dispatcher.drain() == 2
        assert received == [ConnectionStatus.OPEN_FAILED, ConnectionStatus.OPENED]
        assert dispatcher.pending == 0

    def test_drain_empty(self):
        assert QueuedDispatcher().drain() == 0

    def test_delivery_on_draining_thread(self):
        dispatcher = QueuedDispatcher()
        model = StatusModel(dispatcher)
        threads = []
        model.subscribe(lambda status: threads.append(threading.current_thread()))

        worker = threading.Thread(target=model.set_status, args=(ConnectionStatus.OPENED,))
        worker.start()
        worker.join()
        dispatcher.drain()

        assert threads == [threading.current_thread()]

import threading

from roadnav.router.scheduler import ManualScheduler, ThreadedScheduler


def test_manual_scheduler_runs_due_callbacks_in_order() -> None:
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(2.0, lambda: fired.append("b"))
    scheduler.call_later(1.0, lambda: fired.append("a"))
    scheduler.call_later(5.0, lambda: fired.append("c"))

    assert scheduler.advance(3.0) == 2
    assert fired == ["a", "b"]
    assert scheduler.now() == 3.0
    assert scheduler.pending == 1


def test_manual_scheduler_cancel() -> None:
    scheduler = ManualScheduler(start=10.0)
    fired = []
    handle = scheduler.call_later(1.0, lambda: fired.append(True))
    assert handle.due == 11.0

    handle.cancel()
    handle.cancel()
    assert handle.cancelled
    assert scheduler.pending == 0
    assert scheduler.advance(5.0) == 0
    assert fired == []


def test_callback_scheduled_from_callback() -> None:
    scheduler = ManualScheduler()
    fired = []

    def first() -> None:
        fired.append(scheduler.now())
        scheduler.call_later(1.0, lambda: fired.append(scheduler.now()))

    scheduler.call_later(1.0, first)
    scheduler.advance(3.0)
    assert fired == [1.0, 2.0]


def test_threaded_scheduler_fires_and_cancels() -> None:
    scheduler = ThreadedScheduler()
    fired = threading.Event()
    skipped = threading.Event()

    scheduler.call_later(0.01, fired.set)
    handle = scheduler.call_later(0.05, skipped.set)
    handle.cancel()

    assert fired.wait(2.0)
    assert not skipped.wait(0.2)


def test_fired_handle_is_not_reported_cancelled() -> None:
    scheduler = ManualScheduler()
    fired = []
    handle = scheduler.call_later(1.0, lambda: fired.append(True))

    scheduler.advance(1.0)
    handle._run()
    assert fired == [True]
    assert not handle.cancelled

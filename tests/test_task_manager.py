import threading

from salah_reminder.core.task_manager import TaskManager


def test_task_runs_after_delay():
    manager = TaskManager()
    done = threading.Event()

    manager.schedule_task("reminder", done.set, 0.01)

    assert done.wait(2)
    manager.stop()


def test_rescheduling_replaces_pending_timer():
    manager = TaskManager()
    calls = []
    done = threading.Event()

    manager.schedule_task("reminder", lambda: calls.append("first"), 60)
    manager.schedule_task("reminder", lambda: (calls.append("second"), done.set()), 0.01)

    assert done.wait(2)
    assert calls == ["second"]
    manager.stop()


def test_cancel_task():
    manager = TaskManager()
    calls = []

    manager.schedule_task("reminder", lambda: calls.append("ran"), 60)
    assert [t["name"] for t in manager.get_active_timers()] == ["reminder"]

    manager.cancel_task("reminder")
    manager.cancel_task("reminder")

    assert manager.get_active_timers() == []
    assert calls == []


def test_failing_task_is_logged_not_raised():
    manager = TaskManager()
    done = threading.Event()

    def explode():
        done.set()
        raise ValueError("boom")

    manager.schedule_task("reminder", explode, 0)

    assert done.wait(2)
    manager.stop()

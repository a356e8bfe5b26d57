"""
In-memory timers. One timer per name: scheduling a name again cancels the pending one.
"""
import logging
import threading
from datetime import datetime
from threading import Timer
from typing import Any, Callable, Dict, List


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.logger = logging.getLogger("TaskManager")
        self._lock = threading.Lock()

    def schedule_task(self, name: str, callback: Callable[[], None], delay: float) -> None:
        """Run callback once after delay seconds, replacing any pending timer with the same name."""
        delay = max(0.0, float(delay))
        with self._lock:
            if name in self.tasks:
                self.logger.debug(f"Cancelling existing task {name}")
                self.tasks[name].cancel()

            scheduled_time = datetime.now().timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback))
            timer.daemon = True
            timer.scheduled_time = scheduled_time
            self.tasks[name] = timer
            timer.start()
        self.logger.info(f"Timer started for {name}, scheduled for {datetime.fromtimestamp(scheduled_time)}")

    def cancel_task(self, name: str) -> None:
        with self._lock:
            timer = self.tasks.pop(name, None)
        if timer is not None:
            timer.cancel()
            self.logger.debug(f"Cancelled task {name}")

    def _run_task(self, name: str, callback: Callable[[], None]) -> None:
        with self._lock:
            if self.tasks.get(name) is threading.current_thread():
                del self.tasks[name]
        try:
            callback()
        except Exception as e:
            self.logger.exception(f"Error running task {name}: {e}")

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        with self._lock:
            timers = list(self.tasks.items())
        return [
            {"name": name, "next_run_at": datetime.fromtimestamp(timer.scheduled_time)}
            for name, timer in timers
            if timer.is_alive()
        ]

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        with self._lock:
            timers = list(self.tasks.values())
            self.tasks.clear()
        for timer in timers:
            timer.cancel()

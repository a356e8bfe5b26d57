from typing import Dict, Any, Optional
import logging
import os
import sys
import threading

from .config import Config
from .db import init_db
from .task_manager import TaskManager
from salah_reminder.salah.errors import UnsupportedLocation
from salah_reminder.salah.locator import get_city_name, get_current_location_id
from salah_reminder.salah.notifier import Notifier
from salah_reminder.salah.scheduler import DEFAULT_RETRY_INTERVAL, ReminderScheduler
from salah_reminder.salah.service import ReminderStateStore
from salah_reminder.salah.source_factory import create_source, is_supported

AUTO_LOCATION = "auto"


class SalahReminderApp:
    def __init__(self, config_path: Optional[str] = None, watch_config: bool = True):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch_config)
        self.config.register_change_callback(self.handle_config_change)

        self._setup_logging()

        # Initialize database (before the scheduler so its state store has tables)
        init_db(self.config.data)

        self.task_manager = TaskManager()
        self.notifier = Notifier(self.config.data.get("notifications"))

        scheduler_config = self.config.data.get("scheduler") or {}
        self.scheduler = ReminderScheduler(
            self.task_manager,
            notify=self.notifier.notify,
            retry_interval=scheduler_config.get("retry_interval", DEFAULT_RETRY_INTERVAL),
            state_store=ReminderStateStore(),
        )
        self.check_interval = scheduler_config.get("check_interval", 30)
        self._stop_event = threading.Event()

        location_id = self.resolve_location()
        self.scheduler.set_location(location_id, create_source(location_id, self.config.get_source_config(location_id)))
        self.logger.info(f"Reminding for {get_city_name(location_id)} ({location_id})")

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        logging_config = self.config.data["logging"]
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        log_file = logging_config.get("file")
        if log_file:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Salah Reminder starting...")

    def resolve_location(self) -> str:
        """
        Pick the location to remind for. Unsupported or undetectable locations fall
        back to default_location, and the user is told so.
        Raises:
            UnsupportedLocation: default_location itself is not supported
        """
        configured = self.config.data.get("location") or AUTO_LOCATION
        default_location = self.config.data.get("default_location")
        if not is_supported(default_location):
            raise UnsupportedLocation(default_location)

        if configured == AUTO_LOCATION:
            location_id = get_current_location_id()
        else:
            location_id = configured

        if is_supported(location_id):
            return location_id

        title = "Your current location is not supported" if location_id else "Could not find location"
        self.logger.warning(f"{title} ({location_id}), defaulting to {default_location}")
        try:
            self.notifier.notify(title, f"Defaulting to {default_location}.")
        except Exception as e:
            self.logger.error(f"Could not show notification: {e}")
        return default_location

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Re-target the scheduler when the configured location changes"""
        self.notifier = Notifier(new_config.get("notifications"))
        self.scheduler.notify = self.notifier.notify

        location_id = new_config.get("location")
        if not location_id or location_id == AUTO_LOCATION or location_id == self.scheduler.location_id:
            return
        try:
            source = create_source(location_id, self.config.get_source_config(location_id))
        except UnsupportedLocation as e:
            self.logger.error(f"{e}; keeping {self.scheduler.location_id}")
            return
        self.scheduler.set_location(location_id, source)

    def run(self):
        from salah_reminder.api.server import run_api_server

        try:
            run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

        try:
            self.scheduler.start()
            while not self._stop_event.wait(self.check_interval):
                self.scheduler.check()
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
        finally:
            self.shutdown()

    def stop(self) -> None:
        self._stop_event.set()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.task_manager.stop()
        self.config.cleanup()
        logging.info("Salah Reminder stopped")

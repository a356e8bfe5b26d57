"""Desktop notifications for adhaan, iqamah and sunrise events."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from plyer import notification

from .models import SUNRISE, EventKind, SalahName, ScheduledEvent, SalahTimesPayload
from .normalizer import is_friday
from .windows import format_clock_time, window_end

APP_NAME = "Salah Reminder"

DISPLAY_NAMES = {
    SalahName.FAJR: "Fajr",
    SUNRISE: "Sunrise",
    SalahName.DHUHR: "Dhuhr",
    SalahName.ASR: "Asr",
    SalahName.MAGHRIB: "Maghrib",
    SalahName.ISHAA: "Ishaa",
}


def display_name(salah_name: str, on_date: Optional[datetime] = None) -> str:
    """Human name; Dhuhr on a Friday is shown as Jummah."""
    if salah_name == SalahName.DHUHR and on_date is not None and is_friday(on_date):
        return "Jummah"
    return DISPLAY_NAMES.get(salah_name, salah_name.title())


def _event_window_end(payload: SalahTimesPayload, event: ScheduledEvent) -> Optional[datetime]:
    """Window end for the day the event belongs to (today or yesterday of the payload)."""
    day = event.firing_time.date()
    if day == payload.today.date:
        view = payload
    elif day == payload.yesterday.date:
        view = SalahTimesPayload(None, payload.yesterday, payload.today)
    else:
        return None
    return window_end(view, event.salah_name)


def event_message(event: ScheduledEvent, payload: SalahTimesPayload) -> Tuple[str, str]:
    """(title, body) for a scheduled event."""
    name = display_name(event.salah_name, event.firing_time)
    at = format_clock_time(event.firing_time)

    if event.salah_name == SUNRISE:
        return name, f"Sunrise at {at}. The Fajr window has ended."

    end = _event_window_end(payload, event)
    until = f" The window ends at {format_clock_time(end)}." if end else ""
    if event.kind == EventKind.IQAMAH:
        return f"{name} Iqamah", f"{name} iqamah at {at}.{until}"
    return f"{name} Adhaan", f"It is time for {name} ({at}).{until}"


class Notifier:
    """Notification sink backed by plyer."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)
        self.enabled = config.get('enabled', True)
        self.app_name = config.get('app_name', APP_NAME)
        self.app_icon = config.get('app_icon', '')
        self.timeout = int(config.get('timeout', 10))

    def notify(self, title: str, body: str) -> None:
        if not self.enabled:
            self.logger.info(f"Notifications disabled, not showing: {title} - {body}")
            return
        kwargs = dict(
            app_name=self.app_name,
            title=title,
            message=body,
            timeout=self.timeout,
        )
        if self.app_icon:
            kwargs["app_icon"] = self.app_icon
        self.logger.info(f"Notifying: {title} - {body}")
        notification.notify(**kwargs)

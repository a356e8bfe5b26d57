"""
Reminder scheduler: keeps the current 3-day payload, arms a single timer for the
next adhaan/iqamah/sunrise event, fires the notification when it is due and
re-arms. The payload is rebuilt at day rollover and retried with a fixed backoff
while the source is unavailable; meanwhile the held payload keeps reminding
through its tomorrow.

Every transition goes through plan_next(), which decides from (payload, cursor, now)
which events are due, which were missed and what to arm next. The cursor is the
sort key of the last fired event, so events sharing an instant still fire one by
one (adhaan before iqamah) and nothing fires twice.
"""
import logging
import threading
from collections import namedtuple
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, List, Optional, Tuple

from .models import DAY_ORDER, SUNRISE, EventKind, ScheduledEvent, SalahTimesPayload
from .notifier import event_message
from .payload import build_payload
from .source_base import SalahSource

TASK_NAME = "salah_reminder"
DEFAULT_RETRY_INTERVAL = 300

KIND_ORDER = {EventKind.ADHAAN: 0, EventKind.IQAMAH: 1}
NAME_ORDER = {name: index for index, name in enumerate(DAY_ORDER)}


class SchedulerState:
    UNINITIALIZED = "uninitialized"
    AWAITING_PAYLOAD = "awaiting_payload"
    ARMED = "armed"
    FIRED = "fired"


class TimerKind:
    """What the single armed timer is for."""
    EVENT = "event"
    ROLLOVER = "rollover"
    RETRY = "retry"




Plan = namedtuple(
    "Plan",
    [
        "due",          # events to fire now, all at the most recent past instant
        "skipped",      # older missed events, logged only
        "next_event",   # first event after now up to the end of payload.tomorrow, or None
        "exhausted_at", # midnight after payload.tomorrow when next_event is None
    ],
)


def event_sort_key(event: ScheduledEvent) -> Tuple[datetime, int, int]:
    return event.firing_time, KIND_ORDER[event.kind], NAME_ORDER[event.salah_name]


def now_cursor(now: datetime) -> Tuple[datetime, int, int]:
    """Cursor placing every event at exactly now or earlier behind it."""
    return now, len(KIND_ORDER), len(NAME_ORDER)


def next_midnight(day: date) -> datetime:
    return datetime.combine(day + timedelta(days=1), time.min)


def compute_events(payload: SalahTimesPayload) -> List[ScheduledEvent]:
    """All adhaan, iqamah and sunrise events of the payload in firing order."""
    events = []
    for day in payload:
        events.append(ScheduledEvent(SUNRISE, day.sunrise, EventKind.ADHAAN))
        for salah in day.salahs():
            events.append(ScheduledEvent(salah.name, salah.adhaan_time, EventKind.ADHAAN))
            events.append(ScheduledEvent(salah.name, salah.iqamah_time, EventKind.IQAMAH))
    return sorted(events, key=event_sort_key)


def plan_next(payload: SalahTimesPayload, cursor: Tuple[datetime, int, int], now: datetime) -> Plan:
    horizon = payload.tomorrow.date
    pending = [
        event for event in compute_events(payload)
        if event_sort_key(event) > cursor and event.firing_time.date() <= horizon
    ]

    due = [event for event in pending if event.firing_time <= now]
    skipped = []
    if due:
        latest = due[-1].firing_time
        skipped = [event for event in due if event.firing_time < latest]
        due = [event for event in due if event.firing_time == latest]

    upcoming = [event for event in pending if event.firing_time > now]
    if upcoming:
        return Plan(due, skipped, upcoming[0], None)
    return Plan(due, skipped, None, next_midnight(horizon))


class ReminderScheduler:
    """
    Single-location reminder state machine.

    The held payload keeps reminding through tomorrow while a refresh is pending
    or failing. A refresh is due at the midnight after payload.today, then every
    retry_interval seconds until one succeeds. The single timer is armed for
    whichever comes first, the next event or the next refresh.

    Args:
        task_manager: owner of the one timer (schedule_task / cancel_task)
        notify: notification sink, called as notify(title, body)
        clock: returns the current local time
        state_store: optional persistence for the last fired event per location
        payload_builder: build_payload replacement, mainly for tests
    """

    def __init__(
        self,
        task_manager: Any,
        notify: Callable[[str, str], None],
        location_id: Optional[str] = None,
        source: Optional[SalahSource] = None,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        clock: Callable[[], datetime] = datetime.now,
        state_store: Any = None,
        payload_builder: Callable[..., Optional[SalahTimesPayload]] = build_payload,
    ):
        self.task_manager = task_manager
        self.notify = notify
        self.retry_interval = retry_interval
        self.clock = clock
        self.state_store = state_store
        self.payload_builder = payload_builder
        self.logger = logging.getLogger(self.__class__.__name__)

        self._lock = threading.RLock()
        self._location_id = location_id
        self._source = source
        self._state = SchedulerState.UNINITIALIZED
        self._started = False
        self._generation = 0
        self._refreshing_generation = None
        self._payload: Optional[SalahTimesPayload] = None
        self._cursor = None
        self._refresh_at: Optional[datetime] = None
        self._token = 0
        self._armed_at: Optional[datetime] = None
        self._armed_kind: Optional[str] = None
        self._next_event: Optional[ScheduledEvent] = None
        self.failed_refreshes = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def location_id(self) -> Optional[str]:
        return self._location_id

    def get_current_payload(self) -> Optional[SalahTimesPayload]:
        """The last successfully built payload, or None."""
        return self._payload

    def next_event(self) -> Optional[ScheduledEvent]:
        """The next event to be announced, or None while no schedule covers it."""
        return self._next_event

    def armed_at(self) -> Optional[datetime]:
        return self._armed_at

    def start(self) -> None:
        with self._lock:
            if self._source is None:
                raise RuntimeError("No source configured; call set_location() first")
            if self._state != SchedulerState.UNINITIALIZED:
                self.logger.warning(f"Scheduler already started ({self._state})")
                return
            self._started = True
            self._state = SchedulerState.AWAITING_PAYLOAD
            generation = self._generation
        self._refresh(generation)

    def stop(self) -> None:
        with self._lock:
            self._generation += 1
            self._disarm()
            self._started = False
            self._state = SchedulerState.UNINITIALIZED
        self.logger.info("Scheduler stopped")

    def set_location(self, location_id: str, source: SalahSource) -> None:
        """Switch to another location. The pending timer is cancelled and in-flight fetches are discarded."""
        with self._lock:
            self.logger.info(f"Switching location from {self._location_id} to {location_id}")
            self._generation += 1
            self._disarm()
            self._location_id = location_id
            self._source = source
            self._payload = None
            self._cursor = None
            self._refresh_at = None
            self.failed_refreshes = 0
            self._state = SchedulerState.UNINITIALIZED
            restart = self._started
        if restart:
            self.start()

    def check(self) -> None:
        """External clock check, e.g. after resume from sleep: run an overdue timer now."""
        with self._lock:
            if self._armed_at is None or self.clock() < self._armed_at:
                return
            self.logger.info(f"Timer for {self._armed_at} is overdue, running it now")
            self.task_manager.cancel_task(TASK_NAME)
            generation, token = self._generation, self._token
        self._on_timer(generation, token)

    def _refresh(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._refreshing_generation == generation:
                return
            self._refreshing_generation = generation
            self._state = SchedulerState.AWAITING_PAYLOAD
            source = self._source
            location_id = self._location_id

        self.logger.info(f"Refreshing prayer times for {location_id}")
        try:
            payload = self.payload_builder(source, now=self.clock())
        finally:
            with self._lock:
                if self._refreshing_generation == generation:
                    self._refreshing_generation = None

        with self._lock:
            if generation != self._generation:
                self.logger.info(f"Discarding payload fetched for superseded location {location_id}")
                return
            now = self.clock()
            if payload is None:
                self.failed_refreshes += 1
                self._refresh_at = now + timedelta(seconds=self.retry_interval)
                self.logger.warning(
                    f"Prayer times unavailable for {location_id} "
                    f"(attempt {self.failed_refreshes}), retrying at {self._refresh_at}"
                )
            else:
                self.failed_refreshes = 0
                self._payload = payload
                self._refresh_at = next_midnight(payload.today.date)
                if self._refresh_at <= now:
                    self._refresh_at = now + timedelta(seconds=self.retry_interval)
                    self.logger.warning(
                        f"{location_id} returned prayer times for {payload.today.date}, retrying at {self._refresh_at}"
                    )
                if self._cursor is None:
                    self._cursor = self._initial_cursor(now)
            due, _ = self._advance(now)
            fired_payload = self._payload
        self._fire_all(due, fired_payload, generation, location_id)

    def _on_timer(self, generation: int, token: int) -> None:
        with self._lock:
            if generation != self._generation or token != self._token:
                return
            armed_at = self._armed_at
            self._disarm()
            due, needs_refresh = self._advance(max(self.clock(), armed_at))
            payload, location_id = self._payload, self._location_id
        self._fire_all(due, payload, generation, location_id)
        if needs_refresh:
            self._refresh(generation)

    def _advance(self, now: datetime) -> Tuple[List[ScheduledEvent], bool]:
        """
        Take the events due at now from the held payload and arm the next timer.
        Returns (events to announce, whether a refresh is due now). No timer is
        armed when a refresh is due; the refresh arms it.
        """
        due = []
        next_event = None
        payload = self._payload
        if payload is not None and now.date() <= payload.tomorrow.date:
            plan = plan_next(payload, self._cursor, now)
            for event in plan.skipped:
                self.logger.warning(f"Skipping missed {event.salah_name} {event.kind} at {event.firing_time}")
            if plan.due:
                self._state = SchedulerState.FIRED
                due = plan.due
                self._cursor = event_sort_key(plan.due[-1])
            next_event = plan.next_event
        elif payload is not None:
            self.logger.warning(f"Held prayer times end on {payload.tomorrow.date}, waiting for fresh ones")

        if self._refresh_at is None or now >= self._refresh_at:
            return due, True

        if next_event is not None and next_event.firing_time <= self._refresh_at:
            self._arm(next_event.firing_time, TimerKind.EVENT)
        else:
            self._arm(self._refresh_at, TimerKind.RETRY if self.failed_refreshes else TimerKind.ROLLOVER)
        self._next_event = next_event
        self._state = SchedulerState.ARMED if next_event is not None else SchedulerState.AWAITING_PAYLOAD
        return due, False

    def _fire_all(
        self,
        events: List[ScheduledEvent],
        payload: SalahTimesPayload,
        generation: int,
        location_id: str,
    ) -> None:
        """Announce events outside the lock; stops once the location has changed."""
        for event in events:
            if generation != self._generation:
                self.logger.info(f"Location changed, not announcing {event.salah_name} {event.kind}")
                return
            self._fire(event, payload, location_id)

    def _fire(self, event: ScheduledEvent, payload: SalahTimesPayload, location_id: str) -> None:
        self.logger.info(f"Firing {event.salah_name} {event.kind} for {event.firing_time}")
        try:
            title, body = event_message(event, payload)
            self.notify(title, body)
        except Exception as e:
            self.logger.exception(f"Notification for {event.salah_name} {event.kind} failed: {e}")
        if self.state_store is not None:
            try:
                self.state_store.save_last_fired(location_id, event)
            except Exception as e:
                self.logger.error(f"Could not persist last fired event: {e}")

    def _initial_cursor(self, now: datetime) -> Tuple[datetime, int, int]:
        """Resume after the persisted last fired event when it falls inside the payload window."""
        start = now_cursor(now)
        if self.state_store is None:
            return start
        try:
            last = self.state_store.load_last_fired(self._location_id)
        except Exception as e:
            self.logger.error(f"Could not load last fired event: {e}")
            return start
        if last is None:
            return start
        earliest = datetime.combine(self._payload.yesterday.date, time.min)
        if earliest <= last.firing_time <= now:
            self.logger.info(f"Resuming after {last.salah_name} {last.kind} at {last.firing_time}")
            return event_sort_key(last)
        return start

    def _arm(self, at: datetime, kind: str) -> None:
        self._token += 1
        generation, token = self._generation, self._token
        self._armed_at = at
        self._armed_kind = kind
        delay = max(0.0, (at - self.clock()).total_seconds())
        self.logger.info(f"Armed {kind} timer for {at} ({delay:.0f}s)")
        self.task_manager.schedule_task(TASK_NAME, lambda: self._on_timer(generation, token), delay)

    def _disarm(self) -> None:
        self._token += 1
        self._armed_at = None
        self._armed_kind = None
        self._next_event = None
        self.task_manager.cancel_task(TASK_NAME)

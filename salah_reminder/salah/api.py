"""
Query API for the presentation layer. Mounted at /api/salah/.
Read-only: nothing here changes the scheduler's state.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .models import SalahTimes, ScheduledEvent
from .windows import format_clock_time, today_windows


class SalahResponse(BaseModel):
    name: str
    adhaan_time: datetime
    iqamah_time: datetime


class SalahTimesResponse(BaseModel):
    day: date
    fajr: SalahResponse
    sunrise: datetime
    dhuhr: SalahResponse
    asr: SalahResponse
    maghrib: SalahResponse
    ishaa: SalahResponse


class PayloadResponse(BaseModel):
    location_id: Optional[str] = None
    yesterday: SalahTimesResponse
    today: SalahTimesResponse
    tomorrow: SalahTimesResponse


class WindowResponse(BaseModel):
    name: str
    start: datetime
    end: datetime
    start_text: str
    end_text: str


class EventResponse(BaseModel):
    salah_name: str
    kind: str
    firing_time: datetime
    firing_time_text: str


def salah_times_response(salah_times: SalahTimes) -> SalahTimesResponse:
    return SalahTimesResponse(
        day=salah_times.date,
        sunrise=salah_times.sunrise,
        **{salah.name: SalahResponse(**salah._asdict()) for salah in salah_times.salahs()},
    )


def event_response(event: Optional[ScheduledEvent]) -> Optional[EventResponse]:
    if event is None:
        return None
    return EventResponse(
        salah_name=event.salah_name,
        kind=event.kind,
        firing_time=event.firing_time,
        firing_time_text=format_clock_time(event.firing_time),
    )


def get_router(reminder_app) -> APIRouter:
    """Return router for the schedule queries; mounted with prefix /api/salah."""
    router = APIRouter(tags=["Salah Times"])

    def current_payload():
        payload = reminder_app.scheduler.get_current_payload()
        if payload is None:
            raise HTTPException(status_code=404, detail="No prayer times available")
        return payload

    @router.get("/payload", response_model=PayloadResponse)
    def get_payload() -> PayloadResponse:
        """Return yesterday/today/tomorrow schedules of the active location."""
        payload = current_payload()
        return PayloadResponse(
            location_id=reminder_app.scheduler.location_id,
            yesterday=salah_times_response(payload.yesterday),
            today=salah_times_response(payload.today),
            tomorrow=salah_times_response(payload.tomorrow),
        )

    @router.get("/windows", response_model=List[WindowResponse])
    def get_windows() -> List[WindowResponse]:
        """Return today's prayer windows; Ishaa ends at tomorrow's Fajr."""
        return [
            WindowResponse(
                name=name,
                start=start,
                end=end,
                start_text=format_clock_time(start),
                end_text=format_clock_time(end),
            )
            for name, start, end in today_windows(current_payload())
        ]

    @router.get("/next", response_model=EventResponse)
    def get_next_event() -> EventResponse:
        """Return the next event the scheduler will announce."""
        event = reminder_app.scheduler.next_event()
        if event is None:
            raise HTTPException(status_code=404, detail="No reminder armed")
        return event_response(event)

    return router

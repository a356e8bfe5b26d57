"""
FastAPI server for the reminder API. Run with run_api_server(app) in a background thread.
Central endpoints: GET /api/status, GET /api/tasks. Schedule queries are mounted
from salah_reminder.salah.api under /api/salah/.
Docs when enabled: http://<host>:<port>/docs
"""
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI

from salah_reminder.salah.api import event_response, get_router

logger = logging.getLogger(__name__)


def _serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Serialize local datetime to ISO string."""
    if dt is None:
        return None
    return dt.isoformat()


def create_app(reminder_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given SalahReminderApp instance."""
    app = FastAPI(title="Salah Reminder API", description="Prayer times, windows and reminder state")

    @app.get("/api/status")
    def get_status() -> Dict[str, Any]:
        """Active location, scheduler state and the armed event."""
        scheduler = reminder_app.scheduler
        event = event_response(scheduler.next_event())
        return {
            "location_id": scheduler.location_id,
            "state": scheduler.state,
            "payload_available": scheduler.get_current_payload() is not None,
            "armed_at": _serialize_datetime(scheduler.armed_at()),
            "next_event": event.model_dump(mode="json") if event else None,
            "failed_refreshes": scheduler.failed_refreshes,
        }

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """List active in-memory timers."""
        active_timers = reminder_app.task_manager.get_active_timers()
        return {
            "active_timers": [
                {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
                for t in active_timers
            ]
        }

    app.include_router(get_router(reminder_app), prefix="/api/salah")
    return app


def run_api_server(reminder_app: Any) -> None:
    """
    Start the API server in a daemon thread if api.enabled is true.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = reminder_app.config.data.get("api") or {}
    if not api_config.get("enabled", False):
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(reminder_app)

    def run_uvicorn():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port)
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")

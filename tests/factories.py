import asyncio
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from bygolf_calendar.models.booking import Booking

TZ = ZoneInfo("Europe/Stockholm")


def booking_payload(
    booking_id: int,
    start: str,
    end: str,
    bay_ref: Optional[str] = "1",
    **extra,
) -> dict:
    payload = {
        "id": booking_id,
        "start": start,
        "end": end,
        "status": "confirmed",
        "paymentStatus": "paid",
        "type": "booking",
        "notes": None,
        "source": "web",
        "isBlock": False,
        "players": 2,
        "playerOptions": [{"id": 1, "quantity": 2, "name": "Adult"}],
        "user": {"id": 7, "email": "alice@example.com", "name": "Alice", "isSystemUser": False},
        "extrasString": "",
        "productIds": [],
        "bayId": 11,
        "bayOptionId": 3,
    }
    if bay_ref is not None:
        payload["bayRef"] = bay_ref
    payload.update(extra)
    return payload


def make_booking(booking_id: int, start: str, end: str, bay_ref: Optional[str] = "1", **extra) -> Booking:
    return Booking.model_validate(booking_payload(booking_id, start, end, bay_ref, **extra))


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


def job_runs() -> list:
    """Scheduler job runs still in progress on the running loop."""
    return [
        t for t in asyncio.all_tasks()
        if not t.done() and getattr(t.get_coro(), "__name__", "") == "run_coroutine_job"
    ]

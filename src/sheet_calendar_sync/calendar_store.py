"""
CalendarStore backed by an Evolution Data Server calendar.

Events are written with floating DTSTART/DTEND (no TZID), so what the sheet
shows is exactly the wall-clock time stored.  UTC times coming back from a
server are shifted to local time; TZID times are read as wall-clock.
"""

import logging
import uuid
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import gi

gi.require_version("ICalGLib", "3.0")
from gi.repository import ICalGLib

from sheet_calendar_sync.eds_client import EDSCalendarClient
from sheet_calendar_sync.models import CalendarEvent
from sheet_calendar_sync.models import StoreError

_logger = logging.getLogger(__name__)

# Widen the EDS query so floating/all-day events near the edges are not lost
# to the server's own timezone handling; results are filtered exactly below.
_QUERY_SLACK = timedelta(days=1)

_MIN_DURATION = timedelta(minutes=1)


def parse_component(obj) -> ICalGLib.Component:
    """Handle both string and native Component objects from EDS API."""
    if isinstance(obj, str):
        return ICalGLib.Component.new_from_string(obj)
    return obj


def _vevent(comp: ICalGLib.Component) -> ICalGLib.Component | None:
    if comp.isa() == ICalGLib.ComponentKind.VCALENDAR_COMPONENT:
        return comp.get_first_component(ICalGLib.ComponentKind.VEVENT_COMPONENT)
    return comp


def _floating(instant: datetime) -> str:
    return instant.strftime("%Y%m%dT%H%M%S")


def ical_time_to_local(t: ICalGLib.Time) -> datetime | None:
    """Convert an ICalGLib.Time to a naive local datetime."""
    if t is None or t.is_null_time():
        return None
    if t.is_date():
        return datetime(t.get_year(), t.get_month(), t.get_day())
    value = datetime(
        t.get_year(), t.get_month(), t.get_day(), t.get_hour(), t.get_minute(), t.get_second()
    )
    if t.is_utc():
        return value.replace(tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    return value


def component_to_event(comp: ICalGLib.Component) -> CalendarEvent | None:
    """Build a CalendarEvent from a VEVENT (or a VCALENDAR wrapping one)."""
    vevent = _vevent(comp)
    if vevent is None:
        return None
    uid = vevent.get_uid()
    start = ical_time_to_local(vevent.get_dtstart())
    if not uid or start is None:
        return None

    end = ical_time_to_local(vevent.get_dtend())
    if end is None:
        prop = vevent.get_first_property(ICalGLib.PropertyKind.DURATION_PROPERTY)
        if prop is not None:
            end = start + timedelta(seconds=prop.get_duration().as_int())
        elif vevent.get_dtstart().is_date():
            end = start + timedelta(days=1)
        else:
            end = start
    if end <= start:
        _logger.debug(f"Event {uid} has no duration; treating it as one minute long")
        end = start + _MIN_DURATION

    return CalendarEvent(id=uid, title=vevent.get_summary() or "", start=start, end=end)


def build_vevent(uid: str, title: str, start: datetime, end: datetime) -> ICalGLib.Component:
    """Return a minimal VEVENT with floating start/end times."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    comp = ICalGLib.Component.new_from_string(
        "BEGIN:VEVENT\r\n"
        f"UID:{uid}\r\n"
        f"DTSTART:{_floating(start)}\r\n"
        f"DTEND:{_floating(end)}\r\n"
        f"DTSTAMP:{stamp}\r\n"
        "END:VEVENT\r\n"
    )
    # set_summary escapes commas/semicolons for us
    comp.set_summary(title)
    return comp


def apply_event_fields(
    comp: ICalGLib.Component, title: str, start: datetime, end: datetime
) -> ICalGLib.Component:
    """Overwrite title and time window on an existing VEVENT in place."""
    vevent = _vevent(comp)
    if vevent is None:
        raise StoreError("Calendar object has no VEVENT")
    vevent.set_summary(title)
    vevent.set_dtstart(ICalGLib.Time.new_from_string(_floating(start)))
    duration = vevent.get_first_property(ICalGLib.PropertyKind.DURATION_PROPERTY)
    if duration is not None:
        vevent.remove_property(duration)
    vevent.set_dtend(ICalGLib.Time.new_from_string(_floating(end)))
    return comp


class EDSCalendarStore:
    """CalendarStore over a connected EDSCalendarClient."""

    def __init__(self, client: EDSCalendarClient):
        self.client = client

    def get_event_by_id(self, event_id: str) -> CalendarEvent | None:
        comp = self.client.get_event(event_id)
        if comp is None:
            return None
        return component_to_event(comp)

    def create_event(self, title: str, start: datetime, end: datetime) -> CalendarEvent:
        uid = str(uuid.uuid4())
        assigned = self.client.create_event(build_vevent(uid, title, start, end))
        if assigned:
            uid = assigned
            _logger.debug(f"Server assigned UID: {uid}")
        return CalendarEvent(id=uid, title=title, start=start, end=end)

    def update_event(self, event_id: str, title: str, start: datetime, end: datetime) -> None:
        comp = self.client.get_event(event_id)
        if comp is None:
            raise StoreError(f"Event {event_id} not found")
        self.client.modify_event(apply_event_fields(comp, title, start, end))

    def delete_event(self, event_id: str) -> None:
        self.client.remove_event(event_id)

    def get_events_in_range(self, start: datetime, end_exclusive: datetime) -> list[CalendarEvent]:
        """Events overlapping [start, end_exclusive), ordered by start time."""
        events = []
        seen = set()
        objects = self.client.get_events_in_range(start - _QUERY_SLACK, end_exclusive + _QUERY_SLACK)
        for obj in objects:
            event = component_to_event(parse_component(obj))
            if event is None or event.id in seen:
                continue
            if event.start < end_exclusive and event.end > start:
                seen.add(event.id)
                events.append(event)
        events.sort(key=lambda e: (e.start, e.end, e.title, e.id))
        return events

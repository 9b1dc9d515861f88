"""
Evolution Data Server calendar connectivity wrapper.
"""

from datetime import datetime
from datetime import timezone
from typing import Optional, Tuple

import gi
gi.require_version('EDataServer', '1.2')
gi.require_version('ECal', '2.0')
gi.require_version('ICalGLib', '3.0')
from gi.repository import EDataServer, ECal, ICalGLib, GLib

from .models import StoreError

# E_CAL_CLIENT_ERROR_OBJECT_NOT_FOUND = 1  (from e-cal-client-error-quark)
_EDS_NOT_FOUND_CODE = 1
_EDS_CLIENT_ERROR_DOMAIN = "e-cal-client-error-quark"


def is_not_found_error(e: Exception) -> bool:
    """Return True when EDS reports that a calendar object does not exist."""
    if isinstance(e, GLib.Error):
        domain = e.domain or ""
        if e.code == _EDS_NOT_FOUND_CODE and _EDS_CLIENT_ERROR_DOMAIN in domain:
            return True
    return "object not found" in str(e).lower()


def _utc_stamp(local: datetime) -> str:
    """Format a naive local datetime as an iCal UTC timestamp."""
    return local.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def get_calendar_display_info(calendar_uid: str) -> Tuple[str, str, str]:
    """
    Get human-readable information about a calendar.

    Returns:
        Tuple of (display_name, account_name, uid)
    """
    try:
        registry = EDataServer.SourceRegistry.new_sync(None)
        source = registry.ref_source(calendar_uid)

        if not source:
            return ("Unknown Calendar", "", calendar_uid)

        display_name = source.get_display_name() or "Unnamed Calendar"

        account_name = ""
        parent_uid = source.get_parent()
        if parent_uid:
            parent_source = registry.ref_source(parent_uid)
            if parent_source:
                account_name = parent_source.get_display_name() or ""

        return (display_name, account_name, calendar_uid)
    except Exception as e:
        return (f"Error: {e}", "", calendar_uid)


class EDSCalendarClient:
    """Wrapper for Evolution Data Server calendar operations."""

    def __init__(self, registry: EDataServer.SourceRegistry, calendar_uid: str):
        self.registry = registry
        self.calendar_uid = calendar_uid
        self.client: Optional[ECal.Client] = None

    def connect(self, timeout: int = 10):
        """Connect to the specified calendar in EDS."""
        source = self.registry.ref_source(self.calendar_uid)
        if not source:
            raise StoreError(
                f"Calendar with UID '{self.calendar_uid}' not found in EDS"
            )

        try:
            self.client = ECal.Client.connect_sync(
                source,
                ECal.ClientSourceType.EVENTS,
                timeout,
                None
            )
        except GLib.Error as e:
            raise StoreError(
                f"Failed to connect to calendar {self.calendar_uid}: {e.message}"
            )

    def _require_client(self) -> ECal.Client:
        if not self.client:
            raise StoreError("Client not connected")
        return self.client

    def get_events_in_range(self, start: datetime, end: datetime) -> list:
        """Retrieve events occurring between two naive local datetimes."""
        client = self._require_client()
        sexp = (
            f'(occur-in-time-range? (make-time "{_utc_stamp(start)}") '
            f'(make-time "{_utc_stamp(end)}"))'
        )
        try:
            _, objects = client.get_object_list_sync(sexp, None)
            return objects
        except GLib.Error as e:
            raise StoreError(f"Failed to fetch events: {e.message}")

    def create_event(self, component: ICalGLib.Component) -> Optional[str]:
        """Create a new event in the calendar."""
        client = self._require_client()
        try:
            success, out_uid = client.create_object_sync(
                component,
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise StoreError(f"Failed to create event: {e.message}")
        if not success:
            raise StoreError("Failed to create event")
        return out_uid

    def modify_event(self, component: ICalGLib.Component):
        """Modify an existing event in the calendar."""
        client = self._require_client()
        try:
            success = client.modify_object_sync(
                component,
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise StoreError(f"Failed to modify event {component.get_uid()}: {e.message}")
        if not success:
            raise StoreError("Failed to modify event")

    def remove_event(self, uid: str):
        """Remove an event from the calendar."""
        client = self._require_client()
        try:
            success = client.remove_object_sync(
                uid,
                None,  # rid (recurrence-id)
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None  # cancellable
            )
        except GLib.Error as e:
            raise StoreError(f"Failed to remove event {uid}: {e.message}")
        if not success:
            raise StoreError(f"Failed to remove event {uid}")

    def get_event(self, uid: str) -> Optional[ICalGLib.Component]:
        """Retrieve a single event by UID, or None when EDS has no such object."""
        client = self._require_client()

        try:
            success, icalcomp = client.get_object_sync(uid, None, None)
        except GLib.Error as e:
            if is_not_found_error(e):
                return None
            raise StoreError(f"Failed to look up event {uid}: {e.message}")
        if success and icalcomp:
            # Handle both string and Component returns
            if isinstance(icalcomp, str):
                return ICalGLib.Component.new_from_string(icalcomp)
            return icalcomp
        return None

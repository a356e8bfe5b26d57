"""
Error types for schedule sources and location configuration.
ParseError and TransportError never leave a source: they are logged and the
fetch reports None. UnsupportedLocation is raised to whoever configures the
scheduler.
"""


class SalahReminderError(Exception):
    """Base class for all salah reminder errors."""


class ParseError(SalahReminderError):
    """Source markup, date or time text could not be understood."""


class TransportError(SalahReminderError):
    """The remote page could not be fetched."""


class UnsupportedLocation(SalahReminderError):
    """No source is bound to the given location identifier."""

    def __init__(self, location_id: str):
        super().__init__(f"Unsupported location: {location_id!r}")
        self.location_id = location_id

"""Attendee bulk-import tool: analyze an uploaded attendee file, then create tickets."""

__version__ = "0.1.0"

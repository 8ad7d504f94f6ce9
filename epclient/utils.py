"""Date and value helpers shared by the portal client."""

import logging
from datetime import date, datetime
from typing import Any, Optional, Union

from .const import TIMETABLE_DATE_FORMAT

_LOGGER = logging.getLogger(__name__)

# Placeholder values the portal sends instead of null timestamps
_ZERO_DATES = ("0000-00-00", "0000-00-00 00:00:00", "0000-00-00T00:00:00")


def now() -> datetime:
	"""Return the current local time as a timezone-aware datetime."""
	return datetime.now().astimezone()


def date_only(value: Union[date, datetime]) -> date:
	"""Strip the time of day from a date or datetime."""
	if isinstance(value, datetime):
		return value.date()
	return value


def format_timetable_timestamp(day: Union[date, datetime]) -> str:
	"""Format a calendar day as the midnight timestamp the timetable API expects."""
	midnight = datetime.combine(date_only(day), datetime.min.time())
	return midnight.strftime(TIMETABLE_DATE_FORMAT)


def parse_day(value: str) -> date:
	"""Parse an ISO date, or the date part of an ISO datetime.

	Raises:
		ValueError: if the value is not an ISO date
	"""
	if not isinstance(value, str) or len(value) < 10:
		raise ValueError(f"Invalid date: {value!r}")
	return date.fromisoformat(value[:10])


def parse_datetime(value: str) -> datetime:
	"""Parse an ISO-8601 timestamp into an aware datetime.

	Naive timestamps are taken to be local time.

	Raises:
		ValueError: if the value is not an ISO-8601 timestamp
	"""
	if not isinstance(value, str) or not value:
		raise ValueError(f"Invalid timestamp: {value!r}")
	parsed = datetime.fromisoformat(value)
	if parsed.tzinfo is None:
		parsed = parsed.astimezone()
	return parsed


def parse_optional_datetime(value: Any) -> Optional[datetime]:
	"""Parse a timestamp, returning None for blank or zero dates."""
	if value is None or value == "" or value in _ZERO_DATES:
		return None
	return parse_datetime(value)


def format_optional_datetime(value: Optional[datetime]) -> Optional[str]:
	"""Inverse of parse_optional_datetime."""
	return value.isoformat() if value is not None else None


def try_parse_int(value: Any) -> Optional[int]:
	"""Parse an integer id, returning None when it is not numeric."""
	if isinstance(value, bool):
		return None
	if isinstance(value, int):
		return value
	try:
		return int(str(value).strip())
	except (TypeError, ValueError):
		return None

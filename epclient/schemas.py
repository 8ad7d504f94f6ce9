"""Voluptuous schemas for payloads returned by the portal.

Every record is validated before it becomes a model. Unknown keys are kept out
of the models but do not fail validation, since the portal adds fields over
time. Anything structurally wrong raises EPDataError.
"""

import json
import logging
from typing import Any, Dict

import voluptuous as vol

from .exceptions import EPDataError
from .utils import parse_datetime, parse_optional_datetime

_LOGGER = logging.getLogger(__name__)

TEXT = vol.Any(None, vol.Coerce(str))
NUMBER = vol.Any(int, float)


def json_value(value: Any) -> Any:
	"""Accept any JSON-serializable value and pass it through untouched."""
	try:
		json.dumps(value)
	except (TypeError, ValueError) as err:
		raise vol.Invalid(f"not a JSON value: {err}") from err
	return value


def timestamp(value: Any) -> Any:
	"""Require an ISO-8601 timestamp."""
	try:
		return parse_datetime(value)
	except (TypeError, ValueError) as err:
		raise vol.Invalid(f"invalid timestamp {value!r}") from err


def optional_timestamp(value: Any) -> Any:
	"""Accept an ISO-8601 timestamp, a blank or zero date, or null."""
	try:
		return parse_optional_datetime(value)
	except (TypeError, ValueError) as err:
		raise vol.Invalid(f"invalid timestamp {value!r}") from err


def php_map(value_schema: Any) -> Any:
	"""Validate a JSON object keyed by id.

	PHP encodes an empty associative array as [], so that is accepted as {}.
	"""
	mapping = vol.Schema({str: value_schema})

	def validator(value: Any) -> Dict[str, Any]:
		if isinstance(value, list) and not value:
			return {}
		return mapping(value)

	return validator


def _text_or_empty(value: Any) -> str:
	return "" if value is None else str(value)


ID = vol.Coerce(str)
STR = vol.All(TEXT, _text_or_empty)
STR_LIST = vol.All(vol.Any(None, [vol.Coerce(str)]), lambda v: list(v or []))

PERIOD_SCHEMA = vol.Schema(
	{
		vol.Required("id"): ID,
		vol.Required("starttime"): str,
		vol.Required("endtime"): str,
		vol.Optional("name", default=""): STR,
		vol.Optional("short", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)

SUBJECT_SCHEMA = vol.Schema(
	{
		vol.Optional("id", default=""): STR,
		vol.Optional("name", default=""): STR,
		vol.Optional("short", default=""): STR,
		vol.Optional("cbhidden", default=False): vol.Any(None, bool),
	},
	extra=vol.REMOVE_EXTRA,
)

CLASS_SCHEMA = vol.Schema(
	{
		vol.Required("id"): ID,
		vol.Optional("name", default=""): STR,
		vol.Optional("short", default=""): STR,
		vol.Optional("grade", default=""): STR,
		vol.Optional("teacherid", default=""): STR,
		vol.Optional("teacher2id", default=""): STR,
		vol.Optional("classroomid", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)

TEACHER_SCHEMA = vol.Schema(
	{
		vol.Required("id"): ID,
		vol.Optional("firstname", default=""): STR,
		vol.Optional("lastname", default=""): STR,
		vol.Optional("short", default=""): STR,
		vol.Optional("gender", default=""): STR,
		vol.Optional("classroomid", default=""): STR,
		vol.Optional("datefrom", default=""): STR,
		vol.Optional("dateto", default=""): STR,
		vol.Optional("isout", default=False): vol.Any(None, bool),
	},
	extra=vol.REMOVE_EXTRA,
)

CLASSROOM_SCHEMA = vol.Schema(
	{
		vol.Required("id"): ID,
		vol.Optional("name", default=""): STR,
		vol.Optional("short", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)

LESSON_SCHEMA = vol.Schema(
	{
		vol.Optional("type", default=""): STR,
		vol.Optional("date", default=""): STR,
		vol.Required("uniperiod"): ID,
		vol.Required("starttime"): str,
		vol.Required("endtime"): str,
		vol.Optional("subject", default=None): vol.Any(None, dict),
		vol.Optional("classes", default=list): vol.Any(None, [dict]),
		vol.Optional("groupnames", default=list): STR_LIST,
		vol.Optional("igroupid", default=""): STR,
		vol.Optional("teachers", default=list): vol.Any(None, [dict]),
		vol.Optional("classrooms", default=list): vol.Any(None, [dict]),
		vol.Optional("studentids", default=list): STR_LIST,
		vol.Optional("colors", default=list): STR_LIST,
		vol.Optional("placeholder", default=False): bool,
	},
	extra=vol.REMOVE_EXTRA,
)

DAY_SCHEDULE_SCHEMA = vol.Schema(
	{
		vol.Required("date"): str,
		vol.Required("classes"): [dict],
		vol.Required("periods"): [dict],
	},
	extra=vol.REMOVE_EXTRA,
)

TIMETABLE_RESPONSE_SCHEMA = vol.Schema(
	{vol.Required("Days"): php_map(vol.Any(None, [dict]))},
	extra=vol.REMOVE_EXTRA,
)

PERIODS_RESPONSE_SCHEMA = vol.Schema(php_map(dict))

TIMELINE_ITEM_SCHEMA = vol.Schema(
	{
		vol.Required("timelineid"): ID,
		vol.Required("timestamp"): timestamp,
		vol.Optional("reakcia_na", default=""): STR,
		vol.Optional("typ", default=""): STR,
		vol.Optional("user", default=""): STR,
		vol.Optional("target_user", default=""): STR,
		vol.Optional("user_meno", default=""): STR,
		vol.Optional("ineid", default=""): STR,
		vol.Optional("text", default=""): STR,
		vol.Optional("cas_pridania", default=None): optional_timestamp,
		vol.Optional("cas_udalosti", default=None): optional_timestamp,
		vol.Optional("data", default=dict): vol.All(vol.Any(None, dict), lambda v: dict(v or {}), json_value),
		vol.Optional("vlastnik", default=""): STR,
		vol.Optional("vlastnik_meno", default=""): STR,
		vol.Optional("poct_reakcii", default=0): vol.Any(None, vol.Coerce(int)),
		vol.Optional("posledna_reakcia", default=""): STR,
		vol.Optional("pomocny_zaznam", default=""): STR,
		vol.Optional("removed", default=0): vol.Any(None, NUMBER, vol.Coerce(float)),
		vol.Optional("cas_pridania_btc", default=None): optional_timestamp,
		vol.Optional("cas_udalosti_btc", default=None): optional_timestamp,
	},
	extra=vol.REMOVE_EXTRA,
)

HOMEWORK_SCHEMA = vol.Schema(
	{
		vol.Required("hwkid"): ID,
		vol.Optional("homeworkid", default=""): STR,
		vol.Optional("e_superid", default=""): STR,
		vol.Optional("userid", default=""): STR,
		vol.Optional("predmetid", default=None): vol.Any(None, NUMBER, vol.Coerce(float)),
		vol.Optional("planid", default=""): STR,
		vol.Optional("name", default=""): STR,
		vol.Optional("details", default=""): STR,
		vol.Optional("dateto", default=""): STR,
		vol.Optional("datefrom", default=""): STR,
		vol.Optional("datetimeto", default=""): STR,
		vol.Optional("datetimefrom", default=""): STR,
		vol.Optional("datecreated", default=""): STR,
		vol.Optional("period", default=None): json_value,
		vol.Optional("timestamp", default=""): STR,
		vol.Optional("testid", default=""): STR,
		vol.Optional("typ", default=""): STR,
		vol.Optional("pocet_like", default=0): vol.Any(None, NUMBER),
		vol.Optional("pocet_reakcii", default=0): vol.Any(None, NUMBER),
		vol.Optional("pocet_done", default=0): vol.Any(None, NUMBER),
		vol.Optional("stav", default=""): STR,
		vol.Optional("posledny_vysledok", default=""): STR,
		vol.Optional("skupiny", default=list): STR_LIST,
		vol.Optional("etestCards", default=0): vol.Any(None, vol.Coerce(int)),
		vol.Optional("etestAnswerCards", default=0): vol.Any(None, vol.Coerce(int)),
		vol.Optional("studyTopics", default=None): json_value,
		vol.Optional("znamky_udalostid", default=None): json_value,
		vol.Optional("students_hidden", default=""): STR,
		vol.Optional("data", default=dict): vol.All(vol.Any(None, dict), lambda v: dict(v or {}), json_value),
		vol.Optional("stavhodnotetimelinePathd", default=""): STR,
		vol.Optional("skoncil", default=None): json_value,
		vol.Optional("missingNextLesson", default=False): vol.Any(None, bool),
		vol.Optional("attachements", default=None): json_value,
		vol.Optional("autor_meno", default=""): STR,
		vol.Optional("predmet_meno", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)

TIMELINE_RESPONSE_SCHEMA = vol.Schema(
	{
		vol.Optional("Homeworks", default=dict): vol.Any(None, php_map(dict)),
		vol.Optional("Items", default=dict): vol.Any(None, php_map(dict)),
	},
	extra=vol.REMOVE_EXTRA,
)

LOGIN_RESPONSE_SCHEMA = vol.Schema(
	{
		vol.Required("token"): vol.All(str, vol.Length(min=1)),
		vol.Optional("name", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)

SESSION_SCHEMA = vol.Schema(
	{
		vol.Required("username"): str,
		vol.Required("password"): str,
		vol.Optional("server", default=None): vol.Any(None, str),
		vol.Optional("token", default=""): STR,
		vol.Optional("name", default=""): STR,
	},
	extra=vol.REMOVE_EXTRA,
)


def validate(schema: vol.Schema, data: Any, what: str) -> Dict[str, Any]:
	"""Validate data against a schema, raising EPDataError on failure.

	Args:
		schema: Voluptuous schema to apply
		data: Raw decoded JSON
		what: Human readable name of the record, used in the error message

	Returns:
		The validated (and defaulted) data
	"""
	try:
		return schema(data)
	except vol.Invalid as err:
		_LOGGER.error(f"Invalid {what} payload: {err}")
		raise EPDataError(f"Invalid {what} payload: {err}") from err

"""Timetable normalization and the per-day schedule cache."""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from . import schemas
from .auth import SessionManager
from .client import EPApiClient
from .const import (
	PERIODS_PATH,
	STORAGE_KEY_DEMO,
	STORAGE_KEY_TIMETABLE,
	TIMETABLE_PATH,
	TIMETABLE_RECENT_PATH,
)
from .exceptions import EPDataError
from .models import (
	Classroom,
	DaySchedule,
	LessonOccurrence,
	Period,
	SchoolClass,
	Subject,
	Teacher,
)
from .storage import KeyValueStore
from .utils import date_only, format_timetable_timestamp, parse_day, try_parse_int

_LOGGER = logging.getLogger(__name__)


def _lesson_key(lesson: LessonOccurrence) -> Tuple[int, int, int]:
	# Start id, then end id; lessons with a non-numeric id go last in input order
	start = try_parse_int(lesson.start_period.id)
	end = try_parse_int(lesson.end_period.id)
	if start is None or end is None:
		return (1, 0, 0)
	return (0, start, end)


def _index_of(periods: List[Period], period_id: str) -> int:
	for index, period in enumerate(periods):
		if period.id == period_id:
			return index
	return -1


def normalize_day(day: DaySchedule) -> DaySchedule:
	"""Turn raw lessons of a day into a sorted schedule without holes.

	Each lesson gets its start and end period resolved, multi-period lessons
	are stretched to the period their end time matches, and every period
	between two lessons that nothing occupies gets a placeholder lesson.
	Lessons are ordered by start period, then end period; lessons whose
	period ids are not numeric keep their input order after the rest.
	Running this on its own output returns an equal schedule.

	Args:
		day: Schedule with lessons in any order

	Returns:
		A new DaySchedule; the input is left untouched
	"""
	periods = list(day.periods)
	lessons: List[LessonOccurrence] = []

	# Placeholders are rebuilt below from the real lessons
	for lesson in (l for l in day.lessons if not l.placeholder):
		period = Period.or_default(periods, lesson.period, lesson.start_time, lesson.end_time)
		if period.synthetic:
			_LOGGER.debug(f"No period {lesson.period!r} on {day.date}, using the lesson's own times")
		lessons.append(_with_periods(lesson, period, period))

	for index, lesson in enumerate(lessons):
		end_period = Period.or_default(periods, lesson.end_period.id, lesson.end_time, lesson.end_time)
		if lesson.end_time == end_period.end_time:
			continue
		for period in periods:
			if period.end_time == lesson.end_time:
				lessons[index] = _with_periods(lesson, lesson.start_period, period)
				break

	lessons.sort(key=_lesson_key)
	periods.sort(key=lambda p: p.start_time)

	gaps: List[LessonOccurrence] = []
	reached: Optional[int] = None
	for current, following in zip(lessons, lessons[1:]):
		# Furthest period covered so far, so overlapping lessons never get a placeholder
		current_index = _index_of(periods, current.end_period.id)
		reached = current_index if reached is None else max(reached, current_index)
		next_index = _index_of(periods, following.start_period.id)
		if next_index != -1 and next_index - reached > 1:
			for period in periods[reached + 1:next_index]:
				gaps.append(LessonOccurrence.empty(period))

	lessons.extend(gaps)
	lessons.sort(key=_lesson_key)

	return DaySchedule(day.date, lessons, periods)


def _with_periods(lesson: LessonOccurrence, start: Period, end: Period) -> LessonOccurrence:
	return LessonOccurrence(
		period=lesson.period,
		start_time=lesson.start_time,
		end_time=lesson.end_time,
		type=lesson.type,
		date=lesson.date,
		subject=lesson.subject,
		classes=list(lesson.classes),
		group_names=list(lesson.group_names),
		igroup_id=lesson.igroup_id,
		teachers=list(lesson.teachers),
		classrooms=list(lesson.classrooms),
		student_ids=list(lesson.student_ids),
		colors=list(lesson.colors),
		start_period=start,
		end_period=end,
		placeholder=lesson.placeholder,
	)


def demo_schedule(day: Union[date, datetime]) -> DaySchedule:
	"""Fixed one-lesson schedule served while demo mode is on."""
	period = Period("1", "08:00", "08:45", "1", "1")
	lesson = LessonOccurrence(
		type="1",
		date="2021-09-01",
		period="1",
		start_time="08:00",
		end_time="08:45",
		subject=Subject(id="1", name="Math", short="M", cb_hidden=False),
		classes=[
			SchoolClass(
				id="1",
				name="Math",
				short="M",
				grade="1",
				teacher_id="1",
				teacher2_id="2",
				classroom_id="1",
			),
		],
		group_names=["1A"],
		igroup_id="1",
		teachers=[
			Teacher(
				id="1",
				first_name="John",
				last_name="Doe",
				short="JD",
				gender="M",
				classroom_id="1",
				date_from="2021-09-01",
				date_to="2021-09-01",
				is_out=False,
			),
		],
		classrooms=[Classroom(id="1", name="1A", short="1A")],
		start_period=period,
		end_period=period,
	)
	return DaySchedule(date_only(day), [lesson], [period])


def _decode_lessons(raw_lessons: Optional[List[Dict[str, Any]]]) -> List[LessonOccurrence]:
	# Records without a student list are events and notices, not lessons
	return [
		LessonOccurrence.from_json(raw)
		for raw in raw_lessons or []
		if raw.get("studentids") is not None
	]


class ScheduleCache:
	"""Per-day schedules plus the period table shared by all days."""

	def __init__(
		self,
		api: EPApiClient,
		session: SessionManager,
		store: KeyValueStore,
		use_cache: bool = True,
	) -> None:
		self._api = api
		self._session = session
		self._store = store
		self._use_cache = use_cache
		self.days: Dict[date, DaySchedule] = {}
		self.periods: Optional[List[Period]] = None

	async def get_periods(self, token: str) -> List[Period]:
		"""Fetch the period table once; later calls reuse it."""
		if self.periods is not None:
			return self.periods

		data = await self._api.get_json(PERIODS_PATH, token=token)
		data = schemas.validate(schemas.PERIODS_RESPONSE_SCHEMA, data, "periods")
		self.periods = [Period.from_json(raw) for raw in data.values()]
		_LOGGER.debug(f"Loaded {len(self.periods)} periods")
		return self.periods

	async def get_day(self, day: Union[date, datetime]) -> DaySchedule:
		"""Schedule of one day, from memory if possible.

		Args:
			day: Day to look up; any time of day is ignored

		Returns:
			The normalized schedule. Demo mode returns the demo schedule and a
			session without a token gets an empty schedule.

		Raises:
			EPError: the day had to be fetched and the request failed
		"""
		requested = date_only(day)
		cached = self.days.get(requested)
		if cached is not None:
			return cached

		if await self._store.get_bool(STORAGE_KEY_DEMO):
			return demo_schedule(requested)

		token = self._session.token
		if not token:
			return DaySchedule(requested, [], [])

		stamp = format_timetable_timestamp(requested)
		data = await self._api.get_json(TIMETABLE_PATH, token=token, params={"to": stamp, "from": stamp})
		days = schemas.validate(schemas.TIMETABLE_RESPONSE_SCHEMA, data, "timetable")["Days"]

		if days:
			reported, raw_lessons = next(iter(days.items()))
			schedule_date = self._parse_day_key(reported)
		else:
			raw_lessons, schedule_date = [], requested

		lessons = _decode_lessons(raw_lessons)
		periods = await self.get_periods(token)

		schedule = normalize_day(DaySchedule(schedule_date, lessons, list(periods)))
		self.days[schedule_date] = schedule
		await self.save_to_cache()
		return schedule

	async def get_recent(self) -> List[DaySchedule]:
		"""Fetch the recent days in one request and replace them in the cache."""
		token = self._session.token
		data = await self._api.get_json(TIMETABLE_RECENT_PATH, token=token)
		days = schemas.validate(schemas.TIMETABLE_RESPONSE_SCHEMA, data, "recent timetable")["Days"]

		schedules: List[DaySchedule] = []
		for key, raw_lessons in days.items():
			lessons = _decode_lessons(raw_lessons)
			periods = await self.get_periods(token)
			schedule = normalize_day(DaySchedule(self._parse_day_key(key), lessons, list(periods)))
			self.days[schedule.date] = schedule
			schedules.append(schedule)

		_LOGGER.debug(f"Fetched {len(schedules)} recent days")
		await self.save_to_cache()
		return schedules

	async def today(self) -> DaySchedule:
		"""Schedule of the current local day."""
		return await self.get_day(datetime.now())

	@staticmethod
	def _parse_day_key(value: str) -> date:
		try:
			return parse_day(value)
		except ValueError as e:
			raise EPDataError(f"Invalid timetable day {value!r}") from e

	def to_json(self) -> Dict[str, Any]:
		return {
			"timetables": {key.isoformat(): value.to_json() for key, value in self.days.items()},
			"periods": [p.to_json() for p in self.periods] if self.periods is not None else None,
		}

	def load_json(self, data: Dict[str, Any]) -> None:
		"""Replace the cache contents with a saved document, normalizing every day again."""
		if not isinstance(data, dict) or not isinstance(data.get("timetables"), dict):
			raise EPDataError("Invalid cached timetable document")

		days: Dict[date, DaySchedule] = {}
		for key, value in data["timetables"].items():
			days[self._parse_day_key(key)] = normalize_day(DaySchedule.from_json(value))

		raw_periods = data.get("periods")
		self.days = days
		self.periods = [Period.from_json(p) for p in raw_periods] if raw_periods is not None else None

	async def save_to_cache(self) -> None:
		if not self._use_cache:
			return
		await self._store.set(STORAGE_KEY_TIMETABLE, json.dumps(self.to_json()))

	@classmethod
	async def load_from_cache(
		cls,
		api: EPApiClient,
		session: SessionManager,
		store: KeyValueStore,
		use_cache: bool = True,
	) -> Optional["ScheduleCache"]:
		"""Restore the schedule cache saved by a previous run, if there is one."""
		raw = await store.get(STORAGE_KEY_TIMETABLE)
		if raw is None:
			return None
		cache = cls(api, session, store, use_cache=use_cache)
		try:
			cache.load_json(json.loads(raw))
		except (ValueError, EPDataError) as e:
			_LOGGER.warning(f"Ignoring unreadable cached timetable: {e}")
			return None
		_LOGGER.debug(f"Restored {len(cache.days)} cached days")
		return cache

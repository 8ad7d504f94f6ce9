"""Data models for EduPage portal entities."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from . import schemas
from .exceptions import EPDataError
from .utils import format_optional_datetime, parse_day

# Pass-through JSON whose shape the portal does not document
JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


@dataclass(frozen=True)
class Credentials:
	"""Login credentials for the portal proxy."""
	username: str
	password: str
	server: Optional[str] = None


@dataclass(frozen=True)
class Period:
	"""A fixed time slot of the school day."""
	id: str
	start_time: str
	end_time: str
	name: str = ""
	short: str = ""
	synthetic: bool = False

	@classmethod
	def or_default(
		cls,
		periods: List["Period"],
		period_id: str,
		start_time: str,
		end_time: str,
	) -> "Period":
		"""Look up a period by id, or build a synthetic one from the given fields."""
		for period in periods:
			if period.id == period_id:
				return period
		return cls(
			id=period_id,
			start_time=start_time,
			end_time=end_time,
			name=period_id,
			short=period_id,
			synthetic=True,
		)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "Period":
		data = schemas.validate(schemas.PERIOD_SCHEMA, data, "period")
		return cls(
			id=data["id"],
			start_time=data["starttime"],
			end_time=data["endtime"],
			name=data["name"],
			short=data["short"],
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"starttime": self.start_time,
			"endtime": self.end_time,
			"name": self.name,
			"short": self.short,
		}

	def __str__(self) -> str:
		return f"{self.name or self.id} ({self.start_time}-{self.end_time})"


@dataclass(frozen=True)
class Subject:
	"""A taught subject."""
	id: str
	name: str
	short: str
	cb_hidden: bool = False
	synthetic: bool = False

	@classmethod
	def placeholder(cls) -> "Subject":
		"""Blank subject shown for lessons the portal sent without one."""
		return cls(id="", name="", short="", cb_hidden=False, synthetic=True)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "Subject":
		data = schemas.validate(schemas.SUBJECT_SCHEMA, data, "subject")
		return cls(
			id=data["id"],
			name=data["name"],
			short=data["short"],
			cb_hidden=bool(data["cbhidden"]),
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"name": self.name,
			"short": self.short,
			"cbhidden": self.cb_hidden,
		}


@dataclass(frozen=True)
class SchoolClass:
	"""A class group attending a lesson."""
	id: str
	name: str = ""
	short: str = ""
	grade: str = ""
	teacher_id: str = ""
	teacher2_id: str = ""
	classroom_id: str = ""

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "SchoolClass":
		data = schemas.validate(schemas.CLASS_SCHEMA, data, "class")
		return cls(
			id=data["id"],
			name=data["name"],
			short=data["short"],
			grade=data["grade"],
			teacher_id=data["teacherid"],
			teacher2_id=data["teacher2id"],
			classroom_id=data["classroomid"],
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"name": self.name,
			"short": self.short,
			"grade": self.grade,
			"teacherid": self.teacher_id,
			"teacher2id": self.teacher2_id,
			"classroomid": self.classroom_id,
		}


@dataclass(frozen=True)
class Teacher:
	"""A teacher assigned to a lesson."""
	id: str
	first_name: str = ""
	last_name: str = ""
	short: str = ""
	gender: str = ""
	classroom_id: str = ""
	date_from: str = ""
	date_to: str = ""
	is_out: bool = False

	@property
	def full_name(self) -> str:
		return " ".join(part for part in (self.first_name, self.last_name) if part)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "Teacher":
		data = schemas.validate(schemas.TEACHER_SCHEMA, data, "teacher")
		return cls(
			id=data["id"],
			first_name=data["firstname"],
			last_name=data["lastname"],
			short=data["short"],
			gender=data["gender"],
			classroom_id=data["classroomid"],
			date_from=data["datefrom"],
			date_to=data["dateto"],
			is_out=bool(data["isout"]),
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"firstname": self.first_name,
			"lastname": self.last_name,
			"short": self.short,
			"gender": self.gender,
			"classroomid": self.classroom_id,
			"datefrom": self.date_from,
			"dateto": self.date_to,
			"isout": self.is_out,
		}


@dataclass(frozen=True)
class Classroom:
	"""A room a lesson takes place in."""
	id: str
	name: str = ""
	short: str = ""

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "Classroom":
		data = schemas.validate(schemas.CLASSROOM_SCHEMA, data, "classroom")
		return cls(id=data["id"], name=data["name"], short=data["short"])

	def to_json(self) -> Dict[str, Any]:
		return {"id": self.id, "name": self.name, "short": self.short}


@dataclass
class LessonOccurrence:
	"""A lesson slot of a single day, or a synthesized free period."""
	period: str
	start_time: str
	end_time: str
	type: str = ""
	date: str = ""
	subject: Optional[Subject] = None
	classes: List[SchoolClass] = field(default_factory=list)
	group_names: List[str] = field(default_factory=list)
	igroup_id: str = ""
	teachers: List[Teacher] = field(default_factory=list)
	classrooms: List[Classroom] = field(default_factory=list)
	student_ids: List[str] = field(default_factory=list)
	colors: List[str] = field(default_factory=list)
	start_period: Optional[Period] = None
	end_period: Optional[Period] = None
	placeholder: bool = False

	@classmethod
	def empty(cls, period: Period) -> "LessonOccurrence":
		"""Build a free-period placeholder covering exactly one period."""
		return cls(
			period=period.id,
			start_time=period.start_time,
			end_time=period.end_time,
			start_period=period,
			end_period=period,
			placeholder=True,
		)

	@property
	def display_subject(self) -> Subject:
		return self.subject if self.subject is not None else Subject.placeholder()

	@property
	def spans_multiple_periods(self) -> bool:
		if self.start_period is None or self.end_period is None:
			return False
		return self.start_period.id != self.end_period.id

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "LessonOccurrence":
		data = schemas.validate(schemas.LESSON_SCHEMA, data, "lesson")
		subject = data["subject"]
		return cls(
			type=data["type"],
			date=data["date"],
			period=data["uniperiod"],
			start_time=data["starttime"],
			end_time=data["endtime"],
			subject=Subject.from_json(subject) if subject is not None else None,
			classes=[SchoolClass.from_json(c) for c in data["classes"] or []],
			group_names=data["groupnames"],
			igroup_id=data["igroupid"],
			teachers=[Teacher.from_json(t) for t in data["teachers"] or []],
			classrooms=[Classroom.from_json(c) for c in data["classrooms"] or []],
			student_ids=data["studentids"],
			colors=data["colors"],
			placeholder=data["placeholder"],
		)

	def to_json(self) -> Dict[str, Any]:
		data = {
			"type": self.type,
			"date": self.date,
			"uniperiod": self.period,
			"starttime": self.start_time,
			"endtime": self.end_time,
			"subject": self.subject.to_json() if self.subject is not None else None,
			"classes": [c.to_json() for c in self.classes],
			"groupnames": list(self.group_names),
			"igroupid": self.igroup_id,
			"teachers": [t.to_json() for t in self.teachers],
			"classrooms": [c.to_json() for c in self.classrooms],
			"studentids": list(self.student_ids),
			"colors": list(self.colors),
		}
		if self.placeholder:
			data["placeholder"] = True
		return data

	def __str__(self) -> str:
		title = self.subject.name if self.subject is not None and self.subject.name else "Free"
		return f"{title} ({self.start_time}-{self.end_time})"


@dataclass
class DaySchedule:
	"""All lessons and the period table of one calendar day."""
	date: date
	lessons: List[LessonOccurrence]
	periods: List[Period]

	@property
	def has_lessons(self) -> bool:
		"""Check if the day has at least one real lesson."""
		return any(not lesson.placeholder for lesson in self.lessons)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "DaySchedule":
		"""Decode a cached day. The result still needs normalizing."""
		data = schemas.validate(schemas.DAY_SCHEDULE_SCHEMA, data, "day schedule")
		try:
			day = parse_day(data["date"])
		except ValueError as err:
			raise EPDataError(f"Invalid day schedule date: {data['date']!r}") from err
		return cls(
			date=day,
			lessons=[LessonOccurrence.from_json(c) for c in data["classes"]],
			periods=[Period.from_json(p) for p in data["periods"]],
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"date": self.date.isoformat(),
			"classes": [lesson.to_json() for lesson in self.lessons],
			"periods": [period.to_json() for period in self.periods],
		}


@dataclass(frozen=True)
class TimelineItem:
	"""An event of the activity feed."""
	id: str
	timestamp: datetime
	reaction_to: str = ""
	type: str = ""
	user: str = ""
	target_user: str = ""
	user_name: str = ""
	other_id: str = ""
	text: str = ""
	time_added: Optional[datetime] = None
	time_event: Optional[datetime] = None
	data: Dict[str, Any] = field(default_factory=dict)
	owner: str = ""
	owner_name: str = ""
	reaction_count: int = 0
	last_reaction: str = ""
	helper_record: str = ""
	removed: Union[int, float] = 0
	time_added_btc: Optional[datetime] = None
	last_reaction_btc: Optional[datetime] = None

	@property
	def is_removed(self) -> bool:
		return bool(self.removed)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "TimelineItem":
		data = schemas.validate(schemas.TIMELINE_ITEM_SCHEMA, data, "timeline item")
		return cls(
			id=data["timelineid"],
			timestamp=data["timestamp"],
			reaction_to=data["reakcia_na"],
			type=data["typ"],
			user=data["user"],
			target_user=data["target_user"],
			user_name=data["user_meno"],
			other_id=data["ineid"],
			text=data["text"],
			time_added=data["cas_pridania"],
			time_event=data["cas_udalosti"],
			data=data["data"],
			owner=data["vlastnik"],
			owner_name=data["vlastnik_meno"],
			reaction_count=data["poct_reakcii"] or 0,
			last_reaction=data["posledna_reakcia"],
			helper_record=data["pomocny_zaznam"],
			removed=data["removed"] or 0,
			time_added_btc=data["cas_pridania_btc"],
			last_reaction_btc=data["cas_udalosti_btc"],
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"timelineid": self.id,
			"timestamp": self.timestamp.isoformat(),
			"reakcia_na": self.reaction_to,
			"typ": self.type,
			"user": self.user,
			"target_user": self.target_user,
			"user_meno": self.user_name,
			"ineid": self.other_id,
			"text": self.text,
			"cas_pridania": format_optional_datetime(self.time_added),
			"cas_udalosti": format_optional_datetime(self.time_event),
			"data": self.data,
			"vlastnik": self.owner,
			"vlastnik_meno": self.owner_name,
			"poct_reakcii": self.reaction_count,
			"posledna_reakcia": self.last_reaction,
			"pomocny_zaznam": self.helper_record,
			"removed": self.removed,
			"cas_pridania_btc": format_optional_datetime(self.time_added_btc),
			"cas_udalosti_btc": format_optional_datetime(self.last_reaction_btc),
		}

	def __str__(self) -> str:
		return f"{self.user_name}: {self.text} ({self.type}) - {self.timestamp.strftime('%Y-%m-%d')}"


@dataclass(frozen=True)
class HomeworkItem:
	"""A homework assignment."""
	id: str
	homework_id: str = ""
	e_super_id: str = ""
	user_id: str = ""
	lesson_id: Optional[Union[int, float]] = None
	plan_id: str = ""
	name: str = ""
	details: str = ""
	date_to: str = ""
	date_from: str = ""
	datetime_to: str = ""
	datetime_from: str = ""
	date_created: str = ""
	period: JsonValue = None
	timestamp: str = ""
	test_id: str = ""
	type: str = ""
	like_count: Union[int, float] = 0
	reaction_count: Union[int, float] = 0
	done_count: Union[int, float] = 0
	state: str = ""
	last_result: str = ""
	groups: List[str] = field(default_factory=list)
	e_test_cards: int = 0
	e_test_answer_cards: int = 0
	study_topics: JsonValue = None
	grade_event_id: JsonValue = None
	students_hidden: str = ""
	data: Dict[str, Any] = field(default_factory=dict)
	evaluation_status: str = ""
	ended: JsonValue = None
	missing_next_lesson: bool = False
	attachments: JsonValue = None
	author_name: str = ""
	lesson_name: str = ""

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "HomeworkItem":
		data = schemas.validate(schemas.HOMEWORK_SCHEMA, data, "homework")
		return cls(
			id=data["hwkid"],
			homework_id=data["homeworkid"],
			e_super_id=data["e_superid"],
			user_id=data["userid"],
			lesson_id=data["predmetid"],
			plan_id=data["planid"],
			name=data["name"],
			details=data["details"],
			date_to=data["dateto"],
			date_from=data["datefrom"],
			datetime_to=data["datetimeto"],
			datetime_from=data["datetimefrom"],
			date_created=data["datecreated"],
			period=data["period"],
			timestamp=data["timestamp"],
			test_id=data["testid"],
			type=data["typ"],
			like_count=data["pocet_like"] or 0,
			reaction_count=data["pocet_reakcii"] or 0,
			done_count=data["pocet_done"] or 0,
			state=data["stav"],
			last_result=data["posledny_vysledok"],
			groups=data["skupiny"],
			e_test_cards=data["etestCards"] or 0,
			e_test_answer_cards=data["etestAnswerCards"] or 0,
			study_topics=data["studyTopics"],
			grade_event_id=data["znamky_udalostid"],
			students_hidden=data["students_hidden"],
			data=data["data"],
			evaluation_status=data["stavhodnotetimelinePathd"],
			ended=data["skoncil"],
			missing_next_lesson=bool(data["missingNextLesson"]),
			attachments=data["attachements"],
			author_name=data["autor_meno"],
			lesson_name=data["predmet_meno"],
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"hwkid": self.id,
			"homeworkid": self.homework_id,
			"e_superid": self.e_super_id,
			"userid": self.user_id,
			"predmetid": self.lesson_id,
			"planid": self.plan_id,
			"name": self.name,
			"details": self.details,
			"dateto": self.date_to,
			"datefrom": self.date_from,
			"datetimeto": self.datetime_to,
			"datetimefrom": self.datetime_from,
			"datecreated": self.date_created,
			"period": self.period,
			"timestamp": self.timestamp,
			"testid": self.test_id,
			"typ": self.type,
			"pocet_like": self.like_count,
			"pocet_reakcii": self.reaction_count,
			"pocet_done": self.done_count,
			"stav": self.state,
			"posledny_vysledok": self.last_result,
			"skupiny": list(self.groups),
			"etestCards": self.e_test_cards,
			"etestAnswerCards": self.e_test_answer_cards,
			"studyTopics": self.study_topics,
			"znamky_udalostid": self.grade_event_id,
			"students_hidden": self.students_hidden,
			"data": self.data,
			"stavhodnotetimelinePathd": self.evaluation_status,
			"skoncil": self.ended,
			"missingNextLesson": self.missing_next_lesson,
			"attachements": self.attachments,
			"autor_meno": self.author_name,
			"predmet_meno": self.lesson_name,
		}

	def __str__(self) -> str:
		due = f" - due {self.date_to}" if self.date_to else ""
		return f"{self.name} ({self.lesson_name}){due}"


@dataclass
class Timeline:
	"""Accumulated homework and feed history, keyed by id."""
	homeworks: Dict[str, HomeworkItem] = field(default_factory=dict)
	items: Dict[str, TimelineItem] = field(default_factory=dict)

	def merge(self, homeworks: Dict[str, HomeworkItem], items: Dict[str, TimelineItem]) -> None:
		"""Merge fetched records in place; a record with a known id replaces the old one."""
		self.homeworks.update(homeworks)
		self.items.update(items)

	def oldest_timestamp(self, default: datetime) -> datetime:
		"""Earliest item timestamp held, or the default when there are no items."""
		oldest = default
		for item in self.items.values():
			if item.timestamp < oldest:
				oldest = item.timestamp
		return oldest

	def sorted_items(self) -> List[TimelineItem]:
		"""Feed items newest first."""
		return sorted(self.items.values(), key=lambda item: item.timestamp, reverse=True)

	def homework_for(self, item: TimelineItem) -> Optional[HomeworkItem]:
		"""Homework a feed item refers to, if it is held."""
		if not item.other_id:
			return None
		return self.homeworks.get(item.other_id)

	@classmethod
	def from_json(cls, data: Dict[str, Any]) -> "Timeline":
		data = schemas.validate(schemas.TIMELINE_RESPONSE_SCHEMA, data, "timeline")
		return cls(
			homeworks={key: HomeworkItem.from_json(value) for key, value in (data["Homeworks"] or {}).items()},
			items={key: TimelineItem.from_json(value) for key, value in (data["Items"] or {}).items()},
		)

	def to_json(self) -> Dict[str, Any]:
		return {
			"Homeworks": {key: value.to_json() for key, value in self.homeworks.items()},
			"Items": {key: value.to_json() for key, value in self.items.items()},
		}

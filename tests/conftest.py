"""Shared fixtures and fakes for the portal client tests."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from epclient.auth import SessionManager
from epclient.client import ApiResponse
from epclient.models import Credentials
from epclient.storage import MemoryStore

PERIODS_PAYLOAD = {
	"1": {"id": "1", "starttime": "08:00", "endtime": "08:45", "name": "1", "short": "1"},
	"2": {"id": "2", "starttime": "08:50", "endtime": "09:35", "name": "2", "short": "2"},
	"3": {"id": "3", "starttime": "09:55", "endtime": "10:40", "name": "3", "short": "3"},
	"4": {"id": "4", "starttime": "10:50", "endtime": "11:35", "name": "4", "short": "4"},
	"5": {"id": "5", "starttime": "11:45", "endtime": "12:30", "name": "5", "short": "5"},
}


def raw_lesson(period: str, start: str, end: str, subject: Optional[str] = "Math", **extra: Any) -> Dict[str, Any]:
	"""Timetable record as the portal returns it."""
	data = {
		"type": "lesson",
		"date": "2024-01-08",
		"uniperiod": period,
		"starttime": start,
		"endtime": end,
		"subject": {"id": "s1", "name": subject, "short": subject[:1], "cbhidden": False} if subject else None,
		"classes": [{"id": "c1", "name": "1.A", "short": "1A"}],
		"groupnames": [""],
		"igroupid": "",
		"teachers": [{"id": "t1", "firstname": "Jana", "lastname": "Novak", "short": "NO"}],
		"classrooms": [{"id": "r1", "name": "Room 12", "short": "12"}],
		"studentids": ["100"],
		"colors": ["#ff0000"],
	}
	data.update(extra)
	return data


def raw_timeline_item(item_id: str, timestamp: str, **extra: Any) -> Dict[str, Any]:
	data = {
		"timelineid": item_id,
		"timestamp": timestamp,
		"reakcia_na": "",
		"typ": "homework",
		"user": "U1",
		"target_user": "",
		"user_meno": "Jana Novak",
		"ineid": "",
		"text": f"Item {item_id}",
		"cas_pridania": timestamp,
		"cas_udalosti": "0000-00-00 00:00:00",
		"data": {"nested": {"value": 1}},
		"vlastnik": "U1",
		"vlastnik_meno": "Jana Novak",
		"poct_reakcii": 0,
		"posledna_reakcia": "",
		"pomocny_zaznam": "",
		"removed": 0,
		"cas_pridania_btc": "",
		"cas_udalosti_btc": None,
	}
	data.update(extra)
	return data


def raw_homework(homework_id: str, **extra: Any) -> Dict[str, Any]:
	data = {
		"hwkid": homework_id,
		"homeworkid": f"hw{homework_id}",
		"name": f"Homework {homework_id}",
		"details": "Exercises 1-5",
		"dateto": "2024-01-10",
		"predmetid": 12,
		"period": {"start": "1"},
		"studyTopics": ["fractions"],
		"attachements": None,
		"skupiny": ["1A"],
		"predmet_meno": "Math",
	}
	data.update(extra)
	return data


def mock_http_session(status=200, body="", method="get"):
	"""aiohttp session whose get/post context manager yields a canned response.

	body may be a string, or an exception raised when the body is read.
	"""
	session = MagicMock()
	resp = MagicMock()
	resp.status = status
	if isinstance(body, Exception):
		resp.text = AsyncMock(side_effect=body)
	else:
		resp.text = AsyncMock(return_value=body)
	getattr(session, method).return_value.__aenter__.return_value = resp
	session.close = AsyncMock()
	return session


class FakeApi:
	"""Stand-in for EPApiClient that serves canned payloads by path.

	A canned value can be a payload, an ApiResponse, an exception to raise,
	or a list of those consumed one per call.
	"""

	def __init__(self, responses: Optional[Dict[str, Any]] = None, online: bool = True) -> None:
		self.responses = dict(responses or {})
		self.online = online
		self.calls: List[Dict[str, Any]] = []
		self.closed = False

	@property
	def paths(self) -> List[str]:
		return [call["path"] for call in self.calls]

	async def request(self, method, path, *, token=None, params=None, data=None, accept_statuses=(200,)):
		self.calls.append({"method": method, "path": path, "token": token, "params": params, "data": data})
		if path not in self.responses:
			raise AssertionError(f"Unexpected request to {path}")
		result = self.responses[path]
		if isinstance(result, list):
			result = result.pop(0)
		if isinstance(result, Exception):
			raise result
		if isinstance(result, ApiResponse):
			return result
		return ApiResponse(200, result)

	async def get_json(self, path, token=None, params=None):
		response = await self.request("GET", path, token=token, params=params)
		return response.data

	async def post_form(self, path, data):
		response = await self.request("POST", path, data=data)
		return response.data

	async def async_is_reachable(self):
		return self.online

	async def close(self):
		self.closed = True


@pytest.fixture
def store():
	return MemoryStore()


@pytest.fixture
def api():
	return FakeApi()


@pytest.fixture
def credentials():
	return Credentials(username="student", password="secret", server="school")


@pytest.fixture
def session(api, store, credentials):
	manager = SessionManager(api, store, credentials)
	manager.token = "tok"
	manager.name = "Student Name"
	return manager

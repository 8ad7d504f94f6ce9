#!/usr/bin/env python3
"""Tests for login, token validation and session persistence."""

import json

from conftest import FakeApi, mock_http_session
from epclient.auth import SessionManager
from epclient.client import ApiResponse, EPApiClient
from epclient.const import LOGIN_PATH, STORAGE_KEY_USER, VALIDATE_TOKEN_PATH, SessionState
from epclient.exceptions import EPAPIError, EPConnectionError
from epclient.models import Credentials


async def test_login_stores_token_and_persists_session(store, credentials):
	api = FakeApi({LOGIN_PATH: {"token": "abc", "name": "Jana Novak"}})
	session = SessionManager(api, store, credentials)

	assert await session.login() is True

	assert session.token == "abc"
	assert session.name == "Jana Novak"
	assert session.state == SessionState.AUTHENTICATED
	assert api.calls[0]["method"] == "POST"
	assert api.calls[0]["data"] == {"username": "student", "password": "secret", "server": "school"}
	assert json.loads(await store.get(STORAGE_KEY_USER)) == {
		"username": "student",
		"password": "secret",
		"server": "school",
		"token": "abc",
		"name": "Jana Novak",
	}


async def test_login_without_server_sends_empty_selector(store):
	api = FakeApi({LOGIN_PATH: {"token": "abc"}})
	session = SessionManager(api, store, Credentials("student", "secret"))

	assert await session.login() is True
	assert api.calls[0]["data"]["server"] == ""
	assert session.name == ""


async def test_failed_login_keeps_previous_token(session, store):
	session._api = FakeApi({LOGIN_PATH: EPAPIError("bad credentials", 400)})

	assert await session.login() is False
	assert session.token == "tok"
	assert await store.get(STORAGE_KEY_USER) is None


async def test_login_without_token_in_response_fails(store, credentials):
	session = SessionManager(FakeApi({LOGIN_PATH: {"name": "x"}}), store, credentials)

	assert await session.login() is False
	assert session.state == SessionState.UNAUTHENTICATED


async def test_empty_token_is_rejected_without_request(store, credentials):
	api = FakeApi()
	session = SessionManager(api, store, credentials)

	assert await session.validate() is False
	assert api.calls == []


async def test_accepted_token_is_valid(session):
	api = FakeApi({VALIDATE_TOKEN_PATH: {"success": True}})
	session._api = api

	assert await session.validate() is True
	assert api.calls[0]["token"] == "tok"
	assert session.authenticated is True


async def test_rejected_token_is_not_an_error(session):
	session._api = FakeApi({VALIDATE_TOKEN_PATH: ApiResponse(401, {"success": False})})

	assert await session.validate() is False
	assert session.state == SessionState.PENDING_LOGIN
	assert session.token == "tok"


async def test_non_boolean_success_is_invalid(session):
	session._api = FakeApi({VALIDATE_TOKEN_PATH: [{"success": "yes"}, None]})

	assert await session.validate() is False
	assert await session.validate() is False


async def test_unreachable_server_makes_token_invalid(session):
	session._api = FakeApi({VALIDATE_TOKEN_PATH: EPConnectionError("offline")})

	assert await session.validate() is False


async def test_successful_login_clears_pending_state(session):
	session._api = FakeApi({
		VALIDATE_TOKEN_PATH: ApiResponse(401, None),
		LOGIN_PATH: {"token": "fresh", "name": "Student Name"},
	})

	await session.validate()
	assert session.state == SessionState.PENDING_LOGIN

	assert await session.login() is True
	assert session.state == SessionState.AUTHENTICATED
	assert session.token == "fresh"


async def test_session_is_restored_from_cache(store, credentials):
	first = SessionManager(FakeApi({LOGIN_PATH: {"token": "abc", "name": "Jana"}}), store, credentials)
	await first.login()

	restored = await SessionManager.load_from_cache(FakeApi(), store)

	assert restored is not None
	assert restored.credentials == credentials
	assert restored.token == "abc"
	assert restored.name == "Jana"


async def test_missing_or_corrupt_cache_gives_no_session(store):
	assert await SessionManager.load_from_cache(FakeApi(), store) is None

	await store.set(STORAGE_KEY_USER, json.dumps({"token": "abc"}))
	assert await SessionManager.load_from_cache(FakeApi(), store) is None

	await store.set(STORAGE_KEY_USER, "not json")
	assert await SessionManager.load_from_cache(FakeApi(), store) is None


async def test_disabled_cache_is_not_written(store, credentials):
	session = SessionManager(FakeApi({LOGIN_PATH: {"token": "abc"}}), store, credentials, use_cache=False)

	assert await session.login() is True
	assert await store.contains(STORAGE_KEY_USER) is False


async def test_undecodable_login_response_fails_without_raising(store, credentials):
	body = UnicodeDecodeError("utf-8", b'{"token":"\xff\xfe"}', 10, 11, "invalid start byte")
	api = EPApiClient(session=mock_http_session(body=body, method="post"))
	session = SessionManager(api, store, credentials)

	assert await session.login() is False
	assert session.token == ""


async def test_undecodable_validation_response_is_invalid(session):
	body = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
	session._api = EPApiClient(session=mock_http_session(body=body))

	assert await session.validate() is False
	assert session.state == SessionState.PENDING_LOGIN

"""Session handling for the EduPage portal proxy."""

import json
import logging
from typing import Any, Dict, Optional

from . import schemas
from .client import EPApiClient
from .const import LOGIN_PATH, STORAGE_KEY_USER, VALIDATE_TOKEN_PATH, SessionState
from .exceptions import EPDataError, EPError
from .models import Credentials
from .storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)


class SessionManager:
	"""Owns the credentials and bearer token of the signed-in user."""

	def __init__(
		self,
		api: EPApiClient,
		store: KeyValueStore,
		credentials: Credentials,
		use_cache: bool = True,
	) -> None:
		self._api = api
		self._store = store
		self._use_cache = use_cache
		self.credentials = credentials
		self.token = ""
		self.name = ""
		self._validation_failed = False

	@property
	def state(self) -> SessionState:
		if not self.token:
			return SessionState.UNAUTHENTICATED
		if self._validation_failed:
			return SessionState.PENDING_LOGIN
		return SessionState.AUTHENTICATED

	@property
	def authenticated(self) -> bool:
		return self.state == SessionState.AUTHENTICATED

	async def login(self) -> bool:
		"""Log in with the stored credentials.

		Returns:
			True if a token was obtained. Failures never raise; the previous
			token is kept.
		"""
		form = {
			"username": self.credentials.username,
			"password": self.credentials.password,
			"server": self.credentials.server or "",
		}
		try:
			data = await self._api.post_form(LOGIN_PATH, form)
			data = schemas.validate(schemas.LOGIN_RESPONSE_SCHEMA, data, "login response")
		except EPError as e:
			_LOGGER.warning(f"Login failed for {self.credentials.username}: {e}")
			return False

		self.token = data["token"]
		self.name = data["name"]
		self._validation_failed = False
		_LOGGER.info(f"Logged in as {self.name or self.credentials.username}")

		await self.save_to_cache()
		return True

	async def validate(self) -> bool:
		"""Check that the current token is still accepted.

		A 401 answer is an expected "no", not an error. An empty token is
		rejected without a request.
		"""
		if not self.token:
			return False
		try:
			response = await self._api.request(
				"GET",
				VALIDATE_TOKEN_PATH,
				token=self.token,
				accept_statuses=(200, 401),
			)
		except EPError as e:
			_LOGGER.warning(f"Token validation failed: {e}")
			self._validation_failed = True
			return False

		data = response.data
		valid = isinstance(data, dict) and data.get("success") is True
		if not valid:
			_LOGGER.debug(f"Token rejected (HTTP {response.status})")
		self._validation_failed = not valid
		return valid

	def to_json(self) -> Dict[str, Any]:
		return {
			"username": self.credentials.username,
			"password": self.credentials.password,
			"server": self.credentials.server,
			"token": self.token,
			"name": self.name,
		}

	async def save_to_cache(self) -> None:
		"""Persist the session, password included."""
		if not self._use_cache:
			return
		await self._store.set(STORAGE_KEY_USER, json.dumps(self.to_json()))

	@classmethod
	async def load_from_cache(
		cls,
		api: EPApiClient,
		store: KeyValueStore,
		use_cache: bool = True,
	) -> Optional["SessionManager"]:
		"""Restore a session saved by a previous login, if there is one."""
		raw = await store.get(STORAGE_KEY_USER)
		if raw is None:
			return None
		try:
			data = schemas.validate(schemas.SESSION_SCHEMA, json.loads(raw), "cached session")
		except (ValueError, EPDataError) as e:
			_LOGGER.warning(f"Ignoring unreadable cached session: {e}")
			return None

		session = cls(
			api,
			store,
			Credentials(
				username=data["username"],
				password=data["password"],
				server=data["server"],
			),
			use_cache=use_cache,
		)
		session.token = data["token"]
		session.name = data["name"]
		_LOGGER.debug(f"Restored cached session for {session.credentials.username}")
		return session

"""HTTP client for the EduPage portal proxy API."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import aiohttp

from .const import DEFAULT_ENDPOINT, DEFAULT_HEADERS
from .exceptions import EPAPIError, EPAuthError, EPConnectionError, EPDataError

_LOGGER = logging.getLogger(__name__)

REACHABILITY_TIMEOUT = aiohttp.ClientTimeout(total=5)


@dataclass(frozen=True)
class ApiResponse:
	"""Status and decoded JSON body of an accepted response."""
	status: int
	data: Any


class EPApiClient:
	"""Client for the portal proxy REST API."""

	def __init__(
		self,
		base_url: str = DEFAULT_ENDPOINT,
		session: Optional[aiohttp.ClientSession] = None,
		timeout: Optional[aiohttp.ClientTimeout] = None,
	):
		"""Initialise the API client.

		Args:
			base_url: Root URL of the portal proxy
			session: Optional aiohttp session. If None, one is created on first use.
			timeout: Optional request timeout; aiohttp's default applies otherwise
		"""
		self._base_url = base_url.rstrip("/")
		self._session = session
		self._own_session = session is None
		self._timeout = timeout

	async def __aenter__(self):
		"""Async context manager entry."""
		self._ensure_session()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		"""Async context manager exit."""
		await self.close()

	@property
	def base_url(self) -> str:
		return self._base_url

	async def close(self) -> None:
		"""Close the session if this client created it."""
		if self._own_session and self._session is not None:
			await self._session.close()
			self._session = None

	def _ensure_session(self) -> aiohttp.ClientSession:
		if self._session is None:
			self._session = aiohttp.ClientSession(timeout=self._timeout) if self._timeout else aiohttp.ClientSession()
			self._own_session = True
		return self._session

	def _headers(self, token: Optional[str]) -> Dict[str, str]:
		headers = DEFAULT_HEADERS.copy()
		if token:
			headers["Authorization"] = f"Bearer {token}"
		return headers

	async def request(
		self,
		method: str,
		path: str,
		*,
		token: Optional[str] = None,
		params: Optional[Dict[str, str]] = None,
		data: Optional[Dict[str, str]] = None,
		accept_statuses: Iterable[int] = (200,),
	) -> ApiResponse:
		"""Perform a request and decode its JSON body.

		Args:
			method: "GET" or "POST"
			path: Endpoint path relative to the base URL
			token: Bearer token, sent as an Authorization header when given
			params: Query parameters
			data: Form fields, sent url-encoded
			accept_statuses: Statuses treated as a valid answer rather than an error

		Returns:
			ApiResponse with the status and decoded body (None for an empty body)

		Raises:
			EPConnectionError: transport failure or timeout
			EPAuthError: 401/403 that was not explicitly accepted
			EPAPIError: any other status that was not accepted
			EPDataError: the body is not valid text or not valid JSON
		"""
		session = self._ensure_session()
		url = f"{self._base_url}{path}"
		headers = self._headers(token)
		accepted = tuple(accept_statuses)

		_LOGGER.debug(f"{method} {url} params={params}")

		try:
			if method == "GET":
				ctx = session.get(url, headers=headers, params=params)
			elif method == "POST":
				ctx = session.post(url, headers=headers, data=data)
			else:
				raise ValueError(f"Unsupported method: {method}")

			async with ctx as resp:
				status = resp.status
				if status not in accepted:
					if status in (401, 403):
						_LOGGER.warning(f"Authentication rejected for {path} (HTTP {status})")
						raise EPAuthError(f"Authentication rejected for {path}: HTTP {status}", status)
					_LOGGER.warning(f"Unexpected response for {path}: HTTP {status}")
					raise EPAPIError(f"Request to {path} failed: HTTP {status}", status)
				text = await resp.text()
		except aiohttp.ClientError as e:
			raise EPConnectionError(f"Connection error: {e}") from e
		except asyncio.TimeoutError as e:
			raise EPConnectionError(f"Request to {path} timed out") from e
		except UnicodeDecodeError as e:
			_LOGGER.error(f"Response from {path} is not valid text: {e}")
			raise EPDataError(f"Undecodable response from {path}") from e

		if not text or not text.strip():
			return ApiResponse(status, None)
		try:
			payload = json.loads(text)
		except json.JSONDecodeError as e:
			_LOGGER.error(f"Response from {path} is not JSON: {text[:200]}...")
			raise EPDataError(f"Invalid JSON response from {path}") from e
		return ApiResponse(status, payload)

	async def get_json(
		self,
		path: str,
		token: Optional[str] = None,
		params: Optional[Dict[str, str]] = None,
	) -> Any:
		"""GET an endpoint and return its decoded JSON body."""
		response = await self.request("GET", path, token=token, params=params)
		return response.data

	async def post_form(self, path: str, data: Dict[str, str]) -> Any:
		"""POST url-encoded form fields and return the decoded JSON body."""
		response = await self.request("POST", path, data=data)
		return response.data

	async def async_is_reachable(self) -> bool:
		"""Check whether the portal proxy answers at all."""
		session = self._ensure_session()
		try:
			async with session.get(self._base_url, timeout=REACHABILITY_TIMEOUT) as resp:
				_LOGGER.debug(f"Connectivity probe: HTTP {resp.status}")
				return True
		except (aiohttp.ClientError, asyncio.TimeoutError) as e:
			_LOGGER.debug(f"Connectivity probe failed: {e}")
			return False

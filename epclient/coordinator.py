"""Startup and background refresh of the portal data layer."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .auth import SessionManager
from .client import EPApiClient
from .const import InitStatus
from .exceptions import EPError
from .models import Credentials
from .storage import KeyValueStore
from .timeline import TimelineSync
from .timetable import ScheduleCache

_LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[InitStatus], None]
ConnectivityProbe = Callable[[], Awaitable[bool]]


class EPCoordinator:
	"""Owns the session, schedule cache and timeline of one signed-in user.

	Create one at startup and pass it (or its components) to whatever needs
	portal data. While a quickstart background refresh runs, reads return
	whatever is cached at that moment; writes from either side win in the
	order they happen.
	"""

	def __init__(
		self,
		api: EPApiClient,
		store: KeyValueStore,
		use_cache: bool = True,
		connectivity: Optional[ConnectivityProbe] = None,
	) -> None:
		"""Initialise coordinator.

		Args:
			api: Client used for every request
			store: Where the session, timetable and timeline are cached
			use_cache: Whether to read and write the store at all
			connectivity: Async probe returning False when offline. Defaults to
				pinging the portal.
		"""
		self.api = api
		self.store = store
		self.use_cache = use_cache
		self._connectivity = connectivity or api.async_is_reachable
		self.session: Optional[SessionManager] = None
		self.timetable: Optional[ScheduleCache] = None
		self.timeline: Optional[TimelineSync] = None
		self._background_task: Optional[asyncio.Task] = None

	@property
	def background_running(self) -> bool:
		return self._background_task is not None and not self._background_task.done()

	async def async_init(
		self,
		username: str,
		password: str,
		server: Optional[str] = None,
		quickstart: bool = True,
		on_progress: Optional[ProgressCallback] = None,
	) -> bool:
		"""Load cached state and bring it up to date.

		With quickstart the network work runs in the background after this
		returns; without it, everything is fetched before returning.

		Args:
			username: Portal username
			password: Portal password
			server: Optional school server selector
			quickstart: Return right after loading the cache
			on_progress: Called with each InitStatus as startup proceeds

		Returns:
			False only when a blocking login was needed and failed
		"""
		def report(status: InitStatus) -> None:
			if on_progress is not None:
				on_progress(status)

		report(InitStatus.LOADING_CREDENTIALS)
		online = await self._connectivity()
		_LOGGER.debug(f"Starting up (online={online}, quickstart={quickstart})")

		session = None
		if self.use_cache:
			session = await SessionManager.load_from_cache(self.api, self.store, self.use_cache)
		self.session = session or SessionManager(
			self.api,
			self.store,
			Credentials(username=username, password=password, server=server),
			use_cache=self.use_cache,
		)

		if online and not quickstart:
			if not await self.session.validate():
				report(InitStatus.LOGGING_IN)
				if not await self.session.login():
					return False
		report(InitStatus.LOGGED_IN)

		timeline = None
		if self.use_cache:
			timeline = await TimelineSync.load_from_cache(self.api, self.session, self.store, self.use_cache)
		self.timeline = timeline or TimelineSync(self.api, self.session, self.store, use_cache=self.use_cache)

		if online and not quickstart:
			report(InitStatus.DOWNLOADING_MESSAGES)
			await self.timeline.refresh_recent()

		timetable = None
		if self.use_cache:
			timetable = await ScheduleCache.load_from_cache(self.api, self.session, self.store, self.use_cache)
		self.timetable = timetable or ScheduleCache(self.api, self.session, self.store, use_cache=self.use_cache)

		if online and not quickstart:
			report(InitStatus.DOWNLOADING_TIMETABLE)
			await self.timetable.get_recent()

		if online and quickstart:
			self._background_task = asyncio.create_task(self._refresh_in_background())

		return True

	async def _refresh_in_background(self) -> None:
		"""Re-login if needed, then refresh the timeline and recent timetable."""
		try:
			if not await self.session.validate():
				await self.session.login()
			await self.timeline.refresh_recent()
			await self.timetable.get_recent()
			_LOGGER.debug("Background refresh finished")
		except EPError as e:
			# Nobody awaits this task; cached data stays in use
			_LOGGER.warning(f"Background refresh failed: {e}")

	async def async_wait_background(self) -> None:
		"""Wait for a running background refresh to finish."""
		task = self._background_task
		if task is not None:
			await task

	async def close(self) -> None:
		"""Stop background work and release the HTTP session."""
		task = self._background_task
		if task is not None and not task.done():
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass
		self._background_task = None
		await self.api.close()

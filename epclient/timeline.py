"""Incremental sync of the homework and activity feed."""

import json
import logging
from typing import Optional

from .auth import SessionManager
from .client import EPApiClient
from .const import STORAGE_KEY_TIMELINE, TIMELINE_PAGE_WINDOW, TIMELINE_PATH, TIMELINE_RECENT_PATH
from .exceptions import EPDataError
from .models import Timeline
from .storage import KeyValueStore
from .utils import now

_LOGGER = logging.getLogger(__name__)


class TimelineSync:
	"""Keeps a local Timeline in step with the portal."""

	def __init__(
		self,
		api: EPApiClient,
		session: SessionManager,
		store: KeyValueStore,
		timeline: Optional[Timeline] = None,
		use_cache: bool = True,
	) -> None:
		self._api = api
		self._session = session
		self._store = store
		self._use_cache = use_cache
		self.timeline = timeline if timeline is not None else Timeline()

	async def refresh_recent(self) -> None:
		"""Merge the most recent homeworks and feed items."""
		data = await self._api.get_json(TIMELINE_RECENT_PATH, token=self._session.token)
		fetched = Timeline.from_json(data)
		self.timeline.merge(fetched.homeworks, fetched.items)
		_LOGGER.debug(f"Merged {len(fetched.homeworks)} homeworks and {len(fetched.items)} items from recent timeline")
		await self.save_to_cache()

	async def load_older(self) -> None:
		"""Page backwards: fetch the window that ends at the oldest item held."""
		oldest = self.timeline.oldest_timestamp(default=now())
		params = {
			"from": (oldest - TIMELINE_PAGE_WINDOW).isoformat(),
			"to": oldest.isoformat(),
		}
		data = await self._api.get_json(TIMELINE_PATH, token=self._session.token, params=params)
		fetched = Timeline.from_json(data)
		self.timeline.merge(fetched.homeworks, fetched.items)
		_LOGGER.debug(f"Merged {len(fetched.homeworks)} homeworks and {len(fetched.items)} items older than {oldest}")
		await self.save_to_cache()

	async def save_to_cache(self) -> None:
		if not self._use_cache:
			return
		await self._store.set(STORAGE_KEY_TIMELINE, json.dumps(self.timeline.to_json()))

	@classmethod
	async def load_from_cache(
		cls,
		api: EPApiClient,
		session: SessionManager,
		store: KeyValueStore,
		use_cache: bool = True,
	) -> Optional["TimelineSync"]:
		"""Restore the timeline saved by a previous run, if there is one."""
		raw = await store.get(STORAGE_KEY_TIMELINE)
		if raw is None:
			return None
		try:
			timeline = Timeline.from_json(json.loads(raw))
		except (ValueError, EPDataError) as e:
			_LOGGER.warning(f"Ignoring unreadable cached timeline: {e}")
			return None
		_LOGGER.debug(f"Restored {len(timeline.homeworks)} homeworks and {len(timeline.items)} items")
		return cls(api, session, store, timeline=timeline, use_cache=use_cache)

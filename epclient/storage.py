"""Persistent key-value storage for cached portal data."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

_LOGGER = logging.getLogger(__name__)

StoredValue = Union[str, bool]


class KeyValueStore:
	"""String key to string value store, plus boolean flags.

	Subclasses provide _async_read/_async_write; the in-memory view is shared.
	"""

	def __init__(self) -> None:
		self._data: Optional[Dict[str, StoredValue]] = None

	async def _async_read(self) -> Dict[str, StoredValue]:
		return {}

	async def _async_write(self, data: Dict[str, StoredValue]) -> None:
		return None

	async def async_load(self) -> Dict[str, StoredValue]:
		"""Load data once and cache it."""
		if self._data is None:
			self._data = await self._async_read()
		return self._data

	async def get(self, key: str) -> Optional[str]:
		data = await self.async_load()
		value = data.get(key)
		return value if isinstance(value, str) else None

	async def set(self, key: str, value: str) -> None:
		data = await self.async_load()
		data[key] = value
		await self._async_write(dict(data))

	async def contains(self, key: str) -> bool:
		data = await self.async_load()
		return key in data

	async def get_bool(self, key: str, default: bool = False) -> bool:
		data = await self.async_load()
		value = data.get(key)
		return value if isinstance(value, bool) else default

	async def set_bool(self, key: str, value: bool) -> None:
		data = await self.async_load()
		data[key] = bool(value)
		await self._async_write(dict(data))


class MemoryStore(KeyValueStore):
	"""Store that lives only as long as the process."""

	def __init__(self, initial: Optional[Dict[str, StoredValue]] = None) -> None:
		super().__init__()
		self._data = dict(initial or {})


class JsonFileStore(KeyValueStore):
	"""Store persisted as a single JSON document on disk.

	- File IO runs in a worker thread so it never blocks the event loop.
	- Writes are serialised with a lock and replace the file atomically.
	- A missing or unreadable file starts an empty store.
	"""

	def __init__(self, path: Union[str, Path]) -> None:
		super().__init__()
		self._path = Path(path).expanduser()
		self._lock = asyncio.Lock()

	@property
	def path(self) -> Path:
		return self._path

	async def _async_read(self) -> Dict[str, StoredValue]:
		def _read() -> Dict[str, StoredValue]:
			if not self._path.exists():
				return {}
			with open(self._path, "r", encoding="utf-8") as f:
				return json.load(f)

		try:
			data = await asyncio.to_thread(_read)
		except (OSError, ValueError) as e:
			_LOGGER.warning(f"Could not load cache file {self._path}: {e}")
			return {}
		if not isinstance(data, dict):
			_LOGGER.warning(f"Ignoring cache file {self._path}: not a JSON object")
			return {}
		_LOGGER.debug(f"Loaded {len(data)} cache entries from {self._path}")
		return data

	async def _async_write(self, data: Dict[str, StoredValue]) -> None:
		def _write() -> None:
			self._path.parent.mkdir(parents=True, exist_ok=True)
			tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
			with open(tmp_path, "w", encoding="utf-8") as f:
				json.dump(data, f)
			tmp_path.replace(self._path)

		async with self._lock:
			try:
				await asyncio.to_thread(_write)
			except OSError as e:
				# The in-memory copy stays authoritative; the next write retries
				_LOGGER.error(f"Failed to save cache file {self._path}: {e}")

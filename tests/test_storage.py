#!/usr/bin/env python3
"""Tests for the key-value stores."""

from epclient.storage import JsonFileStore, MemoryStore


async def test_memory_store_values_and_flags():
	store = MemoryStore({"user": "{}"})

	assert await store.get("user") == "{}"
	assert await store.get("missing") is None
	assert await store.contains("user") is True
	assert await store.get_bool("demo") is False
	assert await store.get_bool("demo", default=True) is True

	await store.set_bool("demo", True)
	await store.set("timeline", "[]")

	assert await store.get_bool("demo") is True
	assert await store.get("demo") is None
	assert await store.get("timeline") == "[]"


async def test_json_file_store_persists_across_instances(tmp_path):
	path = tmp_path / "nested" / "cache.json"
	store = JsonFileStore(path)

	await store.set("timetable", '{"timetables": {}}')
	await store.set_bool("demo", True)

	reopened = JsonFileStore(path)
	assert await reopened.get("timetable") == '{"timetables": {}}'
	assert await reopened.get_bool("demo") is True
	assert not path.with_suffix(".json.tmp").exists()


async def test_corrupt_cache_file_starts_empty(tmp_path):
	path = tmp_path / "cache.json"
	path.write_text("{broken")

	store = JsonFileStore(path)

	assert await store.contains("user") is False
	await store.set("user", "x")
	assert await JsonFileStore(path).get("user") == "x"


async def test_non_object_cache_file_starts_empty(tmp_path):
	path = tmp_path / "cache.json"
	path.write_text("[1, 2]")

	assert await JsonFileStore(path).async_load() == {}

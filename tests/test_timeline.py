#!/usr/bin/env python3
"""Tests for timeline sync and merging."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from conftest import FakeApi, raw_homework, raw_timeline_item
from epclient.const import STORAGE_KEY_TIMELINE, TIMELINE_PATH, TIMELINE_RECENT_PATH
from epclient.exceptions import EPConnectionError, EPDataError
from epclient.models import Timeline
from epclient.timeline import TimelineSync

RECENT = {
	"Homeworks": {"h1": raw_homework("h1"), "h2": raw_homework("h2", name="Essay")},
	"Items": {
		"10": raw_timeline_item("10", "2024-01-08T10:00:00+00:00", ineid="h1"),
		"11": raw_timeline_item("11", "2024-01-09T07:30:00+00:00", removed=1),
	},
}


def make_sync(session, store, responses):
	api = FakeApi(responses)
	return api, TimelineSync(api, session, store)


async def test_recent_timeline_is_merged_and_persisted(session, store):
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: RECENT})

	await sync.refresh_recent()

	timeline = sync.timeline
	assert sorted(timeline.homeworks) == ["h1", "h2"]
	assert sorted(timeline.items) == ["10", "11"]
	assert api.calls[0]["token"] == "tok"
	assert timeline.items["11"].is_removed is True
	assert [item.id for item in timeline.sorted_items()] == ["11", "10"]
	assert timeline.homework_for(timeline.items["10"]).name == "Homework h1"
	assert timeline.homework_for(timeline.items["11"]) is None

	saved = json.loads(await store.get(STORAGE_KEY_TIMELINE))
	assert sorted(saved["Homeworks"]) == ["h1", "h2"]
	assert sorted(saved["Items"]) == ["10", "11"]


async def test_merging_same_payload_twice_is_idempotent(session, store):
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: [RECENT, RECENT]})

	await sync.refresh_recent()
	first = (dict(sync.timeline.homeworks), dict(sync.timeline.items))
	await sync.refresh_recent()

	assert (sync.timeline.homeworks, sync.timeline.items) == first


async def test_newer_fetch_replaces_record_with_same_id(session, store):
	updated = {"Homeworks": [], "Items": {"10": raw_timeline_item("10", "2024-01-08T10:00:00+00:00", text="Edited")}}
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: [RECENT, updated]})

	await sync.refresh_recent()
	await sync.refresh_recent()

	assert sync.timeline.items["10"].text == "Edited"
	assert sorted(sync.timeline.items) == ["10", "11"]
	assert sorted(sync.timeline.homeworks) == ["h1", "h2"]


async def test_older_page_ends_at_oldest_item(session, store):
	older = {"Items": {"5": raw_timeline_item("5", "2023-12-30T09:00:00+00:00")}}
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: RECENT, TIMELINE_PATH: older})
	await sync.refresh_recent()

	await sync.load_older()

	assert api.calls[1]["params"] == {
		"from": "2023-12-25T10:00:00+00:00",
		"to": "2024-01-08T10:00:00+00:00",
	}
	assert sorted(sync.timeline.items) == ["10", "11", "5"]


async def test_older_page_of_empty_timeline_ends_now(session, store):
	fixed_now = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)
	api, sync = make_sync(session, store, {TIMELINE_PATH: {"Homeworks": [], "Items": []}})

	with patch("epclient.timeline.now", return_value=fixed_now):
		await sync.load_older()

	assert api.calls[0]["params"] == {
		"from": (fixed_now - timedelta(days=14)).isoformat(),
		"to": fixed_now.isoformat(),
	}
	assert sync.timeline.items == {}


async def test_failed_fetch_leaves_timeline_untouched(session, store):
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: [RECENT, EPConnectionError("offline")]})
	await sync.refresh_recent()

	with pytest.raises(EPConnectionError):
		await sync.refresh_recent()
	assert sorted(sync.timeline.items) == ["10", "11"]


async def test_malformed_item_fails_closed(session, store):
	bad = {"Items": {"1": {"timelineid": "1", "timestamp": "yesterday"}}}
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: bad})

	with pytest.raises(EPDataError):
		await sync.refresh_recent()
	assert sync.timeline.items == {}


def test_opaque_fields_pass_through():
	timeline = Timeline.from_json(RECENT)

	homework = timeline.homeworks["h1"]
	assert homework.period == {"start": "1"}
	assert homework.study_topics == ["fractions"]
	assert homework.lesson_id == 12
	item = timeline.items["10"]
	assert item.data == {"nested": {"value": 1}}
	assert item.time_event is None
	assert item.time_added == item.timestamp

	again = Timeline.from_json(timeline.to_json())
	assert again == timeline


async def test_timeline_survives_a_restart(session, store):
	api, sync = make_sync(session, store, {TIMELINE_RECENT_PATH: RECENT})
	await sync.refresh_recent()

	restored = await TimelineSync.load_from_cache(FakeApi(), session, store)

	assert restored is not None
	assert restored.timeline == sync.timeline


async def test_unreadable_cached_timeline_is_ignored(session, store):
	await store.set(STORAGE_KEY_TIMELINE, json.dumps({"Items": {"1": {"timestamp": "x"}}}))

	assert await TimelineSync.load_from_cache(FakeApi(), session, store) is None

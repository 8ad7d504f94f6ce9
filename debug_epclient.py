#!/usr/bin/env python3
"""
EduPage portal debug script

Logs in, checks the token and prints the period table, today's timetable and
the recent timeline, with debug logging of every request.

Usage:
	python3 debug_epclient.py

Credentials are read from a .env file or the environment. If they are missing
you'll be prompted for them.

Create a .env file with:
	EP_USERNAME=your_username
	EP_PASSWORD=your_password_here
	EP_SERVER=optional_school_server
"""

import asyncio
import getpass
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from epclient.client import EPApiClient
from epclient.config import load_config
from epclient.const import InitStatus
from epclient.coordinator import EPCoordinator
from epclient.exceptions import EPConfigError, EPError
from epclient.storage import JsonFileStore

logging.basicConfig(
	level=logging.DEBUG,
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def print_progress(status: InitStatus) -> None:
	print(f"   ... {status.value}")


async def debug_portal(config: dict) -> bool:
	"""Run through the main data flows and print what comes back."""
	print("🔍 Debugging portal data layer")
	print("=" * 50)

	async with EPApiClient(config["EP_ENDPOINT"]) as api:
		store = JsonFileStore(config["EP_CACHE_FILE"])
		coordinator = EPCoordinator(api, store, use_cache=config["EP_USE_CACHE"])

		print("\n1️⃣ Starting up...")
		ok = await coordinator.async_init(
			config["EP_USERNAME"],
			config["EP_PASSWORD"],
			server=config["EP_SERVER"],
			quickstart=config["EP_QUICKSTART"],
			on_progress=print_progress,
		)
		if not ok:
			print("   ❌ Login failed!")
			return False
		await coordinator.async_wait_background()
		print(f"   ✅ Signed in as {coordinator.session.name or coordinator.session.credentials.username}")

		print("\n2️⃣ Validating token...")
		print(f"   Token valid: {await coordinator.session.validate()}")

		try:
			print("\n3️⃣ Periods:")
			for period in await coordinator.timetable.get_periods(coordinator.session.token):
				print(f"   {period}")

			print("\n4️⃣ Today's timetable:")
			today = await coordinator.timetable.today()
			if not today.lessons:
				print("   (no lessons)")
			for lesson in today.lessons:
				span = f"{lesson.start_period.id}-{lesson.end_period.id}"
				print(f"   [{span}] {lesson}")

			print("\n5️⃣ Recent timeline:")
			await coordinator.timeline.refresh_recent()
			for item in coordinator.timeline.timeline.sorted_items()[:10]:
				print(f"   {item}")
			print(f"   {len(coordinator.timeline.timeline.homeworks)} homeworks held")
		except EPError as e:
			print(f"   ❌ Request failed: {e}")
			return False
		finally:
			await coordinator.close()

	return True


def main() -> None:
	load_dotenv(Path(__file__).parent / ".env")

	if not os.environ.get("EP_USERNAME"):
		os.environ["EP_USERNAME"] = input("Username: ")
	if not os.environ.get("EP_PASSWORD"):
		os.environ["EP_PASSWORD"] = getpass.getpass("Password: ")

	try:
		config = load_config()
	except EPConfigError as e:
		print(f"❌ {e}")
		sys.exit(1)

	success = asyncio.run(debug_portal(config))
	sys.exit(0 if success else 1)


if __name__ == "__main__":
	main()

"""Configuration loaded from the environment or a .env file."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import voluptuous as vol
from dotenv import dotenv_values

from .const import (
	CONF_CACHE_FILE,
	CONF_ENDPOINT,
	CONF_PASSWORD,
	CONF_QUICKSTART,
	CONF_SERVER,
	CONF_USE_CACHE,
	CONF_USERNAME,
	DEFAULT_CACHE_FILE,
	DEFAULT_ENDPOINT,
)
from .exceptions import EPConfigError

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = vol.Schema(
	{
		vol.Required(CONF_USERNAME): vol.All(str, vol.Length(min=1)),
		vol.Required(CONF_PASSWORD): vol.All(str, vol.Length(min=1)),
		vol.Optional(CONF_SERVER, default=None): vol.Any(None, str),
		vol.Optional(CONF_ENDPOINT, default=DEFAULT_ENDPOINT): vol.Url(),
		vol.Optional(CONF_USE_CACHE, default=True): vol.Boolean(),
		vol.Optional(CONF_QUICKSTART, default=False): vol.Boolean(),
		vol.Optional(CONF_CACHE_FILE, default=DEFAULT_CACHE_FILE): str,
	},
	extra=vol.REMOVE_EXTRA,
)


def load_config(env_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
	"""Read and validate the client configuration.

	Values from the process environment override those in the .env file.

	Args:
		env_file: Path of a .env file; the current directory's .env when None

	Returns:
		Validated configuration keyed by the EP_* names

	Raises:
		EPConfigError: a required value is missing or a value is invalid
	"""
	path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
	values: Dict[str, Any] = {}
	if path.exists():
		values.update({key: value for key, value in dotenv_values(path).items() if value is not None})
		_LOGGER.debug(f"Loaded configuration from {path}")
	values.update({key: value for key, value in os.environ.items() if key.startswith("EP_")})

	# An empty server in .env means "no server selector"
	if values.get(CONF_SERVER) == "":
		values[CONF_SERVER] = None

	try:
		return CONFIG_SCHEMA(values)
	except vol.Invalid as err:
		raise EPConfigError(f"Invalid configuration: {err}") from err

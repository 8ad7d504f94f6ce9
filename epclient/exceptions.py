"""Custom exceptions for the EduPage portal client."""


class EPError(Exception):
	"""Base exception for portal client errors."""
	pass


class EPConnectionError(EPError):
	"""Connection to the portal failed."""
	pass


class EPAPIError(EPError):
	"""API request returned an unexpected status."""

	def __init__(self, message: str, status: int = 0) -> None:
		super().__init__(message)
		self.status = status


class EPAuthError(EPAPIError):
	"""Credentials or bearer token were rejected."""
	pass


class EPDataError(EPError):
	"""Data parsing or validation error."""
	pass


class EPConfigError(EPError):
	"""Configuration is missing or invalid."""
	pass

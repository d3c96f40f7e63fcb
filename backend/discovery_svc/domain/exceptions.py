"""Custom exceptions for the discovery domain."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class DiscoveryError(Exception):
	"""Base class for discovery related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "discovery_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(DiscoveryError):
	"""Bad input caught before any storage mutation is attempted."""

	status_code = _HTTP_422
	detail = "validation_error"

	def __init__(self, detail: str | None = None, *, field: str | None = None) -> None:
		super().__init__(detail)
		self.field = field


class NotFoundError(DiscoveryError):
	"""Raised when a presence or broadcast row is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class StorageError(DiscoveryError):
	"""Persistence layer failure; always propagated to the caller."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "storage_error"


class SearchUnavailableError(DiscoveryError):
	"""Semantic search collaborator failed; only ever handled inside the adapter."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "search_unavailable"

	def __init__(self, detail: str | None = None, *, reason: str = "error") -> None:
		super().__init__(detail)
		self.reason = reason

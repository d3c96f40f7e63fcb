"""Offset pagination helpers shared by presence listings and search results."""

from __future__ import annotations

from dataclasses import dataclass

from discovery_svc.domain.exceptions import ValidationError


@dataclass(slots=True, frozen=True)
class PageMeta:
	total: int
	limit: int
	offset: int
	has_more: bool
	total_pages: int

	def to_dict(self) -> dict[str, int | bool]:
		return {
			"total": self.total,
			"limit": self.limit,
			"offset": self.offset,
			"has_more": self.has_more,
			"total_pages": self.total_pages,
		}


def normalize_page(limit: int, offset: int, *, default: int, maximum: int) -> tuple[int, int]:
	"""Reject negative values; map a zero limit to the default and clamp to the maximum."""
	if limit < 0:
		raise ValidationError("limit must be non-negative", field="limit")
	if offset < 0:
		raise ValidationError("offset must be non-negative", field="offset")
	if limit == 0:
		limit = default
	return min(limit, maximum), offset


def page_meta(total: int, limit: int, offset: int) -> PageMeta:
	total_pages = (total + limit - 1) // limit if limit > 0 else 0
	return PageMeta(
		total=total,
		limit=limit,
		offset=offset,
		has_more=offset + limit < total,
		total_pages=total_pages,
	)

"""Translate search query parameters into a Mongo filter, sort and page window.

Every supplied, non-empty filter is ANDed into the query. Blank values and the
UI's "Any ..." select-box placeholders impose no constraint, and so does an unknown
storey label.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .models import ACTIVE

SEARCH_FIELDS = ("title", "description", "builderName")

# query param -> document field, exact match
EXACT_FILTERS = {
    "lotSize": "lotSize",
    "orientation": "orientation",
    "siteType": "siteType",
    "foundationType": "foundationType",
    "councilArea": "councilArea",
    "planType": "planType",
    "houseType": "houseType",
    "roadPosition": "roadPosition",
    "builderName": "builderName",
    "constructionType": "constructionType",
}

STOREY_LABELS: dict[str, Any] = {
    "single storey": 1,
    "two storey": 2,
    "double storey": 2,
    "three+ storey": {"$gte": 3},
}

SORTABLE_FIELDS = ("createdAt", "updatedAt", "downloadCount", "storeys", "title")

_SENTINEL = re.compile(r"^any(\s.*)?$", re.IGNORECASE)
_COUNT = re.compile(r"^(\d+)(\+)?$")


@dataclass(frozen=True)
class SearchScope:
    default_limit: int
    max_limit: int
    active_only: bool


PUBLIC_SCOPE = SearchScope(default_limit=20, max_limit=100, active_only=True)
ADMIN_SCOPE = SearchScope(default_limit=50, max_limit=500, active_only=False)


def clean_value(raw: Optional[str]) -> Optional[str]:
    """Return the trimmed value, or None for blanks and "Any ..." placeholders."""
    if raw is None:
        return None
    value = raw.strip()
    if not value or _SENTINEL.match(value):
        return None
    return value


def search_text(raw: Optional[str]) -> Optional[str]:
    """Free text is only dropped when blank. "Any" is a valid search term here."""
    if raw is None:
        return None
    return raw.strip() or None


def _count_constraint(value: str) -> Any:
    m = _COUNT.match(value)
    if not m:
        return None
    n = int(m.group(1))
    return {"$gte": n} if m.group(2) else n


def storey_constraint(label: Optional[str]) -> Any:
    """Map "Two Storey" -> 2, "Three+ Storey" -> {"$gte": 3}. Unknown labels -> None."""
    value = clean_value(label)
    if value is None:
        return None
    known = STOREY_LABELS.get(" ".join(value.lower().split()))
    if known is not None:
        return known
    return _count_constraint(value)


def bedroom_constraint(raw: Optional[str]) -> Any:
    value = clean_value(raw)
    if value is None:
        return None
    return _count_constraint(value)


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class PlanFilters:
    """A parsed search request. Build with :meth:`from_params`."""

    exact: tuple[tuple[str, str], ...] = ()
    storeys: Any = None
    bedrooms: Any = None
    search: Optional[str] = None
    status: Optional[str] = None
    limit: int = PUBLIC_SCOPE.default_limit
    offset: int = 0
    sort_by: str = "createdAt"
    sort_direction: int = -1

    @classmethod
    def from_params(cls, params: Mapping[str, str], scope: SearchScope = PUBLIC_SCOPE) -> "PlanFilters":
        exact = []
        for param, field in EXACT_FILTERS.items():
            value = clean_value(params.get(param))
            if value is not None:
                exact.append((field, value))

        if scope.active_only:
            status = ACTIVE
        else:
            status = clean_value(params.get("status"))

        limit = _parse_int(params.get("limit"))
        if limit is None or limit <= 0:
            limit = scope.default_limit
        limit = min(limit, scope.max_limit)

        offset = _parse_int(params.get("offset"))
        if offset is None or offset < 0:
            offset = 0

        sort_by = params.get("sortBy") or "createdAt"
        if sort_by not in SORTABLE_FIELDS:
            sort_by = "createdAt"
        sort_direction = 1 if (params.get("sortOrder") or "").lower() in ("asc", "1") else -1

        return cls(
            exact=tuple(exact),
            storeys=storey_constraint(params.get("storeys")),
            bedrooms=bedroom_constraint(params.get("bedrooms")),
            search=search_text(params.get("search")),
            status=status,
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            sort_direction=sort_direction,
        )

    def to_query(self) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if self.status is not None:
            query["status"] = self.status
        for field, value in self.exact:
            query[field] = value
        if self.storeys is not None:
            query["storeys"] = self.storeys
        if self.bedrooms is not None:
            query["bedrooms"] = self.bedrooms
        if self.search:
            pattern = re.escape(self.search)
            query["$or"] = [{f: {"$regex": pattern, "$options": "i"}} for f in SEARCH_FIELDS]
        return query

    def sort(self) -> list[tuple[str, int]]:
        return [(self.sort_by, self.sort_direction), ("_id", self.sort_direction)]

    def find_kwargs(self) -> dict[str, Any]:
        return {"sort": self.sort(), "skip": self.offset, "limit": self.limit}

"""
Search criteria resolution for the public property search.

Turns raw query parameters into a validated SearchCriteria and compiles
that into a MongoDB filter with a fixed sort order and skip/limit values.
Nothing here performs I/O; executing the query is PropertyService's job.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

from app.config import Settings
from app.models.property import (
    ListingStatus,
    ListingType,
    NumericRange,
    Pagination,
    PropertyType,
    SearchCriteria,
)
from app.services.result import Err, Ok, Result

logger = logging.getLogger(__name__)

# Query parameter pairs for each numeric range, keyed by criteria field
RANGE_PARAMS: Dict[str, Tuple[str, str]] = {
    "price": ("minPrice", "maxPrice"),
    "bedrooms": ("minBedrooms", "maxBedrooms"),
    "bathrooms": ("minBathrooms", "maxBathrooms"),
    "area": ("minArea", "maxArea"),
}

# Document paths the range fields are matched against
RANGE_PATHS: Dict[str, str] = {
    "price": "price",
    "bedrooms": "features.bedrooms",
    "bathrooms": "features.bathrooms",
    "area": "features.area",
}

TEXT_SEARCH_PATHS: Tuple[str, ...] = ("title", "description", "location.address")

SORT_ORDER: List[Tuple[str, int]] = [("featured", -1), ("createdAt", -1)]

# Largest skip value BSON can encode (signed 64-bit)
MAX_SKIP = 2**63 - 1


@dataclass(frozen=True)
class SearchConfig:
    """Fixed sets and page-size limits the resolver validates against."""

    property_types: Tuple[str, ...] = tuple(t.value for t in PropertyType)
    listing_types: Tuple[str, ...] = tuple(t.value for t in ListingType)
    active_status: str = ListingStatus.ACTIVE.value
    default_limit: int = 12
    max_limit: int = 50

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchConfig":
        return cls(
            property_types=tuple(settings.property_types),
            default_limit=settings.search_default_limit,
            max_limit=settings.search_max_limit,
        )


class FieldError(NamedTuple):
    field: str
    message: str


class ValidationError(ValueError):
    """Raised (or carried in an Err) when raw search input is invalid."""

    def __init__(self, errors: List[FieldError]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid search parameters: {summary}")

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def to_details(self) -> List[Dict[str, str]]:
        return [e._asdict() for e in self.errors]


@dataclass(frozen=True)
class CompiledQuery:
    """A storage-ready description of one page of search results."""

    filter: Dict[str, Any]
    sort: List[Tuple[str, int]] = field(default_factory=lambda: list(SORT_ORDER))
    skip: int = 0
    limit: int = 12
    page: int = 1


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _parse_number(value: str) -> float:
    number = float(value.strip())
    if not math.isfinite(number):
        raise ValueError(value)
    return int(number) if number.is_integer() else number


def _contains(text: str) -> Dict[str, str]:
    """Case-insensitive substring match; user input is matched literally."""
    return {"$regex": re.escape(text), "$options": "i"}


def build_pagination(total_count: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_count=total_count,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
        limit=limit,
    )


class SearchCriteriaResolver:
    """Validates raw search parameters and compiles them into a query."""

    def __init__(self, config: Optional[SearchConfig] = None) -> None:
        self.config = config or SearchConfig()

    def validate(self, raw: Mapping[str, str]) -> Result[SearchCriteria, ValidationError]:
        """
        Parse raw query parameters into SearchCriteria.

        Blank or missing values mean "not specified". Every invalid field
        is reported, not just the first one found.

        Args:
            raw: Query parameters as received from the request.

        Returns:
            Ok(SearchCriteria) or Err(ValidationError).
        """
        errors: List[FieldError] = []
        values: Dict[str, Any] = {}

        for key in ("query", "city"):
            if not _blank(raw.get(key)):
                values[key] = raw[key].strip()

        for key, attr, allowed in (
            ("propertyType", "property_type", self.config.property_types),
            ("listingType", "listing_type", self.config.listing_types),
        ):
            value = raw.get(key)
            if _blank(value):
                continue
            value = value.strip()
            if value not in allowed:
                errors.append(FieldError(key, f"must be one of: {', '.join(allowed)}"))
            else:
                values[attr] = value

        for name, (min_key, max_key) in RANGE_PARAMS.items():
            bounds: Dict[str, Any] = {}
            for bound, key in (("min", min_key), ("max", max_key)):
                value = raw.get(key)
                if _blank(value):
                    continue
                try:
                    number = _parse_number(value)
                except ValueError:
                    errors.append(FieldError(key, f"expected a number, got {value!r}"))
                    continue
                if number < 0:
                    errors.append(FieldError(key, "must not be negative"))
                    continue
                bounds[bound] = number
            if "min" in bounds and "max" in bounds and bounds["min"] > bounds["max"]:
                errors.append(FieldError(name, f"{min_key} must not exceed {max_key}"))
            elif bounds:
                values[name] = NumericRange(**bounds)

        page = self._parse_int(raw, "page", 1, errors)
        limit = self._parse_int(raw, "limit", self.config.default_limit, errors)
        values["page"] = max(page, 1)
        values["limit"] = min(max(limit, 1), self.config.max_limit)
        if (values["page"] - 1) * values["limit"] > MAX_SKIP:
            errors.append(FieldError("page", "is too large"))

        if errors:
            return Err(ValidationError(errors))
        return Ok(SearchCriteria(**values))

    @staticmethod
    def _parse_int(raw: Mapping[str, str], key: str, default: int, errors: List[FieldError]) -> int:
        value = raw.get(key)
        if _blank(value):
            return default
        try:
            return int(value.strip())
        except ValueError:
            errors.append(FieldError(key, f"expected an integer, got {value!r}"))
            return default

    def compile(self, criteria: SearchCriteria) -> CompiledQuery:
        """
        Compile validated criteria into a MongoDB filter plus paging values.

        The active-status clause is always present. Every other clause is
        added only when the matching criteria field was supplied.
        """
        query: Dict[str, Any] = {"status": self.config.active_status}

        if criteria.query:
            query["$or"] = [{path: _contains(criteria.query)} for path in TEXT_SEARCH_PATHS]

        if criteria.city:
            query["location.city"] = _contains(criteria.city)

        if criteria.property_type:
            query["propertyType"] = criteria.property_type

        if criteria.listing_type:
            query["listingType"] = criteria.listing_type

        for name, path in RANGE_PATHS.items():
            bounds: NumericRange = getattr(criteria, name)
            if bounds.is_empty:
                continue
            clause: Dict[str, Any] = {}
            if bounds.min is not None:
                clause["$gte"] = bounds.min
            if bounds.max is not None:
                clause["$lte"] = bounds.max
            query[path] = clause

        logger.debug("Compiled search filter: %s", query)
        return CompiledQuery(
            filter=query,
            skip=(criteria.page - 1) * criteria.limit,
            limit=criteria.limit,
            page=criteria.page,
        )

    def resolve(self, raw: Mapping[str, str]) -> Result[CompiledQuery, ValidationError]:
        """Validate then compile; validation errors are passed through."""
        result = self.validate(raw)
        if result.is_err():
            return result
        return Ok(self.compile(result.value))

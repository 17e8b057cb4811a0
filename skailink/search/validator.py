"""
Search request validation.

The gate in front of every vendor call: a request that fails here never
reaches Amadeus. All problems are collected so the caller can show them
together; the first one doubles as the error message.
"""

from typing import Any, Dict, List, Optional
import re

from skailink.errors import ValidationError
from skailink.types import SearchRequest
from skailink.utils.dates import parse_iso_date, today

AIRPORT_CODE_RE = re.compile(r"^[A-Z]{3}$")
TRIP_TYPES = ("one-way", "round-trip")
MIN_PASSENGERS, MAX_PASSENGERS = 1, 9
MAX_PAGE_SIZE = 50


def _clean_code(value: Any) -> str:
    return str(value).strip().upper() if value is not None else ""


def _int_field(payload: Dict[str, Any], name: str, default: Optional[int]) -> Optional[int]:
    value = payload.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise TypeError(name)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise TypeError(name)


def validate_search_request(payload: Dict[str, Any], tz: str = "UTC") -> SearchRequest:
    if not isinstance(payload, dict):
        raise ValidationError(["Request body must be a JSON object"])

    errors: List[str] = []

    origin = _clean_code(payload.get("origin"))
    destination = _clean_code(payload.get("destination"))
    depart_raw = str(payload.get("departDate") or "").strip()
    return_raw = str(payload.get("returnDate") or "").strip() or None

    # 1. Required fields
    missing = [name for name, value in (("origin", origin), ("destination", destination),
                                        ("departDate", depart_raw)) if not value]
    if missing:
        errors.append(
            "Missing required fields: origin, destination, and departDate are required"
            f" (missing: {', '.join(missing)})"
        )

    # 2. Airport codes
    if origin and not AIRPORT_CODE_RE.match(origin):
        errors.append("Origin must be a 3-letter airport code")
    if destination and not AIRPORT_CODE_RE.match(destination):
        errors.append("Destination must be a 3-letter airport code")
    if origin and origin == destination:
        errors.append("Origin and destination must be different")

    # 3. Dates
    depart = parse_iso_date(depart_raw) if depart_raw else None
    if depart_raw and depart is None:
        errors.append("departDate must be a valid date in YYYY-MM-DD format")
    elif depart and depart < today(tz):
        errors.append("departDate cannot be in the past")

    ret = parse_iso_date(return_raw) if return_raw else None
    if return_raw and ret is None:
        errors.append("returnDate must be a valid date in YYYY-MM-DD format")

    # 4. Trip type consistency
    trip_type = payload.get("tripType") or ("round-trip" if return_raw else "one-way")
    if trip_type not in TRIP_TYPES:
        errors.append(f"tripType must be one of: {', '.join(TRIP_TYPES)}")
    elif trip_type == "round-trip":
        if not return_raw:
            errors.append("returnDate is required for round-trip searches")
        elif depart and ret and ret < depart:
            errors.append("returnDate cannot be before departDate")
    elif return_raw:
        # one-way searches ignore any stray return date
        return_raw, ret = None, None

    # 5. Passengers and paging
    passengers = page = page_size = None
    try:
        passengers = _int_field(payload, "passengers", 1)
        if not MIN_PASSENGERS <= passengers <= MAX_PASSENGERS:
            errors.append(f"passengers must be between {MIN_PASSENGERS} and {MAX_PASSENGERS}")
    except TypeError:
        errors.append("passengers must be an integer")
    try:
        page = _int_field(payload, "page", None)
        page_size = _int_field(payload, "pageSize", None)
        if page is not None and page < 1:
            errors.append("page must be >= 1")
        if page_size is not None and not 1 <= page_size <= MAX_PAGE_SIZE:
            errors.append(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")
    except TypeError as e:
        errors.append(f"{e.args[0]} must be an integer")

    if errors:
        raise ValidationError(errors)

    return SearchRequest(
        origin=origin,
        destination=destination,
        depart_date=depart_raw,
        return_date=return_raw,
        passengers=passengers,
        trip_type=trip_type,
        page=page,
        page_size=page_size,
    )


def validate_airport_query(query: Optional[str], min_length: int = 2) -> str:
    q = (query or "").strip()
    if len(q) < min_length:
        raise ValidationError([f"Query parameter 'city' is required (at least {min_length} characters)"])
    return q

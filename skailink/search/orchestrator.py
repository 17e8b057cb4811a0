import asyncio
import math
import time
from typing import Any, Callable, Dict, List, Optional

from skailink.amadeus.client import AmadeusClient
from skailink.amadeus.transform import from_amadeus, to_airport
from skailink.errors import HistoryWriteError, NotFoundError, ValidationError, VendorError
from skailink.history.redis_store import SearchHistoryStore
from skailink.iata.lookup import AirportDb, default_airport_db
from skailink.infrastructure.resilience import RetryPolicy
from skailink.obs.logger import log_event
from skailink.obs.metrics import inc_counter
from skailink.search.fallback import generate_mock_flights, MOCK_FLIGHT_COUNT
from skailink.search.validator import validate_airport_query, validate_search_request
from skailink.types import (
    Airport, AirportSearchResult, FlightOffer, SearchMeta, SearchRequest, SearchResponse,
)

DEFAULT_PAGE_SIZE = 20
AIRPORT_RESULT_LIMIT = 10


def sort_by_price(offers: List[FlightOffer]) -> List[FlightOffer]:
    # sorted() is stable: equal prices keep vendor order
    return sorted(offers, key=lambda o: o.price)


def paginate(offers: List[FlightOffer], page: Optional[int], page_size: Optional[int]):
    """Slice an already-sorted list. Returns (page_items, SearchMeta)."""
    total = len(offers)
    if page is None and page_size is None:
        return offers, SearchMeta(total=total, page=1, page_size=total, total_pages=1)
    page = page or 1
    page_size = page_size or DEFAULT_PAGE_SIZE
    total_pages = max(1, math.ceil(total / page_size))
    start = (page - 1) * page_size
    return offers[start:start + page_size], SearchMeta(
        total=total, page=page, page_size=page_size, total_pages=total_pages
    )


class FlightSearchService:
    """Search orchestration: validate, call the vendor with retries, fall
    back to synthetic offers, normalize, sort, paginate, record history.

    A recoverable upstream outage never surfaces as a failed search; the
    response is flagged ``mock`` instead.
    """

    def __init__(
        self,
        client: AmadeusClient,
        retry_policy: Optional[RetryPolicy] = None,
        history: Optional[SearchHistoryStore] = None,
        airport_db: Optional[AirportDb] = None,
        affiliate_id: Optional[str] = None,
        max_results: int = 20,
        tz: str = "UTC",
        mock_generator: Callable[..., List[FlightOffer]] = generate_mock_flights,
    ):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.history = history
        self.airport_db = airport_db or default_airport_db()
        self.affiliate_id = affiliate_id
        self.max_results = max_results
        self.tz = tz
        self.mock_generator = mock_generator

    # -- flights ---------------------------------------------------------

    async def search(self, payload: Dict[str, Any], user_id: Optional[str] = None) -> SearchResponse:
        start = time.monotonic()
        request = validate_search_request(payload, tz=self.tz)
        log_event(
            "flight_search",
            origin=request.origin,
            destination=request.destination,
            depart_date=request.depart_date,
            passengers=request.passengers,
            trip_type=request.trip_type,
        )

        offers, is_mock = await self._fetch_offers(request)
        offers = sort_by_price(offers)
        page_items, meta = paginate(offers, request.page, request.page_size)

        if user_id:
            await self._record_history(user_id, request)

        meta.duration_ms = int((time.monotonic() - start) * 1000)
        log_event("flight_search_done", mock=is_mock, count=len(page_items),
                  total=meta.total, ms_total=meta.duration_ms)
        return SearchResponse(
            success=True,
            data=page_items,
            mock=is_mock,
            search_params=request,
            count=len(page_items),
            meta=meta,
        )

    async def _fetch_offers(self, request: SearchRequest) -> tuple[List[FlightOffer], bool]:
        if not self.client.configured:
            log_event("vendor_unconfigured", level="WARNING")
            return self._fallback(request, reason="unconfigured"), True

        async def call():
            return await self.client.search_flights_with_dictionaries(
                origin=request.origin,
                destination=request.destination,
                dep_date=request.depart_date,
                ret_date=request.return_date,
                adults=request.passengers,
                max_results=self.max_results,
            )

        try:
            raw_offers, dictionaries = await self.retry_policy.execute(call, name="flight_offers")
        except VendorError as e:
            log_event("vendor_unavailable", level="WARNING", **e.to_dict())
            return self._fallback(request, reason=e.kind.value), True

        return from_amadeus(raw_offers, dictionaries, self.affiliate_id), False

    def _fallback(self, request: SearchRequest, reason: str) -> List[FlightOffer]:
        inc_counter("search_fallback_total", {"reason": reason})
        log_event("search_fallback", level="WARNING", reason=reason, count=MOCK_FLIGHT_COUNT)
        return self.mock_generator(request.origin, request.destination, request.depart_date)

    async def _record_history(self, user_id: str, request: SearchRequest) -> None:
        if self.history is None:
            return
        try:
            await asyncio.to_thread(self.history.append, user_id, request.to_json_dict())
        except Exception as e:
            # never fails the search
            err = e if isinstance(e, HistoryWriteError) else HistoryWriteError(str(e))
            inc_counter("history_write_errors_total")
            log_event("history_write_failed", level="ERROR", user_id=user_id, error=str(err))

    async def confirm_price(self, offer: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(offer, dict) or not offer.get("id"):
            raise ValidationError(["A vendor flight offer with an 'id' is required"])
        return await self.retry_policy.execute(lambda: self.client.price_offer(offer), name="pricing")

    # -- airports --------------------------------------------------------

    async def search_airports(self, query: Optional[str]) -> AirportSearchResult:
        q = validate_airport_query(query)
        airports: List[Airport] = []
        if self.client.configured:
            try:
                raw = await self.client.search_airports(q)
                airports = [to_airport(loc) for loc in raw if loc.get("iataCode")]
            except VendorError as e:
                log_event("airport_search_fallback", level="WARNING", **e.to_dict())

        if airports:
            airports = airports[:AIRPORT_RESULT_LIMIT]
            return AirportSearchResult(data=airports, count=len(airports), source="amadeus")

        inc_counter("airport_fallback_total")
        airports = self.airport_db.search(q, limit=AIRPORT_RESULT_LIMIT)
        return AirportSearchResult(data=airports, count=len(airports), fallback=True)

    async def get_airport(self, code: str) -> Airport:
        code = (code or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValidationError(["Airport code must be 3 letters"])
        if self.client.configured:
            raw = await self.client.get_airport(code)
            if raw:
                return to_airport(raw)
        airport = self.airport_db.get(code)
        if airport is None:
            raise NotFoundError(f"Airport {code} not found")
        return airport
